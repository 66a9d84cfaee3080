"""Diagnostic figures for the study, written as PNG files."""

from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from wdbc_study.config import CLASS_ORDER
from wdbc_study.utils import get_logger

log = get_logger(__name__)


def _save(fig, output_dir, filename: str) -> str:
    path = Path(output_dir) / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=120, bbox_inches="tight")
    plt.close(fig)
    log.info("Saved figure: %s", path)
    return str(path)


def plot_label_distribution(df: pd.DataFrame, target_name: str, output_dir) -> str:
    counts = df[target_name].value_counts().reindex(CLASS_ORDER, fill_value=0)
    fig, ax = plt.subplots(figsize=(5, 4))
    ax.bar([str(c) for c in counts.index], counts.values, color=["#4C72B0", "#C44E52"])
    for x, v in enumerate(counts.values):
        ax.text(x, v, str(v), ha="center", va="bottom")
    ax.set_ylabel("Observations")
    ax.set_title("Diagnosis distribution")
    return _save(fig, output_dir, "label_distribution.png")


def plot_cv_curve(cv_curve: pd.DataFrame, kind: str, lambda_min: float,
                  lambda_1se: float, output_dir) -> str:
    """Mean cross-validated deviance with one standard error against log(lambda)."""
    fig, ax = plt.subplots(figsize=(7, 4.5))
    ax.errorbar(
        cv_curve["log_lambda"], cv_curve["mean_deviance"],
        yerr=cv_curve["se_deviance"], fmt="o", color="#C44E52",
        ecolor="gray", markersize=3, capsize=2,
    )
    ax.axvline(np.log(lambda_min), ls="--", color="k", lw=0.8)
    ax.axvline(np.log(lambda_1se), ls=":", color="k", lw=0.8)
    ax.set_xlabel("log(lambda)")
    ax.set_ylabel("Binomial deviance")
    ax.set_title(f"{kind.capitalize()} cross-validation")
    return _save(fig, output_dir, f"cv_{kind}.png")


def plot_pca_variance(variance: pd.DataFrame, output_dir) -> str:
    fig, ax = plt.subplots(figsize=(7, 4.5))
    x = range(1, len(variance) + 1)
    ax.bar(x, variance["explained_variance_ratio"], color="#4C72B0", label="per component")
    ax.plot(x, variance["cumulative_ratio"], "o-", color="#C44E52", label="cumulative")
    ax.set_xlabel("Principal component")
    ax.set_ylabel("Proportion of variance explained")
    ax.set_ylim(0, 1.05)
    ax.legend()
    ax.set_title("PCA variance explained")
    return _save(fig, output_dir, "pca_variance.png")


def plot_component_sweep(sweep: pd.DataFrame, chosen: int, output_dir) -> str:
    fig, ax = plt.subplots(figsize=(7, 4.5))
    for metric in ("accuracy", "precision", "recall"):
        ax.plot(sweep["n_components"], sweep[metric], "o-", label=metric)
    ax.axvline(chosen, ls="--", color="k", lw=0.8)
    ax.set_xlabel("Number of principal components")
    ax.set_ylabel("Cross-validated score")
    ax.set_xticks(sweep["n_components"])
    ax.legend()
    ax.set_title("PCA-logistic component sweep")
    return _save(fig, output_dir, "pca_component_sweep.png")


def plot_confusion_matrices(confusion: dict, title: str, output_dir,
                            filename: str) -> str:
    fig, axes = plt.subplots(1, len(confusion), figsize=(3.2 * len(confusion), 3.2),
                             squeeze=False)
    for ax, (name, cm) in zip(axes[0], confusion.items()):
        frame = cm.to_frame()
        ax.imshow(frame.values, cmap="Blues")
        for i in range(2):
            for j in range(2):
                ax.text(j, i, str(frame.values[i, j]), ha="center", va="center")
        ax.set_xticks([0, 1], CLASS_ORDER)
        ax.set_yticks([0, 1], CLASS_ORDER)
        ax.set_xlabel("Predicted")
        ax.set_ylabel("Observed")
        ax.set_title(name)
    fig.suptitle(title)
    fig.tight_layout()
    return _save(fig, output_dir, filename)
