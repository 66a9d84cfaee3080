"""Principal component reduction and the PCA-logistic classifier."""

import numpy as np
import pandas as pd
from sklearn.decomposition import PCA
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import accuracy_score, precision_score, recall_score
from sklearn.model_selection import StratifiedKFold, cross_val_predict
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from wdbc_study.config import (
    INNER_CV_FOLDS,
    MAX_ITER,
    PCA_COMPONENTS,
    PCA_SWEEP_MAX_COMPONENTS,
    RANDOM_SEED,
)
from wdbc_study.models.trainer import FittedModel, coefficient_series, fit_pipeline
from wdbc_study.utils import get_logger

log = get_logger(__name__)


def component_names(n_components: int) -> list[str]:
    return [f"PC{i}" for i in range(1, n_components + 1)]


def build_pca_logistic(n_components: int = PCA_COMPONENTS) -> Pipeline:
    """Scale, project onto the leading components, then fit an unpenalized logit."""
    return Pipeline([
        ("scaler", StandardScaler()),
        ("pca", PCA(n_components=n_components)),
        ("logit", LogisticRegression(C=np.inf, max_iter=MAX_ITER)),
    ])


def pca_variance(train_df: pd.DataFrame, feature_names: list[str],
                 n_components: int = PCA_COMPONENTS) -> pd.DataFrame:
    """Explained variance per principal component of the scaled training features."""
    scaled = StandardScaler().fit_transform(train_df[feature_names])
    pca = PCA().fit(scaled)
    ratio = pca.explained_variance_ratio_
    table = pd.DataFrame({
        "component": component_names(len(ratio)),
        "std_dev": np.sqrt(pca.explained_variance_),
        "explained_variance_ratio": ratio,
        "cumulative_ratio": np.cumsum(ratio),
    })
    shown = min(n_components, len(ratio))
    log.info(
        "PCA: first %d of %d components explain %.1f%% of the variance",
        shown, len(ratio), 100 * table["cumulative_ratio"].iloc[shown - 1],
    )
    return table


def component_sweep(train_df: pd.DataFrame, y: np.ndarray,
                    feature_names: list[str],
                    max_components: int = PCA_SWEEP_MAX_COMPONENTS,
                    cv_folds: int = INNER_CV_FOLDS,
                    random_state: int = RANDOM_SEED) -> pd.DataFrame:
    """
    Out-of-fold accuracy, precision and recall of a PCA-logistic model for
    each component count from 1 to ``max_components``.

    This is a diagnostic only; the component count used downstream is
    chosen by reading the curves, not picked automatically.
    """
    if not 1 <= max_components <= len(feature_names):
        raise ValueError(
            f"max_components must lie in [1, {len(feature_names)}], got {max_components}"
        )
    cv = StratifiedKFold(n_splits=cv_folds, shuffle=True, random_state=random_state)
    X = train_df[feature_names]

    rows = []
    for k in range(1, max_components + 1):
        pred = cross_val_predict(build_pca_logistic(k), X, y, cv=cv)
        rows.append({
            "n_components": k,
            "accuracy": accuracy_score(y, pred),
            "precision": precision_score(y, pred, zero_division=np.nan),
            "recall": recall_score(y, pred, zero_division=np.nan),
        })
        log.info(
            "  %2d components: acc=%.4f, prec=%.4f, rec=%.4f",
            k, rows[-1]["accuracy"], rows[-1]["precision"], rows[-1]["recall"],
        )
    return pd.DataFrame(rows)


def fit_pca_logistic(train_df: pd.DataFrame, y: np.ndarray,
                     feature_names: list[str],
                     n_components: int = PCA_COMPONENTS) -> FittedModel:
    """
    Fit scaler, PCA and logistic regression on the training rows only.

    Held-out rows passed to ``predict`` are projected with this fit's own
    centering, scaling and loadings.
    """
    pipeline = build_pca_logistic(n_components)
    converged = fit_pipeline(pipeline, train_df[feature_names], y)
    return FittedModel(
        name="pca_logistic",
        pipeline=pipeline,
        feature_names=list(feature_names),
        coefficients=coefficient_series(pipeline, component_names(n_components)),
        converged=converged,
    )
