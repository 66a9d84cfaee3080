"""Report assembly, plain-text summary and JSON export."""

import json
import math
from datetime import datetime, timezone

import numpy as np
import pandas as pd

from wdbc_study import __version__
from wdbc_study.utils import get_logger

log = get_logger(__name__)


def _jsonable(value):
    """Convert numpy/pandas values to plain JSON types; NaN becomes null."""
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, pd.DataFrame):
        return _jsonable(value.to_dict(orient="records"))
    if isinstance(value, pd.Series):
        return _jsonable(value.to_dict())
    if isinstance(value, np.ndarray):
        return _jsonable(value.tolist())
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _fmt(value: float) -> str:
    return "   NaN" if value is None or math.isnan(value) else f"{value:.4f}"


class Reporter:
    """Compiles the stage outputs of a study run into one report."""

    def generate(self, dataset_metadata: dict, eda_report: dict, split_info: dict,
                 model_summary: dict, holdout_results: dict,
                 experiment_config: dict, loocv_results: dict | None = None) -> dict:
        report = {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "dataset": dataset_metadata,
            "exploration": eda_report,
            "split": split_info,
            "models": model_summary,
            "holdout": holdout_results,
            "experiment_config": experiment_config,
            "loocv": loocv_results,
        }
        log.info("Report generated with %d sections", len(report))
        return report

    def print_summary(self, report: dict) -> str:
        lines = [
            "=" * 64,
            "WDBC TUMOR CLASSIFICATION STUDY",
            "=" * 64,
            f"Dataset: {report['dataset']['n_samples']} rows, "
            f"{report['dataset']['n_features']} features "
            f"({report['dataset']['class_distribution']})",
            f"Split:   {report['split']['train_samples']} train / "
            f"{report['split']['test_samples']} test "
            f"(seed={report['split']['random_state']})",
            "",
            "Selected hyperparameters:",
        ]
        for key, value in report["experiment_config"].items():
            lines.append(f"  {key:<22} {value:.6g}" if isinstance(value, float)
                         else f"  {key:<22} {value}")

        sections = [("HOLDOUT TEST SET", report["holdout"])]
        if report.get("loocv"):
            sections.append((
                f"LEAVE-ONE-OUT CV ({report['loocv']['n_folds']} folds)",
                report["loocv"]["metrics"],
            ))

        for title, metrics in sections:
            lines += [
                "",
                title,
                "-" * 64,
                f"  {'model':<16}{'accuracy':>10}{'precision':>11}{'recall':>9}"
                f"   [[TN FP] [FN TP]]",
            ]
            for name, m in metrics.items():
                lines.append(
                    f"  {name:<16}{_fmt(m['accuracy']):>10}{_fmt(m['precision']):>11}"
                    f"{_fmt(m['recall']):>9}   {m['confusion_matrix']}"
                )

        loocv = report.get("loocv") or {}
        stalled = {k: v for k, v in loocv.get("unconverged_folds", {}).items() if v}
        if stalled:
            lines.append(f"  non-converged LOOCV folds: {stalled}")

        lines.append("=" * 64)
        return "\n".join(lines)

    def save_json(self, report: dict, path: str):
        with open(path, "w") as f:
            json.dump(_jsonable(report), f, indent=2)
