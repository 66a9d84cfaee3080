"""Confusion matrices and the metrics derived from them."""

from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix

from wdbc_study.config import CLASS_ORDER
from wdbc_study.utils import get_logger

log = get_logger(__name__)


def _ratio(numerator: int, denominator: int) -> float:
    # undefined metrics stay NaN rather than collapsing to 0
    return numerator / denominator if denominator else float("nan")


def _as_labels(values) -> np.ndarray:
    labels = pd.Series(values).astype(str).to_numpy()
    unknown = set(labels) - set(CLASS_ORDER)
    if unknown:
        raise ValueError(f"Unknown class labels: {sorted(unknown)}")
    return labels


@dataclass(frozen=True)
class ConfusionMatrix:
    """
    2x2 table of observed vs predicted diagnoses, Malignant positive.

    Rows are observed {Benign, Malignant}, columns predicted in the same
    order. Recompute from a fresh prediction set instead of mutating.
    """

    tn: int
    fp: int
    fn: int
    tp: int

    @classmethod
    def from_labels(cls, observed, predicted) -> "ConfusionMatrix":
        observed = _as_labels(observed)
        predicted = _as_labels(predicted)
        if len(observed) != len(predicted):
            raise ValueError(
                f"Length mismatch: {len(observed)} observed vs {len(predicted)} predicted"
            )
        (tn, fp), (fn, tp) = confusion_matrix(observed, predicted, labels=CLASS_ORDER)
        return cls(int(tn), int(fp), int(fn), int(tp))

    @property
    def total(self) -> int:
        return self.tn + self.fp + self.fn + self.tp

    @property
    def accuracy(self) -> float:
        return _ratio(self.tn + self.tp, self.total)

    @property
    def error_rate(self) -> float:
        return _ratio(self.fp + self.fn, self.total)

    @property
    def precision(self) -> float:
        return _ratio(self.tp, self.tp + self.fp)

    @property
    def recall(self) -> float:
        return _ratio(self.tp, self.tp + self.fn)

    @property
    def specificity(self) -> float:
        return _ratio(self.tn, self.tn + self.fp)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [[self.tn, self.fp], [self.fn, self.tp]],
            index=pd.Index(CLASS_ORDER, name="observed"),
            columns=pd.Index(CLASS_ORDER, name="predicted"),
        )

    def to_dict(self) -> dict:
        return {
            "confusion_matrix": [[self.tn, self.fp], [self.fn, self.tp]],
            "n": self.total,
            "accuracy": self.accuracy,
            "precision": self.precision,
            "recall": self.recall,
            "specificity": self.specificity,
        }


def metrics_table(confusion: dict) -> pd.DataFrame:
    """One row of accuracy/precision/recall per model name."""
    return pd.DataFrame(
        {
            name: {
                "accuracy": cm.accuracy,
                "precision": cm.precision,
                "recall": cm.recall,
                "n": cm.total,
            }
            for name, cm in confusion.items()
        }
    ).T


class ModelEvaluator:
    """Evaluates fitted models on the held-out test rows."""

    def run(self, models: dict, test_df: pd.DataFrame, target_name: str) -> dict:
        """
        Predict every test row with every model.

        Returns a dict with per-model metrics, confusion matrices and the
        name of the most accurate model.
        """
        log.info("Evaluating %d models on %d test samples", len(models), len(test_df))
        observed = test_df[target_name]

        confusion = {}
        for name, model in models.items():
            cm = ConfusionMatrix.from_labels(observed, model.predict(test_df))
            confusion[name] = cm
            log.info(
                "  %-14s acc=%.4f, prec=%.4f, rec=%.4f  [TN=%d FP=%d FN=%d TP=%d]",
                name, cm.accuracy, cm.precision, cm.recall,
                cm.tn, cm.fp, cm.fn, cm.tp,
            )

        best_name = max(
            confusion,
            key=lambda n: np.nan_to_num(confusion[n].accuracy, nan=-1.0),
        )
        log.info(
            "Best model on test set: %s (accuracy=%.4f)",
            best_name, confusion[best_name].accuracy,
        )

        return {
            "evaluations": {name: cm.to_dict() for name, cm in confusion.items()},
            "confusion": confusion,
            "best_model_name": best_name,
        }
