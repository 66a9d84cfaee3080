import json
import math

import numpy as np
import pytest

from wdbc_study.evaluation import ConfusionMatrix, ModelEvaluator, Reporter, metrics_table
from wdbc_study.evaluation.reporter import _jsonable

B, M = "Benign", "Malignant"


class TestConfusionMatrix:
    def test_orientation(self):
        cm = ConfusionMatrix.from_labels([B, B, M, M, M], [B, M, B, M, M])
        assert (cm.tn, cm.fp, cm.fn, cm.tp) == (1, 1, 1, 2)
        frame = cm.to_frame()
        assert frame.loc[B, M] == 1
        assert frame.loc[M, M] == 2
        assert list(frame.index) == [B, M]
        assert list(frame.columns) == [B, M]

    def test_perfect_precision(self):
        cm = ConfusionMatrix(tn=4, fp=0, fn=2, tp=3)
        assert cm.precision == 1.0

    def test_zero_recall(self):
        cm = ConfusionMatrix(tn=4, fp=1, fn=5, tp=0)
        assert cm.recall == 0.0

    def test_never_predicting_positive_gives_nan_precision(self):
        cm = ConfusionMatrix.from_labels([B, M, M], [B, B, B])
        assert math.isnan(cm.precision)
        assert cm.recall == 0.0

    def test_recall_undefined_without_positives(self):
        cm = ConfusionMatrix.from_labels([B, B], [B, M])
        assert math.isnan(cm.recall)

    def test_counts_and_rates(self):
        rng = np.random.default_rng(0)
        observed = rng.choice([B, M], size=97)
        predicted = rng.choice([B, M], size=97)
        cm = ConfusionMatrix.from_labels(observed, predicted)
        assert cm.total == 97
        assert cm.accuracy + cm.error_rate == pytest.approx(1.0)
        assert cm.accuracy == pytest.approx((observed == predicted).mean())

    def test_accepts_categorical_input(self, dataset):
        labels = dataset["df"]["diagnosis"]
        cm = ConfusionMatrix.from_labels(labels, labels.astype(str))
        assert cm.accuracy == 1.0
        assert (cm.fn, cm.fp) == (0, 0)
        assert cm.tp == 212

    def test_rejects_unknown_labels(self):
        with pytest.raises(ValueError, match="Unknown class labels"):
            ConfusionMatrix.from_labels([B, "?"], [B, B])

    def test_rejects_length_mismatch(self):
        with pytest.raises(ValueError):
            ConfusionMatrix.from_labels([B, M], [B])

    def test_metrics_table(self):
        table = metrics_table({
            "a": ConfusionMatrix(1, 0, 0, 1),
            "b": ConfusionMatrix(1, 1, 0, 0),
        })
        assert list(table.index) == ["a", "b"]
        assert table.loc["a", "accuracy"] == 1.0
        # one false positive, no true positives: precision is 0, recall is 0/0
        assert table.loc["b", "precision"] == 0.0
        assert math.isnan(table.loc["b", "recall"])


class _ConstantModel:
    def __init__(self, label):
        self.label = label

    def predict(self, df):
        return np.full(len(df), self.label)


def test_model_evaluator(dataset):
    df = dataset["df"].iloc[:50]
    result = ModelEvaluator().run(
        {"always_benign": _ConstantModel(B), "always_malignant": _ConstantModel(M)},
        df, "diagnosis",
    )
    benign = result["evaluations"]["always_benign"]
    assert benign["n"] == 50
    assert math.isnan(benign["precision"])
    assert result["evaluations"]["always_malignant"]["recall"] == 1.0
    assert result["best_model_name"] in ("always_benign", "always_malignant")


def test_jsonable_converts_nan_to_null():
    payload = _jsonable({"x": float("nan"), "y": np.float64(0.5), "z": np.array([1, 2])})
    assert payload == {"x": None, "y": 0.5, "z": [1, 2]}
    json.dumps(payload, allow_nan=False)


def test_summary_renders_nan():
    metrics = {"m": ConfusionMatrix(3, 0, 2, 0).to_dict()}
    report = {
        "dataset": {"n_samples": 5, "n_features": 30, "class_distribution": {B: 3, M: 2}},
        "split": {"train_samples": 4, "test_samples": 1, "random_state": 1},
        "experiment_config": {"ridge_lambda": 0.01, "lasso_lambda": 0.001,
                              "pca_component_count": 9},
        "holdout": metrics,
        "loocv": None,
    }
    text = Reporter().print_summary(report)
    assert "NaN" in text
    assert "LEAVE-ONE-OUT" not in text


def test_summary_includes_loocv_section():
    metrics = {"ridge": ConfusionMatrix(3, 0, 1, 1).to_dict()}
    report = {
        "dataset": {"n_samples": 5, "n_features": 30, "class_distribution": {B: 3, M: 2}},
        "split": {"train_samples": 4, "test_samples": 1, "random_state": 1},
        "experiment_config": {"ridge_lambda": 0.01},
        "holdout": metrics,
        "loocv": {
            "n_folds": 5,
            "metrics": metrics,
            "unconverged_folds": {"ridge": 2},
        },
    }
    text = Reporter().print_summary(report)
    assert "LEAVE-ONE-OUT CV (5 folds)" in text
    assert "non-converged LOOCV folds: {'ridge': 2}" in text
