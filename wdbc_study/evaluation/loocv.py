"""
Leave-one-out cross-validation of the ridge, lasso and PCA-logistic models.

Every fold refits all three models on the N-1 remaining rows and predicts
the single held-out row. Ridge and lasso use the penalty strengths fixed in
an ExperimentConfig; the scaler and PCA projection are refit per fold, so no
held-out row ever informs its own prediction.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from wdbc_study.config import INNER_CV_FOLDS, RANDOM_SEED, ExperimentConfig
from wdbc_study.data.preprocessor import encode_labels
from wdbc_study.evaluation.evaluator import ConfusionMatrix, metrics_table
from wdbc_study.exceptions import FoldFitError
from wdbc_study.models.reduction import fit_pca_logistic
from wdbc_study.models.trainer import PenalizedFitter
from wdbc_study.utils import get_logger

log = get_logger(__name__)

MODEL_NAMES = ("ridge", "lasso", "pca_logistic")
PROGRESS_EVERY = 100


class FoldAccumulator:
    """Pre-sized, write-once store of per-fold predicted labels."""

    def __init__(self, capacity: int, model_names=MODEL_NAMES):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.model_names = tuple(model_names)
        self._slots = [None] * capacity

    def record(self, index: int, predictions: dict):
        if not 0 <= index < self.capacity:
            raise IndexError(f"Fold index {index} outside [0, {self.capacity})")
        if self._slots[index] is not None:
            raise ValueError(f"Fold {index} already recorded")
        missing = [m for m in self.model_names if m not in predictions]
        if missing:
            raise ValueError(f"Fold {index} is missing predictions for {missing}")
        self._slots[index] = {m: predictions[m] for m in self.model_names}

    @property
    def n_recorded(self) -> int:
        return sum(slot is not None for slot in self._slots)

    @property
    def is_complete(self) -> bool:
        return self.n_recorded == self.capacity

    def to_frame(self, index=None) -> pd.DataFrame:
        if not self.is_complete:
            raise RuntimeError(
                f"Only {self.n_recorded} of {self.capacity} folds recorded"
            )
        return pd.DataFrame(self._slots, index=index, columns=list(self.model_names))


@dataclass
class LOOCVResult:
    """Per-fold predictions and the aggregate confusion matrix of each model."""

    config: ExperimentConfig
    observed: pd.Series
    predictions: pd.DataFrame
    confusion: dict
    unconverged: dict

    @property
    def n_folds(self) -> int:
        return len(self.predictions)

    def metrics(self) -> dict:
        return {name: cm.to_dict() for name, cm in self.confusion.items()}

    def metrics_table(self) -> pd.DataFrame:
        return metrics_table(self.confusion)

    def to_dict(self) -> dict:
        """Report section: fold count, metrics and non-converged fold counts per model."""
        return {
            "n_folds": self.n_folds,
            "metrics": self.metrics(),
            "unconverged_folds": dict(self.unconverged),
        }


def fit_fold(df: pd.DataFrame, position: int, feature_names: list[str],
             target_name: str, config: ExperimentConfig,
             retune_lambdas: bool = False, cv_folds: int = INNER_CV_FOLDS,
             random_state: int = RANDOM_SEED) -> tuple[dict, list[str]]:
    """
    Fit all models without row ``position`` and predict that row.

    Returns (predicted label per model, names of models whose solver did
    not converge). Any fitting error is raised as FoldFitError.
    """
    train_df = df.iloc[np.r_[0:position, position + 1:len(df)]]
    test_row = df.iloc[[position]]
    y = encode_labels(train_df[target_name])

    try:
        lambdas = {"ridge": config.ridge_lambda, "lasso": config.lasso_lambda}
        models = {}
        for kind in ("ridge", "lasso"):
            fitter = PenalizedFitter(kind, cv_folds=cv_folds, random_state=random_state)
            if retune_lambdas:
                lambdas[kind], _, _ = fitter.tune(train_df[feature_names], y)
            models[kind] = fitter.fit_at(train_df, y, feature_names, lambdas[kind])
        models["pca_logistic"] = fit_pca_logistic(
            train_df, y, feature_names, config.pca_component_count,
        )
        predictions = {name: str(m.predict(test_row)[0]) for name, m in models.items()}
    except (ValueError, ArithmeticError) as exc:
        raise FoldFitError(position, str(exc)) from exc

    unconverged = [name for name, m in models.items() if not m.converged]
    return predictions, unconverged


class LeaveOneOutValidator:
    """Runs one fold per row and aggregates predictions across all folds."""

    def __init__(self, config: ExperimentConfig, feature_names: list[str],
                 n_jobs: int | None = None, retune_lambdas: bool = False,
                 cv_folds: int = INNER_CV_FOLDS, random_state: int = RANDOM_SEED):
        self.config = config
        self.feature_names = list(feature_names)
        self.n_jobs = n_jobs
        self.retune_lambdas = retune_lambdas
        self.cv_folds = cv_folds
        self.random_state = random_state

    def run(self, df: pd.DataFrame, target_name: str) -> LOOCVResult:
        n = len(df)
        log.info(
            "LOOCV over %d folds (ridge_lambda=%.5g, lasso_lambda=%.5g, %d PCs%s)",
            n, self.config.ridge_lambda, self.config.lasso_lambda,
            self.config.pca_component_count,
            ", lambdas re-tuned per fold" if self.retune_lambdas else "",
        )
        if not self.retune_lambdas:
            log.info(
                "Penalty strengths were chosen on the holdout training split, "
                "which overlaps every LOOCV test row"
            )

        fold_args = dict(
            df=df,
            feature_names=self.feature_names,
            target_name=target_name,
            config=self.config,
            retune_lambdas=self.retune_lambdas,
            cv_folds=self.cv_folds,
            random_state=self.random_state,
        )

        accumulator = FoldAccumulator(n, MODEL_NAMES)
        unconverged = {name: 0 for name in MODEL_NAMES}

        if self.n_jobs in (None, 1):
            outcomes = self._run_sequential(n, fold_args)
        else:
            outcomes = Parallel(n_jobs=self.n_jobs)(
                delayed(fit_fold)(position=i, **fold_args) for i in range(n)
            )

        for i, (predictions, failed) in enumerate(outcomes):
            accumulator.record(i, predictions)
            for name in failed:
                unconverged[name] += 1

        for name, count in unconverged.items():
            if count:
                log.warning("%s: solver did not converge in %d of %d folds", name, count, n)

        predictions = accumulator.to_frame(index=df.index)
        observed = df[target_name]
        confusion = {
            name: ConfusionMatrix.from_labels(observed, predictions[name])
            for name in MODEL_NAMES
        }
        for name, cm in confusion.items():
            log.info(
                "  LOOCV %-14s acc=%.4f, prec=%.4f, rec=%.4f (n=%d)",
                name, cm.accuracy, cm.precision, cm.recall, cm.total,
            )

        return LOOCVResult(
            config=self.config,
            observed=observed,
            predictions=predictions,
            confusion=confusion,
            unconverged=unconverged,
        )

    def _run_sequential(self, n: int, fold_args: dict):
        for i in range(n):
            yield fit_fold(position=i, **fold_args)
            if (i + 1) % PROGRESS_EVERY == 0 or i + 1 == n:
                log.info("  completed %d/%d folds", i + 1, n)
