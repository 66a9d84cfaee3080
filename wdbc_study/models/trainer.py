"""Penalized and unpenalized logistic regression fitters."""

import warnings
from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegression
from sklearn.model_selection import GridSearchCV, StratifiedKFold
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from wdbc_study.config import (
    DECISION_THRESHOLD,
    INNER_CV_FOLDS,
    LAMBDA_GRID,
    MAX_ITER,
    NEGATIVE_CLASS,
    POSITIVE_CLASS,
    RANDOM_SEED,
)
from wdbc_study.utils import get_logger

log = get_logger(__name__)

# Penalty kind -> LogisticRegression kwargs
PENALTY_CONFIGS = {
    "ridge": {"l1_ratio": 0.0, "solver": "lbfgs", "max_iter": MAX_ITER},
    # liblinear penalizes the intercept; a large scaling makes that negligible
    "lasso": {
        "l1_ratio": 1.0,
        "solver": "liblinear",
        "intercept_scaling": 100.0,
        "max_iter": MAX_ITER,
    },
}


@dataclass
class FittedModel:
    """A fitted scikit-learn pipeline plus the named inputs it expects."""

    name: str
    pipeline: Pipeline
    feature_names: list[str]
    coefficients: pd.Series
    converged: bool = True
    penalty_lambda: float | None = None
    lambda_1se: float | None = None
    cv_curve: pd.DataFrame | None = None

    def predict_proba(self, df: pd.DataFrame) -> np.ndarray:
        """Probability of malignancy for each row of ``df``."""
        return self.pipeline.predict_proba(df[self.feature_names])[:, 1]

    def predict(self, df: pd.DataFrame,
                threshold: float = DECISION_THRESHOLD) -> np.ndarray:
        return np.where(
            self.predict_proba(df) > threshold, POSITIVE_CLASS, NEGATIVE_CLASS,
        )

    @property
    def n_zero_coefficients(self) -> int:
        return int((self.coefficients == 0).sum())


def lambda_to_C(lam: float, n_samples: int) -> float:
    """
    Convert a glmnet-style penalty strength to scikit-learn's ``C``.

    glmnet minimizes mean deviance / 2 + lambda * penalty, while
    LogisticRegression minimizes C * summed log-loss + penalty, so the
    two agree when C = 1 / (lambda * n).
    """
    if lam <= 0:
        raise ValueError(f"lambda must be positive, got {lam}")
    return 1.0 / (lam * n_samples)


def build_penalized(kind: str, lam: float, n_samples: int,
                    random_state: int = RANDOM_SEED) -> Pipeline:
    if kind not in PENALTY_CONFIGS:
        raise ValueError(
            f"Unknown penalty kind '{kind}'. Available: {list(PENALTY_CONFIGS)}"
        )
    logit = LogisticRegression(
        C=lambda_to_C(lam, n_samples),
        random_state=random_state,
        **PENALTY_CONFIGS[kind],
    )
    return Pipeline([("scaler", StandardScaler()), ("logit", logit)])


def build_logistic() -> Pipeline:
    # C=inf disables the penalty: plain maximum likelihood
    logit = LogisticRegression(C=np.inf, max_iter=MAX_ITER)
    return Pipeline([("scaler", StandardScaler()), ("logit", logit)])


def fit_pipeline(pipeline: Pipeline, X: pd.DataFrame, y: np.ndarray) -> bool:
    """Fit ``pipeline`` in place. Returns False if the solver did not converge."""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", ConvergenceWarning)
        pipeline.fit(X, y)

    converged = True
    for w in caught:
        if issubclass(w.category, ConvergenceWarning):
            converged = False
        else:
            warnings.showwarning(w.message, w.category, w.filename, w.lineno)
    return converged


def coefficient_series(pipeline: Pipeline, names: list[str]) -> pd.Series:
    logit = pipeline.named_steps["logit"]
    return pd.Series(logit.coef_.ravel(), index=names, name="coefficient")


def fit_logistic(train_df: pd.DataFrame, y: np.ndarray,
                 feature_names: list[str], name: str = "logistic") -> FittedModel:
    """Maximum-likelihood logistic regression on the named features."""
    pipeline = build_logistic()
    converged = fit_pipeline(pipeline, train_df[feature_names], y)
    if not converged:
        log.warning(
            "%s: solver hit the iteration limit (classes may be separable)", name,
        )
    return FittedModel(
        name=name,
        pipeline=pipeline,
        feature_names=list(feature_names),
        coefficients=coefficient_series(pipeline, list(feature_names)),
        converged=converged,
    )


class PenalizedFitter:
    """
    Ridge (L2) or lasso (L1) logistic regression with the penalty strength
    chosen by k-fold cross-validated deviance.
    """

    def __init__(self, kind: str, cv_folds: int = INNER_CV_FOLDS,
                 lambda_grid=LAMBDA_GRID, random_state: int = RANDOM_SEED):
        if kind not in PENALTY_CONFIGS:
            raise ValueError(
                f"Unknown penalty kind '{kind}'. Available: {list(PENALTY_CONFIGS)}"
            )
        if cv_folds < 2:
            raise ValueError("cv_folds must be at least 2")
        self.kind = kind
        self.cv_folds = cv_folds
        self.lambda_grid = np.sort(np.asarray(lambda_grid, dtype=float))[::-1]
        self.random_state = random_state

    def tune(self, X: pd.DataFrame, y: np.ndarray) -> tuple[float, float, pd.DataFrame]:
        """
        Sweep the lambda grid and return (lambda_min, lambda_1se, cv_curve).

        Each inner fit sees (k-1)/k of the rows, so the grid is converted to
        ``C`` at that size to keep lambda comparable with the final refit.
        """
        n_inner = len(y) * (self.cv_folds - 1) / self.cv_folds
        search = GridSearchCV(
            build_penalized(self.kind, self.lambda_grid[0], len(y), self.random_state),
            param_grid={"logit__C": [lambda_to_C(lam, n_inner) for lam in self.lambda_grid]},
            scoring="neg_log_loss",
            cv=StratifiedKFold(
                n_splits=self.cv_folds, shuffle=True, random_state=self.random_state,
            ),
            refit=False,
            error_score="raise",
        )
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", ConvergenceWarning)
            search.fit(X, y)

        # neg_log_loss is the mean per-row log-loss; deviance is twice that
        mean_dev = -2.0 * search.cv_results_["mean_test_score"]
        se_dev = 2.0 * search.cv_results_["std_test_score"] / np.sqrt(self.cv_folds)
        cv_curve = pd.DataFrame({
            "lambda": self.lambda_grid,
            "log_lambda": np.log(self.lambda_grid),
            "mean_deviance": mean_dev,
            "se_deviance": se_dev,
        })

        best = int(np.argmin(mean_dev))
        lambda_min = float(self.lambda_grid[best])
        # grid runs largest-first, so the first qualifying lambda is the largest
        within_1se = np.flatnonzero(mean_dev <= mean_dev[best] + se_dev[best])
        lambda_1se = float(self.lambda_grid[within_1se[0]])

        log.info(
            "%s: lambda_min=%.5g (deviance=%.4f), lambda_1se=%.5g",
            self.kind, lambda_min, mean_dev[best], lambda_1se,
        )
        return lambda_min, lambda_1se, cv_curve

    def fit_at(self, train_df: pd.DataFrame, y: np.ndarray,
               feature_names: list[str], lam: float) -> FittedModel:
        """Fit at a fixed penalty strength without tuning."""
        pipeline = build_penalized(self.kind, lam, len(y), self.random_state)
        converged = fit_pipeline(pipeline, train_df[feature_names], y)
        return FittedModel(
            name=self.kind,
            pipeline=pipeline,
            feature_names=list(feature_names),
            coefficients=coefficient_series(pipeline, list(feature_names)),
            converged=converged,
            penalty_lambda=float(lam),
        )

    def fit(self, train_df: pd.DataFrame, y: np.ndarray,
            feature_names: list[str]) -> FittedModel:
        """Tune lambda by cross-validation, then refit on all of ``train_df``."""
        lambda_min, lambda_1se, cv_curve = self.tune(train_df[feature_names], y)
        model = self.fit_at(train_df, y, feature_names, lambda_min)
        model.lambda_1se = lambda_1se
        model.cv_curve = cv_curve
        log.info(
            "%s: %d of %d coefficients exactly zero",
            self.kind, model.n_zero_coefficients, len(feature_names),
        )
        return model
