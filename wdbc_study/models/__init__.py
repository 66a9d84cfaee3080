from wdbc_study.models.trainer import (
    FittedModel,
    PenalizedFitter,
    PENALTY_CONFIGS,
    fit_logistic,
    lambda_to_C,
)
from wdbc_study.models.reduction import (
    component_sweep,
    fit_pca_logistic,
    pca_variance,
)

__all__ = [
    "FittedModel",
    "PenalizedFitter",
    "PENALTY_CONFIGS",
    "fit_logistic",
    "lambda_to_C",
    "component_sweep",
    "fit_pca_logistic",
    "pca_variance",
]
