"""Configuration constants for the WDBC study."""

from dataclasses import dataclass

import numpy as np

# Outputs
DEFAULT_OUTPUT_DIR = "wdbc_study_output"

# Raw table layout
ID_COLUMN = "id"
LABEL_COLUMN = "diagnosis"
EMPTY_COLUMN_PREFIX = "Unnamed:"

LABEL_CODES = {"B": "Benign", "M": "Malignant"}
CLASS_ORDER = ["Benign", "Malignant"]
NEGATIVE_CLASS = "Benign"
POSITIVE_CLASS = "Malignant"

_MEASUREMENTS = [
    "radius",
    "texture",
    "perimeter",
    "area",
    "smoothness",
    "compactness",
    "concavity",
    "concave points",
    "symmetry",
    "fractal_dimension",
]
FEATURE_NAMES = [
    f"{measurement}_{stat}"
    for stat in ("mean", "se", "worst")
    for measurement in _MEASUREMENTS
]

# Experiment parameters
RANDOM_SEED = 1
TRAIN_FRACTION = 0.8
INNER_CV_FOLDS = 10
CORRELATION_CUTOFF = 0.9
DECISION_THRESHOLD = 0.5
PCA_COMPONENTS = 9
PCA_SWEEP_MAX_COMPONENTS = 10
MAX_ITER = 10000

# glmnet-style penalty strengths, largest first
LAMBDA_GRID = np.logspace(0, -4, 50)


@dataclass(frozen=True)
class ExperimentConfig:
    """Hyperparameters fixed by the holdout experiment and reused by LOOCV."""

    ridge_lambda: float
    lasso_lambda: float
    pca_component_count: int = PCA_COMPONENTS

    def __post_init__(self):
        if self.ridge_lambda <= 0 or self.lasso_lambda <= 0:
            raise ValueError("Penalty strengths must be positive")
        if self.pca_component_count < 1:
            raise ValueError("pca_component_count must be at least 1")

    def to_dict(self) -> dict:
        return {
            "ridge_lambda": self.ridge_lambda,
            "lasso_lambda": self.lasso_lambda,
            "pca_component_count": self.pca_component_count,
        }
