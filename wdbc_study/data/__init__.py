from wdbc_study.data.loader import DatasetLoader, DATASET_REGISTRY
from wdbc_study.data.preprocessor import Preprocessor, encode_labels, reduce_collinearity

__all__ = [
    "DatasetLoader",
    "DATASET_REGISTRY",
    "Preprocessor",
    "encode_labels",
    "reduce_collinearity",
]
