"""Dataset loading and cleaning for the WDBC table."""

import numpy as np
import pandas as pd
from sklearn.datasets import load_breast_cancer

from wdbc_study.config import (
    CLASS_ORDER,
    EMPTY_COLUMN_PREFIX,
    FEATURE_NAMES,
    ID_COLUMN,
    LABEL_CODES,
    LABEL_COLUMN,
)
from wdbc_study.exceptions import DatasetSchemaError
from wdbc_study.utils import get_logger

log = get_logger(__name__)


def read_csv(path) -> pd.DataFrame:
    """Read the raw delimited file (id, diagnosis, 30 features, empty column)."""
    log.info("Reading raw table from: %s", path)
    return pd.read_csv(path)


def bundled_frame() -> pd.DataFrame:
    """
    Rebuild the raw 33-column layout from the copy of WDBC shipped with
    scikit-learn. Its target encodes malignant as 0 and benign as 1.
    """
    raw = load_breast_cancer()
    df = pd.DataFrame(raw.data, columns=FEATURE_NAMES)
    df.insert(0, LABEL_COLUMN, np.where(raw.target == 0, "M", "B"))
    df.insert(0, ID_COLUMN, np.arange(1, len(df) + 1))
    df[f"{EMPTY_COLUMN_PREFIX} {len(df.columns)}"] = np.nan
    return df


# Registry of available data sources
DATASET_REGISTRY = {
    "csv": {
        "reader": read_csv,
        "description": "Delimited WDBC export (id, diagnosis, 30 features, trailing empty column)",
    },
    "sklearn": {
        "reader": bundled_frame,
        "description": "WDBC copy bundled with scikit-learn (569 samples, 30 features)",
    },
}


def clean(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Drop the identifier and empty trailing columns and cast the label to a
    two-level categorical. Raises DatasetSchemaError on any schema mismatch.
    """
    expected = [ID_COLUMN, LABEL_COLUMN] + FEATURE_NAMES
    missing = [c for c in expected if c not in raw.columns]
    if missing:
        raise DatasetSchemaError(f"Missing expected columns: {missing}")

    empty = [
        c for c in raw.columns
        if str(c).startswith(EMPTY_COLUMN_PREFIX) and raw[c].isna().all()
    ]
    df = raw.drop(columns=[ID_COLUMN] + empty)

    extra = [c for c in df.columns if c != LABEL_COLUMN and c not in FEATURE_NAMES]
    if extra:
        raise DatasetSchemaError(f"Unexpected columns: {extra}")

    non_numeric = [
        c for c in FEATURE_NAMES if not pd.api.types.is_numeric_dtype(df[c])
    ]
    if non_numeric:
        raise DatasetSchemaError(f"Non-numeric feature columns: {non_numeric}")

    codes = df[LABEL_COLUMN].astype(str).str.strip()
    unknown = sorted(set(codes) - set(LABEL_CODES))
    if unknown:
        raise DatasetSchemaError(f"Unknown diagnosis codes: {unknown}")

    df[LABEL_COLUMN] = pd.Categorical(
        codes.map(LABEL_CODES), categories=CLASS_ORDER, ordered=True,
    )
    return df[[LABEL_COLUMN] + FEATURE_NAMES].reset_index(drop=True)


class DatasetLoader:
    """Loads and cleans the WDBC table from one of the registered sources."""

    @staticmethod
    def list_available() -> list[str]:
        return list(DATASET_REGISTRY.keys())

    def load(self, source: str = "sklearn", path=None) -> dict:
        """
        Load and clean a dataset.

        Returns a dict with keys:
            - df: cleaned pd.DataFrame (label + 30 features)
            - feature_names: list of feature column names
            - target_name: name of the label column
            - metadata: extra info about the dataset
        """
        if source not in DATASET_REGISTRY:
            raise ValueError(
                f"Unknown source '{source}'. Available: {self.list_available()}"
            )

        if path is not None and source != "csv":
            raise ValueError("A file path can only be given for the 'csv' source")
        if path is None and source == "csv":
            raise ValueError("The 'csv' source needs a file path (--data)")

        entry = DATASET_REGISTRY[source]
        log.info("Loading dataset from source: %s", source)
        log.info("Description: %s", entry["description"])

        raw = entry["reader"](path) if source == "csv" else entry["reader"]()
        log.info("Raw table: %d rows x %d columns", *raw.shape)

        df = clean(raw)
        counts = df[LABEL_COLUMN].value_counts().reindex(CLASS_ORDER)

        metadata = {
            "source": source if path is None else str(path),
            "n_samples": len(df),
            "n_features": len(FEATURE_NAMES),
            "shape": list(df.shape),
            "class_distribution": {k: int(v) for k, v in counts.items()},
        }

        log.info(
            "Cleaned dataset: %d rows x %d columns (%s)",
            df.shape[0], df.shape[1],
            ", ".join(f"{k}={v}" for k, v in metadata["class_distribution"].items()),
        )

        return {
            "df": df,
            "feature_names": list(FEATURE_NAMES),
            "target_name": LABEL_COLUMN,
            "metadata": metadata,
        }
