"""Holdout splitting and collinearity screening for the WDBC table."""

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from wdbc_study.config import (
    CORRELATION_CUTOFF,
    POSITIVE_CLASS,
    RANDOM_SEED,
    TRAIN_FRACTION,
)
from wdbc_study.utils import get_logger

log = get_logger(__name__)


def encode_labels(labels) -> np.ndarray:
    """Binary-encode diagnosis labels with Malignant as the positive class."""
    return (np.asarray(labels, dtype=object) == POSITIVE_CLASS).astype(int)


def reduce_collinearity(df: pd.DataFrame, feature_names: list[str],
                        cutoff: float = CORRELATION_CUTOFF) -> list[str]:
    """
    Drop one member of every feature pair whose absolute correlation
    exceeds ``cutoff``.

    Pairs are visited from most to least correlated. When neither member
    has been dropped yet, the one with the larger mean absolute
    correlation against all features goes. Returns the retained names in
    their original order.
    """
    corr = df[feature_names].corr().abs()
    mean_corr = corr.mean()

    pairs = []
    for i, a in enumerate(feature_names):
        for b in feature_names[i + 1:]:
            r = corr.loc[a, b]
            if r > cutoff:
                pairs.append((r, a, b))
    pairs.sort(key=lambda p: p[0], reverse=True)

    dropped = set()
    for r, a, b in pairs:
        if a in dropped or b in dropped:
            continue
        dropped.add(a if mean_corr[a] >= mean_corr[b] else b)

    retained = [f for f in feature_names if f not in dropped]
    log.info(
        "Collinearity screen (|r|>%.2f): %d pairs, dropped %d, retained %d features",
        cutoff, len(pairs), len(dropped), len(retained),
    )
    return retained


class Preprocessor:
    """Seeded, label-stratified train/test partitioning."""

    def __init__(self, train_fraction: float = TRAIN_FRACTION,
                 random_state: int = RANDOM_SEED):
        if not 0.0 < train_fraction < 1.0:
            raise ValueError(
                f"train_fraction must lie strictly between 0 and 1, got {train_fraction}"
            )
        self.train_fraction = train_fraction
        self.random_state = random_state

    def split(self, dataset: dict) -> dict:
        """
        Partition a dataset dict from DatasetLoader into training and
        testing subsets, preserving label proportions in both.
        """
        df = dataset["df"]
        target_name = dataset["target_name"]

        train_index, test_index = train_test_split(
            df.index.to_numpy(),
            train_size=self.train_fraction,
            random_state=self.random_state,
            stratify=df[target_name].astype(str),
        )
        train_df = df.loc[train_index]
        test_df = df.loc[test_index]

        log.info(
            "Split: %d train / %d test (%.0f%% test, seed=%d)",
            len(train_df), len(test_df),
            (1 - self.train_fraction) * 100, self.random_state,
        )

        return {
            "train_df": train_df,
            "test_df": test_df,
            "train_index": train_index,
            "test_index": test_index,
            "y_train": encode_labels(train_df[target_name]),
            "y_test": encode_labels(test_df[target_name]),
            "split_info": {
                "train_fraction": self.train_fraction,
                "random_state": self.random_state,
                "train_samples": len(train_df),
                "test_samples": len(test_df),
            },
        }
