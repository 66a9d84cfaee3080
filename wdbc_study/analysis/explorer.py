"""Exploratory summaries of the cleaned WDBC table."""

import pandas as pd
from scipy import stats

from wdbc_study.config import CLASS_ORDER, CORRELATION_CUTOFF
from wdbc_study.utils import get_logger

log = get_logger(__name__)


class DataExplorer:
    """Summary statistics, class balance and feature relationships."""

    def __init__(self, correlation_cutoff: float = CORRELATION_CUTOFF):
        self.correlation_cutoff = correlation_cutoff
        self.report = {}

    def run(self, dataset: dict) -> dict:
        df = dataset["df"]
        feature_names = dataset["feature_names"]
        target_name = dataset["target_name"]

        log.info("Running exploratory analysis on %d samples", len(df))

        self.report = {
            "dimensions": {"rows": df.shape[0], "columns": df.shape[1]},
            "summary": df[feature_names].describe().T.rename_axis("feature").reset_index(),
            "class_balance": self._class_balance(df, target_name),
            "correlated_pairs": self._correlated_pairs(df, feature_names),
            "discriminative_features": self._discriminative_features(
                df, feature_names, target_name
            ),
        }

        log.info("Exploration complete: %d sections", len(self.report))
        return self.report

    def _class_balance(self, df: pd.DataFrame, target: str) -> dict:
        counts = df[target].value_counts().reindex(CLASS_ORDER, fill_value=0)
        proportions = counts / counts.sum()
        log.info(
            "Class balance: %s",
            ", ".join(f"{k}={v} ({proportions[k]:.1%})" for k, v in counts.items()),
        )
        return {
            "counts": {k: int(v) for k, v in counts.items()},
            "proportions": {k: float(v) for k, v in proportions.items()},
        }

    def _correlated_pairs(self, df: pd.DataFrame, features: list[str]) -> list[dict]:
        corr = df[features].corr()
        pairs = []
        for i, a in enumerate(features):
            for b in features[i + 1:]:
                r = corr.loc[a, b]
                if abs(r) > self.correlation_cutoff:
                    pairs.append({"feature_1": a, "feature_2": b, "correlation": round(r, 4)})

        pairs.sort(key=lambda p: abs(p["correlation"]), reverse=True)
        log.info(
            "Found %d feature pairs with |r|>%.2f", len(pairs), self.correlation_cutoff,
        )
        return pairs

    def _discriminative_features(self, df: pd.DataFrame, features: list[str],
                                 target: str) -> list[dict]:
        """Welch t-test of each feature between benign and malignant masses."""
        benign = df[df[target] == CLASS_ORDER[0]]
        malignant = df[df[target] == CLASS_ORDER[1]]
        if benign.empty or malignant.empty:
            log.warning("Both classes are needed for discriminative analysis")
            return []

        results = []
        for feat in features:
            t_stat, p_val = stats.ttest_ind(malignant[feat], benign[feat], equal_var=False)
            results.append({
                "feature": feat,
                "mean_benign": float(benign[feat].mean()),
                "mean_malignant": float(malignant[feat].mean()),
                "t_statistic": round(float(t_stat), 4),
                "p_value": float(p_val),
            })

        results.sort(key=lambda r: abs(r["t_statistic"]), reverse=True)
        for i, r in enumerate(results[:5]):
            log.info(
                "  %d. %s (t=%.2f, p=%.2e)",
                i + 1, r["feature"], r["t_statistic"], r["p_value"],
            )
        return results
