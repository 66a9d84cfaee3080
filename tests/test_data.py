import numpy as np
import pandas as pd
import pytest

from wdbc_study.config import CLASS_ORDER, FEATURE_NAMES
from wdbc_study.data import DatasetLoader, Preprocessor, encode_labels, reduce_collinearity
from wdbc_study.data.loader import bundled_frame, clean
from wdbc_study.exceptions import DatasetSchemaError


class TestLoader:
    def test_raw_layout_has_33_columns(self):
        raw = bundled_frame()
        assert raw.shape == (569, 33)
        assert raw.columns[0] == "id"
        assert raw.columns[-1] == "Unnamed: 32"

    def test_cleaned_dimensions(self, dataset):
        assert dataset["df"].shape == (569, 31)
        assert list(dataset["df"].columns) == ["diagnosis"] + FEATURE_NAMES

    def test_label_is_two_level_categorical(self, dataset):
        label = dataset["df"]["diagnosis"]
        assert isinstance(label.dtype, pd.CategoricalDtype)
        assert list(label.cat.categories) == CLASS_ORDER
        assert dataset["metadata"]["class_distribution"] == {"Benign": 357, "Malignant": 212}

    def test_csv_matches_bundled_copy(self, raw_csv, dataset):
        from_csv = DatasetLoader().load("csv", raw_csv)
        pd.testing.assert_frame_equal(from_csv["df"], dataset["df"])

    def test_missing_column_is_fatal(self):
        raw = bundled_frame().drop(columns=["texture_worst"])
        with pytest.raises(DatasetSchemaError, match="texture_worst"):
            clean(raw)

    def test_missing_id_is_fatal(self):
        with pytest.raises(DatasetSchemaError):
            clean(bundled_frame().drop(columns=["id"]))

    def test_unknown_label_code_is_fatal(self):
        raw = bundled_frame()
        raw.loc[0, "diagnosis"] = "X"
        with pytest.raises(DatasetSchemaError, match="X"):
            clean(raw)

    def test_non_numeric_feature_is_fatal(self):
        raw = bundled_frame()
        raw["area_mean"] = raw["area_mean"].astype(str) + "mm"
        with pytest.raises(DatasetSchemaError, match="area_mean"):
            clean(raw)

    def test_unknown_source(self):
        with pytest.raises(ValueError, match="Unknown source"):
            DatasetLoader().load("nope")

    def test_path_only_for_csv(self, raw_csv):
        with pytest.raises(ValueError):
            DatasetLoader().load("sklearn", raw_csv)

    def test_csv_needs_a_path(self):
        with pytest.raises(ValueError, match="needs a file path"):
            DatasetLoader().load("csv")


class TestSplit:
    def test_holdout_size(self, dataset):
        split = Preprocessor(train_fraction=0.8, random_state=1).split(dataset)
        assert len(split["test_df"]) in (113, 114)
        assert len(split["train_df"]) + len(split["test_df"]) == 569

    @pytest.mark.parametrize("fraction,seed", [(0.8, 1), (0.7, 3), (0.5, 42)])
    def test_stratified_proportions(self, dataset, fraction, seed):
        split = Preprocessor(train_fraction=fraction, random_state=seed).split(dataset)
        n = len(dataset["df"])
        overall = encode_labels(dataset["df"]["diagnosis"]).mean()

        assert len(split["test_df"]) / n == pytest.approx(1 - fraction, abs=1.0 / n + 1e-9)
        assert split["y_train"].mean() == pytest.approx(overall, abs=0.01)
        assert split["y_test"].mean() == pytest.approx(overall, abs=0.02)

    def test_partition_is_disjoint_and_complete(self, dataset):
        split = Preprocessor().split(dataset)
        train, test = set(split["train_index"]), set(split["test_index"])
        assert train.isdisjoint(test)
        assert train | test == set(dataset["df"].index)

        rebuilt = pd.concat([split["train_df"], split["test_df"]]).sort_index()
        pd.testing.assert_frame_equal(rebuilt, dataset["df"])

    def test_same_seed_same_partition(self, dataset):
        a = Preprocessor(random_state=5).split(dataset)
        b = Preprocessor(random_state=5).split(dataset)
        np.testing.assert_array_equal(a["test_index"], b["test_index"])

    def test_different_seed_different_partition(self, dataset):
        a = Preprocessor(random_state=5).split(dataset)
        b = Preprocessor(random_state=6).split(dataset)
        assert set(a["test_index"]) != set(b["test_index"])

    @pytest.mark.parametrize("fraction", [0.0, 1.0, 1.5])
    def test_invalid_fraction(self, fraction):
        with pytest.raises(ValueError):
            Preprocessor(train_fraction=fraction)


class TestCollinearity:
    def test_no_retained_pair_above_cutoff(self, dataset):
        df = dataset["df"]
        retained = reduce_collinearity(df, FEATURE_NAMES, cutoff=0.9)
        corr = df[retained].corr().abs().to_numpy(copy=True)
        np.fill_diagonal(corr, 0.0)
        assert corr.max() <= 0.9

    def test_drops_something_and_keeps_order(self, dataset):
        retained = reduce_collinearity(dataset["df"], FEATURE_NAMES, cutoff=0.9)
        assert 0 < len(retained) < len(FEATURE_NAMES)
        assert retained == [f for f in FEATURE_NAMES if f in retained]
        # radius/perimeter/area means are near-duplicates
        assert len({"radius_mean", "perimeter_mean", "area_mean"} & set(retained)) <= 1

    def test_cutoff_above_all_correlations_keeps_everything(self, dataset):
        assert reduce_collinearity(dataset["df"], FEATURE_NAMES, cutoff=1.0) == FEATURE_NAMES


def test_encode_labels():
    np.testing.assert_array_equal(
        encode_labels(["Benign", "Malignant", "Malignant"]), [0, 1, 1],
    )
