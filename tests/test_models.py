import logging
import warnings

import numpy as np
import pandas as pd
import pytest

from wdbc_study.config import FEATURE_NAMES, LAMBDA_GRID
from wdbc_study.data import Preprocessor, reduce_collinearity
from wdbc_study.models import (
    PenalizedFitter,
    component_sweep,
    fit_logistic,
    fit_pca_logistic,
    lambda_to_C,
    pca_variance,
)


@pytest.fixture(scope="module")
def split(dataset):
    return Preprocessor(train_fraction=0.8, random_state=1).split(dataset)


@pytest.fixture(scope="module")
def ridge(split):
    return PenalizedFitter("ridge", random_state=1).fit(
        split["train_df"], split["y_train"], FEATURE_NAMES,
    )


@pytest.fixture(scope="module")
def lasso(split):
    return PenalizedFitter("lasso", random_state=1).fit(
        split["train_df"], split["y_train"], FEATURE_NAMES,
    )


def test_lambda_to_C():
    assert lambda_to_C(0.01, 100) == pytest.approx(1.0)
    assert lambda_to_C(0.5, 4) == pytest.approx(0.5)
    with pytest.raises(ValueError):
        lambda_to_C(0.0, 10)


def test_unknown_penalty_kind():
    with pytest.raises(ValueError, match="Unknown penalty kind"):
        PenalizedFitter("elastic")


class TestPenalized:
    def test_lasso_is_sparse(self, lasso):
        assert lasso.n_zero_coefficients >= 1
        assert lasso.n_zero_coefficients < len(FEATURE_NAMES)

    def test_ridge_is_dense(self, ridge):
        assert ridge.n_zero_coefficients == 0

    def test_lambda_comes_from_grid(self, ridge, lasso):
        for model in (ridge, lasso):
            assert model.penalty_lambda in LAMBDA_GRID
            assert model.lambda_1se >= model.penalty_lambda

    def test_cv_curve_minimum_is_selected(self, lasso):
        curve = lasso.cv_curve
        assert len(curve) == len(LAMBDA_GRID)
        assert list(curve.columns) == ["lambda", "log_lambda", "mean_deviance", "se_deviance"]
        best = curve.loc[curve["mean_deviance"].idxmin(), "lambda"]
        assert best == lasso.penalty_lambda

    def test_coefficients_are_named(self, ridge):
        assert list(ridge.coefficients.index) == FEATURE_NAMES

    def test_holdout_accuracy_is_reasonable(self, ridge, lasso, split):
        observed = split["test_df"]["diagnosis"].astype(str).to_numpy()
        for model in (ridge, lasso):
            assert (model.predict(split["test_df"]) == observed).mean() > 0.9

    def test_threshold_controls_labels(self, ridge, split):
        test_df = split["test_df"]
        assert set(ridge.predict(test_df, threshold=1.0)) == {"Benign"}
        proba = ridge.predict_proba(test_df)
        assert ((proba >= 0) & (proba <= 1)).all()
        expected = np.where(proba > 0.5, "Malignant", "Benign")
        np.testing.assert_array_equal(ridge.predict(test_df), expected)

    def test_tuning_is_deterministic(self, split):
        a = PenalizedFitter("lasso", random_state=1).tune(
            split["train_df"][FEATURE_NAMES], split["y_train"],
        )
        b = PenalizedFitter("lasso", random_state=1).tune(
            split["train_df"][FEATURE_NAMES], split["y_train"],
        )
        assert a[0] == b[0]
        pd.testing.assert_frame_equal(a[2], b[2])


class TestUnpenalized:
    def test_saturated_uses_all_features(self, split):
        model = fit_logistic(split["train_df"], split["y_train"], FEATURE_NAMES, "saturated")
        assert model.feature_names == FEATURE_NAMES
        assert model.penalty_lambda is None
        assert len(model.predict(split["test_df"])) == len(split["test_df"])

    def test_reduced_uses_named_selection(self, dataset, split):
        retained = reduce_collinearity(dataset["df"], FEATURE_NAMES)
        model = fit_logistic(split["train_df"], split["y_train"], retained, "reduced")
        assert list(model.coefficients.index) == retained
        # column order of the frame passed to predict does not matter
        shuffled = split["test_df"][list(reversed(split["test_df"].columns))]
        np.testing.assert_array_equal(model.predict(shuffled), model.predict(split["test_df"]))


class TestReduction:
    def test_variance_table(self, split):
        table = pca_variance(split["train_df"], FEATURE_NAMES)
        assert len(table) == len(FEATURE_NAMES)
        ratio = table["explained_variance_ratio"].to_numpy()
        assert (np.diff(ratio) <= 1e-12).all()
        assert table["cumulative_ratio"].iloc[-1] == pytest.approx(1.0)
        assert table["component"].iloc[0] == "PC1"

    def test_variance_logs_chosen_count(self, split, caplog):
        with caplog.at_level(logging.INFO, logger="wdbc_study.models.reduction"):
            pca_variance(split["train_df"], FEATURE_NAMES, n_components=4)
        assert "first 4 of 30 components" in caplog.text

    def test_variance_single_feature(self, split):
        table = pca_variance(split["train_df"], FEATURE_NAMES[:1])
        assert list(table["component"]) == ["PC1"]
        assert table["cumulative_ratio"].iloc[0] == pytest.approx(1.0)

    def test_component_sweep(self, split):
        sweep = component_sweep(
            split["train_df"], split["y_train"], FEATURE_NAMES, max_components=4, cv_folds=5,
        )
        assert list(sweep["n_components"]) == [1, 2, 3, 4]
        assert sweep[["accuracy", "precision", "recall"]].gt(0.7).all().all()

    def test_component_sweep_bounds(self, split):
        with pytest.raises(ValueError):
            component_sweep(split["train_df"], split["y_train"], FEATURE_NAMES, max_components=31)

    def test_pca_logistic(self, split):
        model = fit_pca_logistic(split["train_df"], split["y_train"], FEATURE_NAMES, 9)
        assert list(model.coefficients.index) == [f"PC{i}" for i in range(1, 10)]
        assert model.pipeline.named_steps["pca"].n_components_ == 9
        observed = split["test_df"]["diagnosis"].astype(str).to_numpy()
        assert (model.predict(split["test_df"]) == observed).mean() > 0.9

    def test_pca_is_fit_on_training_rows_only(self, split):
        model = fit_pca_logistic(split["train_df"], split["y_train"], FEATURE_NAMES, 9)
        scaler = model.pipeline.named_steps["scaler"]
        np.testing.assert_allclose(
            scaler.mean_, split["train_df"][FEATURE_NAMES].mean().to_numpy(),
        )


def test_fits_emit_no_deprecation_warnings(split):
    train_df, y = split["train_df"], split["y_train"]
    with warnings.catch_warnings():
        warnings.simplefilter("error", FutureWarning)
        warnings.simplefilter("error", UserWarning)
        lasso = PenalizedFitter("lasso", random_state=1).fit_at(train_df, y, FEATURE_NAMES, 0.005)
        ridge = PenalizedFitter("ridge", random_state=1).fit_at(train_df, y, FEATURE_NAMES, 0.01)
        fit_logistic(train_df, y, FEATURE_NAMES[:5])
        fit_pca_logistic(train_df, y, FEATURE_NAMES, 3)
    assert lasso.pipeline.named_steps["logit"].l1_ratio == 1.0
    assert ridge.pipeline.named_steps["logit"].l1_ratio == 0.0
