"""
WDBC study orchestrator.

Runs the full analysis: data loading -> exploration -> holdout split ->
model fitting -> holdout evaluation -> leave-one-out CV -> reporting.
"""

import os
import traceback

from wdbc_study import __version__
from wdbc_study.analysis import DataExplorer, plots
from wdbc_study.config import (
    DEFAULT_OUTPUT_DIR,
    INNER_CV_FOLDS,
    PCA_COMPONENTS,
    PCA_SWEEP_MAX_COMPONENTS,
    RANDOM_SEED,
    TRAIN_FRACTION,
    ExperimentConfig,
)
from wdbc_study.data import DatasetLoader, Preprocessor, reduce_collinearity
from wdbc_study.evaluation import LeaveOneOutValidator, ModelEvaluator, Reporter
from wdbc_study.models import (
    PenalizedFitter,
    component_sweep,
    fit_logistic,
    fit_pca_logistic,
    pca_variance,
)
from wdbc_study.utils import get_logger

log = get_logger("wdbc_study")

DISCLAIMER = (
    "DISCLAIMER: This is a statistical analysis of a public research "
    "dataset. It does NOT provide medical diagnoses or replace professional "
    "medical advice. All outputs are for research and educational purposes only."
)


class StudyPipeline:
    """
    Runs the tumor classification study end-to-end.

    Stages:
        1. Data Loading     - read and clean the WDBC table
        2. Exploration      - summary statistics, class balance, correlations
        3. Holdout Split    - seeded stratified train/test partition
        4. Model Fitting    - ridge, lasso, saturated/reduced logistic, PCA-logistic
        5. Evaluation       - holdout confusion matrices and metrics
        6. LOOCV            - leave-one-out refits of ridge, lasso, PCA-logistic
        7. Reporting        - printed summary and JSON report
    """

    def __init__(
        self,
        source: str = "sklearn",
        data_path: str | None = None,
        seed: int = RANDOM_SEED,
        train_fraction: float = TRAIN_FRACTION,
        cv_folds: int = INNER_CV_FOLDS,
        pca_components: int = PCA_COMPONENTS,
        output_dir: str = DEFAULT_OUTPUT_DIR,
        n_jobs: int | None = None,
        run_loocv: bool = True,
        retune_lambdas: bool = False,
        make_plots: bool = True,
    ):
        self.source = "csv" if data_path is not None else source
        self.data_path = data_path
        self.seed = seed
        self.train_fraction = train_fraction
        self.cv_folds = cv_folds
        self.pca_components = pca_components
        self.output_dir = output_dir
        self.n_jobs = n_jobs
        self.run_loocv = run_loocv
        self.retune_lambdas = retune_lambdas
        self.make_plots = make_plots

        # Pipeline state
        self._dataset = None
        self._eda_report = None
        self._split = None
        self._reduced_features = None
        self._models = {}
        self._diagnostics = {}
        self._experiment_config = None
        self._holdout_results = None
        self._loocv_result = None
        self._report = None

    @property
    def stages(self) -> list:
        stages = [
            ("Data Loading", self._stage_load),
            ("Exploration", self._stage_explore),
            ("Holdout Split", self._stage_split),
            ("Model Fitting", self._stage_fit),
            ("Evaluation", self._stage_evaluate),
        ]
        if self.run_loocv:
            stages.append(("Leave-One-Out CV", self._stage_loocv))
        stages.append(("Report Generation", self._stage_report))
        return stages

    def run(self) -> dict:
        """Execute every stage in order and return the final report dict."""
        log.info("=" * 60)
        log.info("WDBC TUMOR CLASSIFICATION STUDY v%s", __version__)
        log.info("=" * 60)
        log.info(DISCLAIMER)

        stages = self.stages
        for i, (stage_name, stage_fn) in enumerate(stages, start=1):
            log.info("-" * 60)
            log.info("STAGE %d/%d: %s", i, len(stages), stage_name)
            log.info("-" * 60)
            try:
                stage_fn()
            except Exception:
                log.error("Stage '%s' failed:\n%s", stage_name, traceback.format_exc())
                raise

        return self._report

    @property
    def figures_dir(self) -> str:
        return os.path.join(self.output_dir, "figures")

    def _stage_load(self):
        self._dataset = DatasetLoader().load(self.source, self.data_path)

    def _stage_explore(self):
        self._eda_report = DataExplorer().run(self._dataset)
        if self.make_plots:
            plots.plot_label_distribution(
                self._dataset["df"], self._dataset["target_name"], self.figures_dir,
            )

    def _stage_split(self):
        # screened over the full table, before any split
        self._reduced_features = reduce_collinearity(
            self._dataset["df"], self._dataset["feature_names"],
        )
        preprocessor = Preprocessor(
            train_fraction=self.train_fraction, random_state=self.seed,
        )
        self._split = preprocessor.split(self._dataset)

    def _stage_fit(self):
        features = self._dataset["feature_names"]
        train_df = self._split["train_df"]
        y_train = self._split["y_train"]

        for kind in ("ridge", "lasso"):
            fitter = PenalizedFitter(kind, cv_folds=self.cv_folds, random_state=self.seed)
            model = fitter.fit(train_df, y_train, features)
            self._models[kind] = model
            if self.make_plots:
                plots.plot_cv_curve(
                    model.cv_curve, kind, model.penalty_lambda, model.lambda_1se,
                    self.figures_dir,
                )

        self._models["saturated"] = fit_logistic(
            train_df, y_train, features, name="saturated",
        )
        self._models["reduced"] = fit_logistic(
            train_df, y_train, self._reduced_features, name="reduced",
        )

        variance = pca_variance(train_df, features, self.pca_components)
        sweep = component_sweep(
            train_df, y_train, features,
            max_components=min(PCA_SWEEP_MAX_COMPONENTS, len(features)),
            cv_folds=self.cv_folds, random_state=self.seed,
        )
        self._diagnostics = {"pca_variance": variance, "component_sweep": sweep}
        if self.make_plots:
            plots.plot_pca_variance(variance, self.figures_dir)
            plots.plot_component_sweep(sweep, self.pca_components, self.figures_dir)

        self._models["pca_logistic"] = fit_pca_logistic(
            train_df, y_train, features, self.pca_components,
        )

        self._experiment_config = ExperimentConfig(
            ridge_lambda=self._models["ridge"].penalty_lambda,
            lasso_lambda=self._models["lasso"].penalty_lambda,
            pca_component_count=self.pca_components,
        )
        log.info("Experiment config: %s", self._experiment_config)

    def _stage_evaluate(self):
        self._holdout_results = ModelEvaluator().run(
            self._models, self._split["test_df"], self._dataset["target_name"],
        )
        if self.make_plots:
            plots.plot_confusion_matrices(
                self._holdout_results["confusion"], "Holdout test set",
                self.figures_dir, "confusion_holdout.png",
            )

    def _stage_loocv(self):
        validator = LeaveOneOutValidator(
            self._experiment_config,
            self._dataset["feature_names"],
            n_jobs=self.n_jobs,
            retune_lambdas=self.retune_lambdas,
            cv_folds=self.cv_folds,
            random_state=self.seed,
        )
        self._loocv_result = validator.run(
            self._dataset["df"], self._dataset["target_name"],
        )
        if self.make_plots:
            plots.plot_confusion_matrices(
                self._loocv_result.confusion, "Leave-one-out CV",
                self.figures_dir, "confusion_loocv.png",
            )

    def _model_summary(self) -> dict:
        summary = {}
        for name, model in self._models.items():
            entry = {
                "features": model.feature_names,
                "coefficients": model.coefficients,
                "n_zero_coefficients": model.n_zero_coefficients,
                "converged": model.converged,
            }
            if model.penalty_lambda is not None:
                entry["lambda_min"] = model.penalty_lambda
                entry["lambda_1se"] = model.lambda_1se
            summary[name] = entry
        summary["pca_diagnostics"] = self._diagnostics
        return summary

    def _stage_report(self):
        reporter = Reporter()
        self._report = reporter.generate(
            dataset_metadata=self._dataset["metadata"],
            eda_report=self._eda_report,
            split_info=self._split["split_info"],
            model_summary=self._model_summary(),
            holdout_results=self._holdout_results["evaluations"],
            experiment_config=self._experiment_config.to_dict(),
            loocv_results=self._loocv_result.to_dict() if self._loocv_result else None,
        )

        summary = reporter.print_summary(self._report)
        print("\n" + summary)

        os.makedirs(self.output_dir, exist_ok=True)
        json_path = os.path.join(self.output_dir, "report.json")
        reporter.save_json(self._report, json_path)
        log.info("Full JSON report saved to: %s", json_path)
