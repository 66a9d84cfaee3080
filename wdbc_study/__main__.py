"""CLI entry point: python -m wdbc_study"""

import argparse
import sys

from wdbc_study.config import (
    DEFAULT_OUTPUT_DIR,
    INNER_CV_FOLDS,
    PCA_COMPONENTS,
    RANDOM_SEED,
    TRAIN_FRACTION,
)
from wdbc_study.data.loader import DATASET_REGISTRY
from wdbc_study.pipeline import StudyPipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "WDBC tumor classification study - ridge, lasso, logistic and "
            "PCA-logistic models with holdout and leave-one-out evaluation."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m wdbc_study\n"
            "  python -m wdbc_study --data data/data.csv\n"
            "  python -m wdbc_study --skip-loocv --no-plots\n"
            "  python -m wdbc_study --n-jobs -1 --retune-lambdas\n"
        ),
    )
    parser.add_argument(
        "--data",
        type=str,
        default=None,
        help="Path to a WDBC CSV export (implies --source csv; required for it)",
    )
    parser.add_argument(
        "--source",
        type=str,
        default="sklearn",
        choices=list(DATASET_REGISTRY.keys()),
        help="Data source when --data is not given (default: sklearn)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=RANDOM_SEED,
        help=f"Seed for the split and inner CV folds (default: {RANDOM_SEED})",
    )
    parser.add_argument(
        "--train-fraction",
        type=float,
        default=TRAIN_FRACTION,
        help=f"Fraction of rows used for training (default: {TRAIN_FRACTION})",
    )
    parser.add_argument(
        "--cv-folds",
        type=int,
        default=INNER_CV_FOLDS,
        help=f"Folds for the lambda sweep and component sweep (default: {INNER_CV_FOLDS})",
    )
    parser.add_argument(
        "--pca-components",
        type=int,
        default=PCA_COMPONENTS,
        help=f"Principal components kept by the PCA-logistic model (default: {PCA_COMPONENTS})",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=DEFAULT_OUTPUT_DIR,
        help=f"Directory for figures and report.json (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--n-jobs",
        type=int,
        default=None,
        help="Parallel workers for LOOCV folds (default: sequential)",
    )
    parser.add_argument(
        "--skip-loocv",
        action="store_true",
        help="Stop after the holdout evaluation",
    )
    parser.add_argument(
        "--retune-lambdas",
        action="store_true",
        help="Re-select ridge/lasso lambdas inside every LOOCV fold",
    )
    parser.add_argument(
        "--no-plots",
        action="store_true",
        help="Do not write figures",
    )
    parser.add_argument(
        "--list-sources",
        action="store_true",
        help="List available data sources and exit",
    )
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_sources:
        print("Available data sources:")
        for name, info in DATASET_REGISTRY.items():
            print(f"  {name:<10} {info['description']}")
        return

    if args.source == "csv" and args.data is None:
        parser.error("--source csv requires --data PATH")

    pipeline = StudyPipeline(
        source=args.source,
        data_path=args.data,
        seed=args.seed,
        train_fraction=args.train_fraction,
        cv_folds=args.cv_folds,
        pca_components=args.pca_components,
        output_dir=args.output_dir,
        n_jobs=args.n_jobs,
        run_loocv=not args.skip_loocv,
        retune_lambdas=args.retune_lambdas,
        make_plots=not args.no_plots,
    )

    try:
        pipeline.run()
    except Exception as e:
        print(f"\nAnalysis failed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
