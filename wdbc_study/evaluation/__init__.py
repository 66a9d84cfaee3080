from wdbc_study.evaluation.evaluator import ConfusionMatrix, ModelEvaluator, metrics_table
from wdbc_study.evaluation.loocv import FoldAccumulator, LeaveOneOutValidator, LOOCVResult
from wdbc_study.evaluation.reporter import Reporter

__all__ = [
    "ConfusionMatrix",
    "ModelEvaluator",
    "metrics_table",
    "FoldAccumulator",
    "LeaveOneOutValidator",
    "LOOCVResult",
    "Reporter",
]
