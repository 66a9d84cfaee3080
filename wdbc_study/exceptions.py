"""Error types raised by the study."""


class DatasetSchemaError(ValueError):
    """The input table is missing expected columns or holds invalid values."""


class FoldFitError(RuntimeError):
    """A leave-one-out fold could not be fit; the whole run is aborted."""

    def __init__(self, fold_index: int, message: str):
        self.fold_index = fold_index
        self.message = message
        super().__init__(fold_index, message)

    def __str__(self):
        return f"fold {self.fold_index}: {self.message}"
