# filmrate/errors.py


class FilmrateError(Exception):
    """Base class for every error raised by filmrate."""


class DataError(FilmrateError):
    """Rating or item text is empty, malformed or breaks the Dataset invariants."""


class TrainingError(FilmrateError):
    """Invalid hyperparameters or an untrainable dataset."""


class ModelBusyError(TrainingError):
    """A second fit was attempted while the same model is still training."""


class TrainingCancelled(TrainingError):
    """Training was cancelled at an epoch boundary."""


class PredictionError(FilmrateError):
    kind = "prediction_error"

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.context = context


class UnknownUser(PredictionError):
    kind = "unknown_user"


class UnknownItem(PredictionError):
    kind = "unknown_item"


class ModelNotReady(PredictionError):
    kind = "model_not_ready"
