from .config import SyntheticConfig, TrainConfig
from .data import Dataset, Movie, Rating, build_dataset, load_dataset, parse_items, parse_ratings
from .errors import (
    DataError,
    FilmrateError,
    ModelBusyError,
    ModelNotReady,
    PredictionError,
    TrainingCancelled,
    TrainingError,
    UnknownItem,
    UnknownUser,
)
from .models import MF, RatingModel
from .pipeline import Recommender
from .predict import categorize, format_stars, predict
from .synthetic import generate_dataset
from .training import EpochProgress, fit

__version__ = "0.1.0"
