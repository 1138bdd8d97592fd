# Regression lab package
# Cross-validated selection and holdout evaluation of linear models

from .config_schema import validate_config, ConfigValidationError
from .errors import (
    EvaluationError,
    InvalidFractionError,
    EmptyDatasetError,
    InsufficientDataError,
    SingularMatrixError,
    MissingValueError,
    NoViableConfigurationError,
)
from .io import load_config, save_results, create_run_dir, save_data_profile
from .data import Dataset, load_dataset, dataset_from_config, validate_data_integrity
from .partition import Split, partition
from .cv import Fold, ScoreRecord, make_folds, make_repeated_folds, cross_validate
from .models import Method, ModelConfiguration, FittedModel, expand_configurations
from .fitters import build_fitter
from .scoring import score, score_all, rmse, accuracy, cohen_kappa
from .selection import summarize, select_best
from .pipeline import SelectionReport, run_selection

__all__ = [
    'validate_config',
    'ConfigValidationError',
    'EvaluationError',
    'InvalidFractionError',
    'EmptyDatasetError',
    'InsufficientDataError',
    'SingularMatrixError',
    'MissingValueError',
    'NoViableConfigurationError',
    'load_config',
    'save_results',
    'create_run_dir',
    'save_data_profile',
    'Dataset',
    'load_dataset',
    'dataset_from_config',
    'validate_data_integrity',
    'Split',
    'partition',
    'Fold',
    'ScoreRecord',
    'make_folds',
    'make_repeated_folds',
    'cross_validate',
    'Method',
    'ModelConfiguration',
    'FittedModel',
    'expand_configurations',
    'build_fitter',
    'score',
    'score_all',
    'rmse',
    'accuracy',
    'cohen_kappa',
    'summarize',
    'select_best',
    'SelectionReport',
    'run_selection',
]
