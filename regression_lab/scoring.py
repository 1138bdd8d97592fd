# Scoring utilities
# RMSE/MAE/R2 for continuous targets, accuracy/Cohen's kappa for binary targets

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix, mean_absolute_error, mean_squared_error, r2_score

from .config_schema import ConfigValidationError
from .errors import InsufficientDataError

REGRESSION_METRICS = ['rmse', 'mae', 'r2']
CLASSIFICATION_METRICS = ['accuracy', 'kappa']

# Primary metric and direction used for model selection
PRIMARY_METRIC = {'regression': 'rmse', 'classification': 'accuracy'}
LOWER_IS_BETTER = {'rmse': True, 'mae': True, 'r2': False, 'accuracy': False, 'kappa': False}


def _observed_mask(observed):
    return ~pd.isnull(np.asarray(observed, dtype=object))


def rmse(predicted, observed):
    """Root-mean-squared error; rows with a missing observed value are excluded."""
    predicted = np.asarray(predicted, dtype=float)
    mask = _observed_mask(observed)
    if not mask.any():
        raise InsufficientDataError("No rows with an observed target to score")
    observed = np.asarray(observed, dtype=object)[mask].astype(float)
    return float(np.sqrt(mean_squared_error(observed, predicted[mask])))


def accuracy(predicted, observed):
    """Fraction of exact label matches."""
    predicted = np.asarray(predicted, dtype=object)
    observed = np.asarray(observed, dtype=object)
    if len(observed) == 0:
        raise InsufficientDataError("No rows to score")
    return float(np.mean(predicted == observed))


def cohen_kappa(predicted, observed, labels):
    """
    Cohen's kappa from the 2x2 confusion matrix.

    kappa = (p_o - p_e) / (1 - p_e). When chance agreement is already 1
    (both label vectors constant and identical) agreement is perfect and
    kappa is 1.0.
    """
    cm = confusion_matrix(list(observed), list(predicted), labels=list(labels)).astype(float)
    total = cm.sum()
    if total == 0:
        raise InsufficientDataError("No rows to score")
    p_observed = np.trace(cm) / total
    p_expected = float((cm.sum(axis=0) * cm.sum(axis=1)).sum() / total ** 2)
    if np.isclose(p_expected, 1.0):
        return 1.0
    return float((p_observed - p_expected) / (1.0 - p_expected))


def regression_metrics(predicted, observed):
    predicted = np.asarray(predicted, dtype=float)
    mask = _observed_mask(observed)
    if not mask.any():
        raise InsufficientDataError("No rows with an observed target to score")
    obs = np.asarray(observed, dtype=object)[mask].astype(float)
    pred = predicted[mask]
    return {
        'rmse': rmse(predicted, observed),
        'mae': float(mean_absolute_error(obs, pred)),
        # R2 is undefined on a single row or a constant target
        'r2': float(r2_score(obs, pred)) if len(obs) > 1 and np.ptp(obs) > 0 else float('nan'),
    }


def classification_metrics(predicted, observed, labels):
    mask = _observed_mask(observed)
    predicted = np.asarray(predicted, dtype=object)[mask]
    observed = np.asarray(observed, dtype=object)[mask]
    unknown = set(observed) - set(labels)
    if unknown:
        raise ConfigValidationError(
            f"Observed target values {sorted(unknown, key=str)} are outside target_levels {list(labels)}"
        )
    return {
        'accuracy': accuracy(predicted, observed),
        'kappa': cohen_kappa(predicted, observed, labels),
    }


def score_all(fitter, model, dataset, rows):
    """All metrics for a fitted model on the given rows."""
    predicted = fitter.predict(model, dataset, rows)
    observed = dataset.rows(rows)[dataset.target].to_numpy(dtype=object)
    if model.target_levels is not None:
        return classification_metrics(predicted, observed, model.target_levels)
    return regression_metrics(predicted, observed)


def score(fitter, model, dataset, rows):
    """Primary metric (RMSE or accuracy) for a fitted model on the given rows."""
    metrics = score_all(fitter, model, dataset, rows)
    return metrics[PRIMARY_METRIC[dataset.target_type]]
