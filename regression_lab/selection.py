# Model selection
# Per-configuration CV summaries, ranking and the simplest-best choice

from typing import Dict, List

import numpy as np
import pandas as pd
from scipy.stats import sem

from .errors import NoViableConfigurationError
from .scoring import LOWER_IS_BETTER, PRIMARY_METRIC

# Relative tolerance under which two mean scores count as tied
TIE_RTOL = 1e-9
TIE_ATOL = 1e-12


def _group(records):
    grouped = {}
    for record in records:
        grouped.setdefault(record.configuration, []).append(record)
    return grouped


def _primary_metric(records):
    if 'rmse' in records[0].metrics:
        return PRIMARY_METRIC['regression']
    return PRIMARY_METRIC['classification']


def summarize(records, failures=None) -> pd.DataFrame:
    """
    Aggregate fold records into one row per configuration.

    Each metric gets mean, std and standard error across folds. Failed
    configurations are listed with their error and no metrics.
    """
    rows = []
    for configuration, config_records in _group(records).items():
        row = {
            'configuration': configuration.label,
            'method': configuration.method.value,
            'hyperparameter': configuration.hyperparameter,
            'n_folds': len(config_records),
            'n_terms': float(np.mean([r.n_terms for r in config_records])),
        }
        for metric in config_records[0].metrics:
            values = np.array([r.metrics[metric] for r in config_records], dtype=float)
            row[f'{metric}_mean'] = float(np.nanmean(values)) if not np.isnan(values).all() else np.nan
            row[f'{metric}_std'] = float(np.nanstd(values)) if not np.isnan(values).all() else np.nan
            row[f'{metric}_sem'] = float(sem(values, nan_policy='omit')) if len(values) > 1 else np.nan
        row['error'] = None
        rows.append(row)

    for label, error in (failures or {}).items():
        rows.append({'configuration': label, 'error': str(error)})

    return pd.DataFrame(rows)


def rank_configurations(records) -> List[Dict]:
    """
    Order configurations from best to worst.

    Lower mean RMSE (regression) or higher mean accuracy (classification)
    wins; scores within tolerance tie and the simpler configuration goes
    first: fewer retained terms, then stronger shrinkage.
    """
    if not records:
        raise NoViableConfigurationError("No successful configurations to select from")

    metric = _primary_metric(records)
    sign = 1.0 if LOWER_IS_BETTER[metric] else -1.0

    entries = []
    for configuration, config_records in _group(records).items():
        entries.append({
            'configuration': configuration,
            'score': float(np.mean([r.metrics[metric] for r in config_records])),
            'n_terms': float(np.mean([r.n_terms for r in config_records])),
        })

    def simplicity(entry):
        configuration = entry['configuration']
        penalty = configuration.penalty if configuration.penalty is not None else 0.0
        return (entry['n_terms'], -penalty, configuration.label)

    ordered = sorted(entries, key=lambda e: (sign * e['score'], simplicity(e)))

    # Re-order the leading run of tied scores by simplicity alone
    best_score = ordered[0]['score']
    is_tied = [np.isclose(e['score'], best_score, rtol=TIE_RTOL, atol=TIE_ATOL) for e in ordered]
    tied = [e for e, t in zip(ordered, is_tied) if t]
    rest = [e for e, t in zip(ordered, is_tied) if not t]
    return sorted(tied, key=simplicity) + rest


def select_best(score_records):
    """Best configuration from CV score records."""
    return rank_configurations(score_records)[0]['configuration']
