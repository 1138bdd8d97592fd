# Model selection pipeline
# partition -> folds -> fit/score every configuration -> select -> refit -> holdout score

from dataclasses import dataclass
from typing import Dict, List

import numpy as np
import pandas as pd

from .cv import ScoreRecord, cross_validate, make_repeated_folds
from .errors import NoViableConfigurationError
from .fitters import build_fitter
from .models import FittedModel, ModelConfiguration, expand_configurations
from .partition import Split, partition
from .scoring import PRIMARY_METRIC, score_all
from .selection import select_best, summarize


@dataclass
class SelectionReport:
    summary: pd.DataFrame
    records: List[ScoreRecord]
    failures: Dict[str, Exception]
    best_configuration: ModelConfiguration
    final_model: FittedModel
    holdout_metrics: Dict[str, float]
    split: Split
    primary_metric: str = 'rmse'

    def coefficients(self):
        """Final model coefficients, intercept first."""
        out = {'(Intercept)': self.final_model.intercept}
        out.update(self.final_model.coefficients)
        return out

    def to_records(self):
        """Summary rows as plain key/value dicts (NaN -> None)."""
        rows = []
        for row in self.summary.to_dict(orient='records'):
            rows.append({k: (None if isinstance(v, float) and np.isnan(v) else v)
                         for k, v in row.items()})
        return rows


def run_selection(dataset, config):
    """
    Run cross-validated model selection on a dataset.

    Args:
        dataset: Dataset with declared columns
        config: validated experiment config (see config_schema)

    Returns:
        SelectionReport
    """
    seed = config['experiment']['seed']
    cv_config = config['cross_validation']
    n_splits = cv_config['n_splits']
    n_repeats = cv_config.get('n_repeats', 1)
    n_jobs = cv_config.get('n_jobs', 1)

    split = partition(dataset, dataset.target, config['split']['train_fraction'], seed)
    print(f"Split: {len(split.train)} train / {len(split.holdout)} holdout rows")

    labels = None
    if dataset.is_classification:
        labels = dataset.y.to_numpy()[split.train]

    folds = make_repeated_folds(split.train, n_splits, seed, n_repeats=n_repeats, labels=labels)

    configurations = expand_configurations(config)
    records, failures = cross_validate(dataset, configurations, folds, n_jobs=n_jobs)

    summary = summarize(records, failures)
    if not records:
        details = "; ".join(f"{label}: {error}" for label, error in failures.items())
        raise NoViableConfigurationError(f"Every configuration failed: {details}")

    best = select_best(records)
    print(f"\nSelected: {best.label}")

    # Refit on the full training split and score once on the holdout rows
    fitter = build_fitter(best)
    final_model = fitter.fit(dataset, split.train)
    holdout_metrics = score_all(fitter, final_model, dataset, split.holdout)

    return SelectionReport(
        summary=summary,
        records=records,
        failures=failures,
        best_configuration=best,
        final_model=final_model,
        holdout_metrics=holdout_metrics,
        split=split,
        primary_metric=PRIMARY_METRIC[dataset.target_type],
    )
