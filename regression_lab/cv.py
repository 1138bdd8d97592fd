# Cross-validation utilities

from dataclasses import dataclass, field
from typing import Dict

import numpy as np
from joblib import Parallel, delayed
from sklearn.model_selection import KFold, StratifiedKFold

from .errors import EvaluationError, InsufficientDataError
from .fitters import build_fitter
from .models import ModelConfiguration
from .scoring import score_all


@dataclass(frozen=True, eq=False)
class Fold:
    """One CV round: `validation` is this fold, `train` the union of the others."""
    index: int
    train: np.ndarray
    validation: np.ndarray
    repeat: int = 0


@dataclass(frozen=True)
class ScoreRecord:
    """Metrics of one configuration on one fold."""
    configuration: ModelConfiguration
    repeat: int
    fold: int
    metrics: Dict[str, float] = field(default_factory=dict)
    n_terms: int = 0
    n_train: int = 0
    n_validation: int = 0

    @property
    def label(self):
        return self.configuration.label


def _validate_cv_split(train_idx, val_idx, all_idx):
    """
    Validate CV split integrity.

    Assertions:
    - Train/val indices are disjoint
    - Together they cover every input index
    """
    train_set = set(train_idx)
    val_set = set(val_idx)
    if not train_set.isdisjoint(val_set):
        overlap = train_set.intersection(val_set)
        raise ValueError(f"CV LEAK: Train/val indices overlap! {len(overlap)} shared indices")
    if len(train_set) + len(val_set) != len(all_idx):
        raise ValueError("CV split does not cover every training index")
    return True


def make_folds(indices, k, seed, labels=None, repeat=0):
    """
    Partition `indices` into k disjoint folds.

    Fold sizes differ by at most one; the remainder goes one extra index to
    each of the first folds. When `labels` (aligned with `indices`) are given
    the folds are stratified by label instead.
    """
    if k < 2:
        raise ValueError(f"Number of folds must be >= 2, got {k}")

    indices = np.asarray(indices)
    if len(indices) < k:
        raise InsufficientDataError(f"Cannot make {k} folds from {len(indices)} rows")

    if labels is not None:
        levels, counts = np.unique(np.asarray(labels).astype(str), return_counts=True)
        if counts.max() < k:
            raise InsufficientDataError(
                f"Cannot make {k} stratified folds: the largest of {len(levels)} label "
                f"groups has only {counts.max()} rows"
            )
        splitter = StratifiedKFold(n_splits=k, shuffle=True, random_state=seed)
        splits = splitter.split(indices, np.asarray(labels))
    else:
        splitter = KFold(n_splits=k, shuffle=True, random_state=seed)
        splits = splitter.split(indices)

    folds = []
    for fold_idx, (train_pos, val_pos) in enumerate(splits):
        _validate_cv_split(train_pos, val_pos, indices)
        folds.append(Fold(fold_idx, np.sort(indices[train_pos]), np.sort(indices[val_pos]), repeat))
    return folds


def make_repeated_folds(indices, k, seed, n_repeats=1, labels=None):
    """Fold sets for repeated CV; repeat r uses seed + r."""
    folds = []
    for repeat in range(n_repeats):
        folds.extend(make_folds(indices, k, seed + repeat, labels=labels, repeat=repeat))
    return folds


def evaluate_fold(configuration, dataset, fold):
    """Fit on the fold's training rows and score on its validation rows."""
    fitter = build_fitter(configuration)
    try:
        model = fitter.fit(dataset, fold.train)
        metrics = score_all(fitter, model, dataset, fold.validation)
    except EvaluationError as e:
        raise e.with_context(configuration.label, fold.index)
    return ScoreRecord(
        configuration=configuration,
        repeat=fold.repeat,
        fold=fold.index,
        metrics=metrics,
        n_terms=model.n_terms,
        n_train=len(fold.train),
        n_validation=len(fold.validation),
    )


def _run_round(configuration, dataset, fold):
    """Parallel worker: returns (record, None) or (None, error)."""
    try:
        return evaluate_fold(configuration, dataset, fold), None
    except EvaluationError as e:
        return None, e


def cross_validate(dataset, configurations, folds, n_jobs=1):
    """
    Evaluate every configuration on every fold.

    A failing fold aborts only its own configuration; the error (annotated
    with configuration and fold) goes into `failures` and that
    configuration's records are discarded.

    Returns:
        records: list of ScoreRecord for configurations that completed
        failures: dict label -> EvaluationError
    """
    n_rounds = len({(f.repeat, f.index) for f in folds})
    print(f"Running {len(configurations)} configurations x {n_rounds} CV rounds...")

    if n_jobs == 1:
        outcomes = {}
        for configuration in configurations:
            results = []
            for fold in folds:
                record, error = _run_round(configuration, dataset, fold)
                results.append((record, error))
                if error is not None:
                    break
            outcomes[configuration] = results
    else:
        pairs = [(c, f) for c in configurations for f in folds]
        results = Parallel(n_jobs=n_jobs)(
            delayed(_run_round)(c, dataset, f) for c, f in pairs
        )
        outcomes = {c: [] for c in configurations}
        for (configuration, _), result in zip(pairs, results):
            outcomes[configuration].append(result)

    records = []
    failures = {}
    for configuration in configurations:
        results = outcomes[configuration]
        errors = [error for _, error in results if error is not None]
        if errors:
            failures[configuration.label] = errors[0]
            print(f"  {configuration.label:40s} FAILED: {errors[0]}")
            continue
        config_records = [record for record, _ in results]
        records.extend(config_records)
        print(f"  {configuration.label:40s} " + _format_means(config_records))

    return records, failures


def _format_means(records):
    keys = records[0].metrics.keys()
    parts = []
    for key in keys:
        values = [r.metrics[key] for r in records]
        parts.append(f"{key}={np.nanmean(values):.4f} ± {np.nanstd(values):.4f}")
    return " | ".join(parts)
