# Train/holdout partitioning

from typing import NamedTuple

import numpy as np
from sklearn.model_selection import train_test_split

from .errors import EmptyDatasetError, InsufficientDataError, InvalidFractionError


class Split(NamedTuple):
    """Disjoint, exhaustive train/holdout positional indices (sorted)."""
    train: np.ndarray
    holdout: np.ndarray


def partition(dataset, target_field, train_fraction, seed):
    """
    Split a dataset into training and holdout indices.

    Classification targets are stratified by target level; continuous
    targets are sampled uniformly. The seed is passed explicitly to the
    splitter, so equal inputs always give the same split.
    """
    if not 0 < train_fraction < 1:
        raise InvalidFractionError(f"train_fraction must be in (0, 1), got {train_fraction}")

    n = len(dataset)
    if n == 0:
        raise EmptyDatasetError("Cannot partition an empty dataset")
    if n < 2:
        raise InsufficientDataError(f"Need at least 2 records to partition, got {n}")

    # Same rounding as train_test_split with a float train_size; the holdout
    # side always keeps at least one record
    n_train = int(np.floor(train_fraction * n))
    n_holdout = n - n_train
    if n_train == 0:
        raise InsufficientDataError(
            f"train_fraction {train_fraction} of {n} records leaves no training records; "
            f"both sides must be non-empty"
        )

    indices = np.arange(n)
    stratify = None
    if dataset.is_classification:
        stratify = dataset.frame[target_field].to_numpy()
        _check_stratifiable(stratify, n_train, n_holdout)

    train_idx, holdout_idx = train_test_split(
        indices,
        train_size=train_fraction,
        random_state=seed,
        shuffle=True,
        stratify=stratify,
    )

    if np.intersect1d(train_idx, holdout_idx).size or len(train_idx) + len(holdout_idx) != n:
        raise ValueError("SPLIT LEAK: train/holdout indices are not a partition of the dataset")

    return Split(np.sort(train_idx), np.sort(holdout_idx))


def _check_stratifiable(labels, n_train, n_holdout):
    """Every level needs a row on each side of a stratified split."""
    levels, counts = np.unique(labels.astype(str), return_counts=True)
    rare = [str(level) for level, count in zip(levels, counts) if count < 2]
    if rare:
        raise InsufficientDataError(
            f"Target levels {rare} have a single record; stratified partitioning needs at least 2"
        )
    if min(n_train, n_holdout) < len(levels):
        raise InsufficientDataError(
            f"A stratified split of {len(levels)} target levels needs at least {len(levels)} "
            f"records on each side, got {n_train} training and {n_holdout} holdout"
        )
