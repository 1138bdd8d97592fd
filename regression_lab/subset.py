# Greedy subset selection over design columns
# Criterion is the training residual sum of squares of an OLS fit with intercept.

import numpy as np


def residual_sum_of_squares(X, y, columns):
    """RSS of the least-squares fit of y on an intercept plus the given columns."""
    design = np.column_stack([np.ones(len(y)), X[:, list(columns)]])
    beta, _, _, _ = np.linalg.lstsq(design, y, rcond=None)
    residuals = y - design @ beta
    return float(residuals @ residuals)


def _best_addition(X, y, selected):
    candidates = [j for j in range(X.shape[1]) if j not in selected]
    scores = [(residual_sum_of_squares(X, y, selected + [j]), j) for j in candidates]
    return min(scores)


def forward_select(X, y, n_variables):
    """Add, one at a time, the column that lowers RSS the most."""
    selected = []
    while len(selected) < n_variables:
        _, j = _best_addition(X, y, selected)
        selected.append(j)
    return selected


def backward_select(X, y, n_variables):
    """Start from every column and drop the one whose removal raises RSS the least."""
    selected = list(range(X.shape[1]))
    while len(selected) > n_variables:
        scores = [(residual_sum_of_squares(X, y, [c for c in selected if c != j]), j)
                  for j in selected]
        _, drop = min(scores)
        selected.remove(drop)
    return selected


def stepwise_select(X, y, n_variables):
    """
    Forward addition with sequential replacement.

    After each addition, a retained column is swapped for an outside column
    whenever the swap strictly lowers RSS; swapping stops at a local optimum.
    """
    selected = []
    while len(selected) < n_variables:
        _, j = _best_addition(X, y, selected)
        selected.append(j)
        selected = _sequential_replacement(X, y, selected)
    return selected


def _sequential_replacement(X, y, selected):
    current = residual_sum_of_squares(X, y, selected)
    improved = True
    while improved:
        improved = False
        for position in range(len(selected)):
            others = selected[:position] + selected[position + 1:]
            rss, j = _best_addition(X, y, others)
            # Tolerance guards against cycling on floating-point noise
            if rss < current - 1e-12 * max(current, 1.0):
                selected = others[:position] + [j] + others[position:]
                current = rss
                improved = True
    return selected


SEARCHES = {
    'forward_selection': forward_select,
    'backward_selection': backward_select,
    'stepwise': stepwise_select,
}
