# Model configurations and fitted models

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

import numpy as np
from scipy.special import expit

from .config_schema import SHRINKAGE_METHODS, SUBSET_METHODS


class Method(str, Enum):
    OLS = 'ols'
    RIDGE = 'ridge'
    LASSO = 'lasso'
    FORWARD_SELECTION = 'forward_selection'
    BACKWARD_SELECTION = 'backward_selection'
    STEPWISE = 'stepwise'
    LOGISTIC = 'logistic'

    @property
    def is_shrinkage(self):
        return self.value in SHRINKAGE_METHODS

    @property
    def is_subset(self):
        return self.value in SUBSET_METHODS


@dataclass(frozen=True)
class ModelConfiguration:
    """
    Immutable description of one candidate model.

    `penalty` is the shrinkage strength λ (ridge/lasso) and `n_variables` the
    number of retained design columns (subset selection); other methods use
    neither. `features` restricts the predictors; None means all declared ones.
    """

    method: Method
    preprocessing: frozenset = frozenset()
    penalty: Optional[float] = None
    n_variables: Optional[int] = None
    features: Optional[Tuple[str, ...]] = None

    @property
    def center(self):
        return 'center' in self.preprocessing

    @property
    def scale(self):
        return 'scale' in self.preprocessing

    @property
    def hyperparameter(self):
        if self.method.is_shrinkage:
            return self.penalty
        if self.method.is_subset:
            return self.n_variables
        return None

    @property
    def label(self):
        name = self.method.value
        if self.method.is_shrinkage:
            name = f"{name}(lambda={self.penalty:g})"
        elif self.method.is_subset:
            name = f"{name}(n_variables={self.n_variables})"
        if self.features is not None:
            name = f"{name}[{','.join(self.features)}]"
        return name

    def to_dict(self):
        return {
            'method': self.method.value,
            'preprocessing': sorted(self.preprocessing),
            'penalty': self.penalty,
            'n_variables': self.n_variables,
            'features': list(self.features) if self.features is not None else None,
            'label': self.label,
        }


@dataclass(frozen=True, eq=False)
class FittedModel:
    """
    Coefficients estimated by a fitter; read-only once built.

    Coefficients are keyed by design column name and live on the scale of the
    encoder's output (standardized when the configuration centers/scales).
    """

    configuration: ModelConfiguration
    coefficients: Dict[str, float]
    intercept: float
    encoder: object
    n_train: int
    target_levels: Optional[Tuple] = None
    extras: Dict = field(default_factory=dict)

    @property
    def n_terms(self):
        """Number of non-zero coefficients (retained variables)."""
        return int(sum(1 for v in self.coefficients.values() if v != 0.0))

    def coefficient_vector(self):
        names = self.encoder.column_names_
        return np.array([self.coefficients.get(name, 0.0) for name in names])

    def linear_predictor(self, matrix):
        return matrix @ self.coefficient_vector() + self.intercept

    def predict_matrix(self, matrix):
        eta = self.linear_predictor(matrix)
        if self.target_levels is None:
            return eta
        negative, positive = self.target_levels
        return np.where(expit(eta) >= 0.5, positive, negative).astype(object)

    def predict_proba_matrix(self, matrix):
        if self.target_levels is None:
            raise ValueError("Probabilities are only defined for classification models")
        return expit(self.linear_predictor(matrix))


def expand_configurations(config):
    """
    Expand the config's models list into one ModelConfiguration per grid value.

    Order follows the config; duplicates are dropped.
    """
    configurations = []
    seen = set()
    for entry in config['models']:
        method = Method(entry['method'])
        preprocessing = frozenset(entry.get('preprocessing', []) or [])
        features = tuple(entry['features']) if entry.get('features') else None

        if method.is_shrinkage:
            candidates = [ModelConfiguration(method, preprocessing, penalty=float(v), features=features)
                          for v in entry['tuning_grid']]
        elif method.is_subset:
            candidates = [ModelConfiguration(method, preprocessing, n_variables=int(v), features=features)
                          for v in entry['tuning_grid']]
        else:
            candidates = [ModelConfiguration(method, preprocessing, features=features)]

        for candidate in candidates:
            if candidate not in seen:
                seen.add(candidate)
                configurations.append(candidate)

    return configurations
