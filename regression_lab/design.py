# Design matrix construction
# Indicator expansion with explicit reference levels, then optional center/scale

import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from .config_schema import ConfigValidationError


class DesignEncoder:
    """
    Turns dataset rows into a numeric design matrix.

    Categorical predictors are expanded into indicator columns, dropping the
    first level of the caller-supplied ordering (the reference level).
    Centering and scaling statistics are learned from the rows passed to
    `fit` and reused for every later `transform`.
    """

    def __init__(self, continuous, categorical, center=False, scale=False):
        self.continuous = list(continuous)
        self.categorical = {c: list(levels) for c, levels in categorical.items()}
        self.center = center
        self.scale = scale
        self.column_names_ = None
        self._transformer = None
        self._scaler = None

    def fit(self, frame):
        transformers = []
        if self.continuous:
            transformers.append(('num', 'passthrough', self.continuous))
        if self.categorical:
            names = list(self.categorical)
            # Levels are replaced by their position in the declared ordering,
            # so code 0 is always the dropped reference level
            transformers.append((
                'cat',
                OneHotEncoder(
                    categories=[list(range(len(self.categorical[c]))) for c in names],
                    drop='first',
                    sparse_output=False,
                ),
                names,
            ))
        if not transformers:
            raise ConfigValidationError("Model has no predictors")

        self._transformer = ColumnTransformer(transformers)
        matrix = self._transformer.fit_transform(self._level_codes(frame))

        self.column_names_ = list(self.continuous)
        for col, levels in self.categorical.items():
            self.column_names_.extend(f"{col}_{level}" for level in levels[1:])

        self._scaler = StandardScaler(with_mean=self.center, with_std=self.scale)
        self._scaler.fit(np.asarray(matrix, dtype=float))
        return self

    def transform(self, frame):
        if self._transformer is None:
            raise RuntimeError("DesignEncoder must be fitted before transform")
        matrix = self._transformer.transform(self._level_codes(frame))
        return self._scaler.transform(np.asarray(matrix, dtype=float))

    def fit_transform(self, frame):
        return self.fit(frame).transform(frame)

    def _level_codes(self, frame):
        """Select predictor columns, replacing categorical values by level position."""
        out = frame[self.continuous + list(self.categorical)].copy()
        for col, levels in self.categorical.items():
            codes = pd.Categorical(out[col], categories=levels).codes
            unknown = (codes == -1) & out[col].notna().to_numpy()
            if unknown.any():
                values = sorted(set(out[col][unknown]), key=str)
                raise ConfigValidationError(
                    f"Categorical feature '{col}' has levels {values} not in its declared "
                    f"ordering {levels}"
                )
            out[col] = codes
        return out
