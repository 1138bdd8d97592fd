# Data loading and dataset declarations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .errors import EmptyDatasetError, MissingValueError


@dataclass(frozen=True, eq=False)
class Dataset:
    """
    Rectangular dataset with explicitly declared column roles.

    Attributes:
        frame: Underlying records; never modified in place.
        target: Name of the target column.
        target_type: 'regression' or 'classification'.
        continuous: Continuous predictor names.
        categorical: Categorical predictor -> ordered levels. The first level
            is the reference level dropped when expanding indicators.
        target_levels: [negative, positive] for classification targets.
    """

    frame: pd.DataFrame
    target: str
    target_type: str = 'regression'
    continuous: List[str] = field(default_factory=list)
    categorical: Dict[str, List] = field(default_factory=dict)
    target_levels: Optional[List] = None

    def __post_init__(self):
        missing = [c for c in [self.target, *self.predictors] if c not in self.frame.columns]
        if missing:
            raise ValueError(f"Declared columns not found in dataset: {missing}. "
                             f"Available: {list(self.frame.columns)}")
        overlap = set(self.continuous) & set(self.categorical)
        if overlap:
            raise ValueError(f"Columns declared both continuous and categorical: {sorted(overlap)}")
        if self.target in self.predictors:
            raise ValueError(f"Target '{self.target}' is also declared as a predictor")

    def __len__(self):
        return len(self.frame)

    @property
    def predictors(self):
        return list(self.continuous) + list(self.categorical)

    @property
    def is_classification(self):
        return self.target_type == 'classification'

    @property
    def y(self):
        return self.frame[self.target]

    def rows(self, indices):
        """Return the records at the given positional indices."""
        return self.frame.iloc[np.asarray(indices, dtype=int)]

    def with_feature(self, name, values, kind='continuous', levels=None):
        """Return a new Dataset with a derived feature column added."""
        if name in self.frame.columns:
            raise ValueError(f"Column '{name}' already exists")
        frame = self.frame.assign(**{name: values})
        continuous = list(self.continuous)
        categorical = dict(self.categorical)
        if kind == 'continuous':
            continuous.append(name)
        elif kind == 'categorical':
            if not levels:
                raise ValueError(f"Categorical feature '{name}' needs an ordered list of levels")
            categorical[name] = list(levels)
        else:
            raise ValueError(f"Unknown feature kind '{kind}'")
        return Dataset(frame, self.target, self.target_type, continuous, categorical, self.target_levels)


def dataset_from_config(df, config):
    """Build a Dataset from a DataFrame and the config's data section."""
    data_cfg = config['data']
    target = data_cfg['target_column']

    if target not in df.columns:
        raise ValueError(f"Target column '{target}' not found in dataset. Available: {list(df.columns)}")

    categorical = {k: list(v) for k, v in (data_cfg.get('categorical') or {}).items()}
    continuous = data_cfg.get('continuous')
    if continuous is None:
        # Every remaining column is a continuous predictor unless ignored
        ignored = set(data_cfg.get('ignored_columns', []) or [])
        continuous = [c for c in df.columns
                      if c != target and c not in categorical and c not in ignored]

    columns = [target, *continuous, *categorical]
    df = df[columns].copy()

    for col in continuous:
        df[col] = pd.to_numeric(df[col], errors='raise')

    target_type = data_cfg['target_type']
    if target_type == 'regression':
        df[target] = pd.to_numeric(df[target], errors='raise')

    if data_cfg.get('drop_incomplete', True):
        before = len(df)
        df = df.dropna().reset_index(drop=True)
        dropped = before - len(df)
        if dropped:
            print(f"Dropped {dropped} incomplete records")

    return Dataset(
        frame=df,
        target=target,
        target_type=target_type,
        continuous=list(continuous),
        categorical=categorical,
        target_levels=data_cfg.get('target_levels'),
    )


def load_dataset(config, dataset_path=None):
    """Load a delimited text file and declare its columns from config."""
    path = dataset_path or config['data'].get('dataset_path')
    if path is None:
        raise ValueError("No dataset path given (data.dataset_path or --dataset)")

    print(f"Loading dataset: {path}")
    # Categorical columns are read as text, so declared levels are compared as text too
    data_cfg = dict(config['data'])
    data_cfg['categorical'] = {c: [str(level) for level in levels]
                               for c, levels in (data_cfg.get('categorical') or {}).items()}
    dtypes = {c: str for c in data_cfg['categorical']}
    if data_cfg['target_type'] == 'classification':
        dtypes[data_cfg['target_column']] = str
        if data_cfg.get('target_levels'):
            data_cfg['target_levels'] = [str(level) for level in data_cfg['target_levels']]
    df = pd.read_csv(path, sep=data_cfg.get('delimiter', ','), dtype=dtypes)

    return dataset_from_config(df, {**config, 'data': data_cfg}), path


def validate_data_integrity(dataset, indices=None, columns=None):
    """
    Reject rows with missing or infinite values.

    Checks the given rows (all rows by default) over the given columns
    (target + declared predictors by default). No imputation is done here.
    """
    if len(dataset) == 0:
        raise EmptyDatasetError("Dataset has no records")

    frame = dataset.frame if indices is None else dataset.rows(indices)
    columns = columns or [dataset.target, *dataset.predictors]
    frame = frame[columns]

    errors = []

    nan_cols = frame.columns[frame.isnull().any()].tolist()
    if nan_cols:
        counts = {c: int(frame[c].isnull().sum()) for c in nan_cols}
        errors.append(f"NaN values found in columns: {counts}")

    numeric = frame.select_dtypes(include=[np.number])
    for col in numeric.columns:
        if not np.isfinite(numeric[col].dropna()).all():
            errors.append(f"Infinite values found in column: {col}")

    if errors:
        raise MissingValueError("Data integrity check failed:\n  - " + "\n  - ".join(errors))

    return True
