# Model fitters
# One fitter per Method; all share row checks, design encoding and prediction.

import numpy as np
from sklearn.linear_model import Lasso, LinearRegression, LogisticRegression, Ridge

from .config_schema import ConfigValidationError
from .data import validate_data_integrity
from .design import DesignEncoder
from .errors import InsufficientDataError, SingularMatrixError
from .models import FittedModel, Method
from .subset import SEARCHES

# Effectively unpenalized logistic regression
LOGISTIC_C = 1e6
LOGISTIC_MAX_ITER = 10000

LASSO_MAX_ITER = 100000
LASSO_TOL = 1e-10


class ModelFitter:
    """
    Base fitter: fit(dataset, rows) -> FittedModel, predict(model, dataset, rows).

    Subclasses implement `_solve(X, y, column_names)` returning
    (coefficients dict, intercept, extras dict).
    """

    def __init__(self, configuration):
        self.configuration = configuration

    def features(self, dataset):
        wanted = self.configuration.features or tuple(dataset.predictors)
        unknown = [f for f in wanted if f not in dataset.predictors]
        if unknown:
            raise ConfigValidationError(f"Unknown features {unknown} in {self.configuration.label}")
        continuous = [f for f in dataset.continuous if f in wanted]
        categorical = {f: dataset.categorical[f] for f in dataset.categorical if f in wanted}
        return continuous, categorical

    def fit(self, dataset, rows):
        continuous, categorical = self.features(dataset)
        validate_data_integrity(dataset, rows, [dataset.target, *continuous, *categorical])

        frame = dataset.rows(rows)
        encoder = DesignEncoder(continuous, categorical,
                                center=self.configuration.center,
                                scale=self.configuration.scale)
        X = encoder.fit_transform(frame)
        y = self._response(dataset, frame)

        coefficients, intercept, extras = self._solve(X, y, encoder.column_names_)
        return FittedModel(
            configuration=self.configuration,
            coefficients=coefficients,
            intercept=float(intercept),
            encoder=encoder,
            n_train=len(frame),
            target_levels=self._target_levels(dataset),
            extras=extras,
        )

    def predict(self, model, dataset, rows):
        continuous, categorical = self.features(dataset)
        validate_data_integrity(dataset, rows, [*continuous, *categorical])
        X = model.encoder.transform(dataset.rows(rows))
        return model.predict_matrix(X)

    def _response(self, dataset, frame):
        return frame[dataset.target].to_numpy(dtype=float)

    def _target_levels(self, dataset):
        return None

    def _solve(self, X, y, column_names):
        raise NotImplementedError


def solve_ols(X, y, column_names):
    """Least squares with intercept; refuses rank-deficient designs."""
    design = np.column_stack([np.ones(len(y)), X])
    rank = np.linalg.matrix_rank(design)
    if rank < design.shape[1]:
        raise SingularMatrixError(
            f"Design matrix is rank-deficient (rank {rank} < {design.shape[1]} columns "
            f"including intercept, {len(y)} rows); OLS has no unique solution"
        )
    model = LinearRegression().fit(X, y)
    return dict(zip(column_names, model.coef_.astype(float))), float(model.intercept_)


class OLSFitter(ModelFitter):

    def _solve(self, X, y, column_names):
        coefficients, intercept = solve_ols(X, y, column_names)
        return coefficients, intercept, {}


class ShrinkageFitter(ModelFitter):
    """
    Ridge (RSS + λ·Σβ²) or lasso (RSS + λ·Σ|β|); the intercept is never penalized.

    λ = 0 is solved as plain least squares.
    """

    def _solve(self, X, y, column_names):
        penalty = self.configuration.penalty
        if penalty == 0:
            coefficients, intercept = solve_ols(X, y, column_names)
            return coefficients, intercept, {'alpha': 0.0}

        if self.configuration.method == Method.RIDGE:
            alpha = penalty
            model = Ridge(alpha=alpha)
        else:
            # sklearn's lasso objective is RSS / (2n) + alpha·Σ|β|
            alpha = penalty / (2.0 * len(y))
            model = Lasso(alpha=alpha, max_iter=LASSO_MAX_ITER, tol=LASSO_TOL)
        model.fit(X, y)
        coefficients = dict(zip(column_names, np.asarray(model.coef_, dtype=float)))
        return coefficients, float(model.intercept_), {'alpha': alpha}


class SubsetSelectionFitter(ModelFitter):
    """Greedy forward/backward/stepwise search for `n_variables` design columns."""

    def _solve(self, X, y, column_names):
        n_variables = self.configuration.n_variables
        if n_variables > X.shape[1]:
            raise InsufficientDataError(
                f"Requested {n_variables} variables but the design has {X.shape[1]} columns"
            )
        if self.configuration.method == Method.BACKWARD_SELECTION:
            # Backward search starts from the full model, which must be estimable
            solve_ols(X, y, column_names)

        search = SEARCHES[self.configuration.method.value]
        selected = search(X, y, n_variables)

        chosen = [column_names[j] for j in selected]
        fitted, intercept = solve_ols(X[:, selected], y, chosen)
        coefficients = {name: fitted.get(name, 0.0) for name in column_names}
        return coefficients, intercept, {'selected': chosen}


class LogisticFitter(ModelFitter):
    """Binary logistic regression; predicts the positive level when P >= 0.5."""

    def _target_levels(self, dataset):
        if not dataset.target_levels or len(dataset.target_levels) != 2:
            raise ConfigValidationError("Logistic regression needs target_levels [negative, positive]")
        return tuple(dataset.target_levels)

    def _response(self, dataset, frame):
        negative, positive = self._target_levels(dataset)
        observed = frame[dataset.target]
        unknown = set(observed) - {negative, positive}
        if unknown:
            raise ConfigValidationError(
                f"Target '{dataset.target}' has values {sorted(unknown, key=str)} "
                f"outside target_levels {[negative, positive]}"
            )
        y = (observed == positive).to_numpy(dtype=float)
        if y.min() == y.max():
            raise InsufficientDataError("Training rows contain a single target level")
        return y

    def _solve(self, X, y, column_names):
        model = LogisticRegression(C=LOGISTIC_C, max_iter=LOGISTIC_MAX_ITER)
        model.fit(X, y.astype(int))
        coefficients = dict(zip(column_names, model.coef_[0].astype(float)))
        return coefficients, float(model.intercept_[0]), {}


FITTERS = {
    Method.OLS: OLSFitter,
    Method.RIDGE: ShrinkageFitter,
    Method.LASSO: ShrinkageFitter,
    Method.FORWARD_SELECTION: SubsetSelectionFitter,
    Method.BACKWARD_SELECTION: SubsetSelectionFitter,
    Method.STEPWISE: SubsetSelectionFitter,
    Method.LOGISTIC: LogisticFitter,
}


def build_fitter(configuration):
    """Return the fitter for a configuration's method."""
    try:
        fitter_cls = FITTERS[configuration.method]
    except KeyError:
        raise ValueError(
            f"Unknown method: '{configuration.method}'. Supported: {[m.value for m in FITTERS]}"
        ) from None
    return fitter_cls(configuration)
