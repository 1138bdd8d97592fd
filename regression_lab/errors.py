# Error taxonomy for the evaluation pipeline
# All errors are fail-fast; the pipeline annotates them with the
# configuration label and fold index before reporting.


class EvaluationError(Exception):
    """Base class for pipeline errors.

    Carries the configuration label and fold index once the pipeline knows
    them, so a failed run can be reproduced.
    """

    def __init__(self, message, configuration=None, fold_index=None):
        super().__init__(message)
        self.message = message
        self.configuration = configuration
        self.fold_index = fold_index

    def with_context(self, configuration=None, fold_index=None):
        if configuration is not None:
            self.configuration = configuration
        if fold_index is not None:
            self.fold_index = fold_index
        return self

    def __str__(self):
        parts = []
        if self.configuration is not None:
            parts.append(f"configuration={self.configuration}")
        if self.fold_index is not None:
            parts.append(f"fold={self.fold_index}")
        if parts:
            return f"{self.message} [{', '.join(parts)}]"
        return self.message


class InvalidFractionError(EvaluationError):
    """Raised when train_fraction is outside (0, 1)."""
    pass


class EmptyDatasetError(EvaluationError):
    """Raised when a dataset has no records."""
    pass


class InsufficientDataError(EvaluationError):
    """Raised when there are too few rows (or columns) for the request."""
    pass


class SingularMatrixError(EvaluationError):
    """Raised when the OLS design matrix is rank-deficient."""
    pass


class MissingValueError(EvaluationError):
    """Raised when a training row has a missing field."""
    pass


class NoViableConfigurationError(EvaluationError):
    """Raised when every candidate configuration failed."""
    pass
