# Config schema validation
# Validates config structure, types, and method/target combinations

REQUIRED_KEYS = {
    'experiment': ['name', 'seed'],
    'data': ['target_column', 'target_type'],
    'split': ['train_fraction'],
    'cross_validation': ['n_splits'],
    'models': [],
}

ALLOWED_TARGET_TYPES = ['regression', 'classification']

ALLOWED_METHODS = [
    'ols', 'ridge', 'lasso', 'forward_selection', 'backward_selection',
    'stepwise', 'logistic'
]

REGRESSION_METHODS = [
    'ols', 'ridge', 'lasso', 'forward_selection', 'backward_selection', 'stepwise'
]
CLASSIFICATION_METHODS = ['logistic']

SHRINKAGE_METHODS = ['ridge', 'lasso']
SUBSET_METHODS = ['forward_selection', 'backward_selection', 'stepwise']
# Methods with a single configuration (no tuning grid)
UNTUNED_METHODS = ['ols', 'logistic']

ALLOWED_PREPROCESSING = ['center', 'scale']


class ConfigValidationError(Exception):
    """Raised when config validation fails."""
    pass


def validate_config(config):
    """
    Validate experiment configuration.

    Args:
        config: dict - Configuration dictionary

    Raises:
        ConfigValidationError if validation fails
    """
    errors = []

    # Check required top-level keys
    for section, required_keys in REQUIRED_KEYS.items():
        if section not in config:
            errors.append(f"Missing required section: '{section}'")
            continue

        for key in required_keys:
            if key not in config[section]:
                errors.append(f"Missing required key: '{section}.{key}'")

    if errors:
        raise ConfigValidationError("Config validation failed:\n  - " + "\n  - ".join(errors))

    target_type = config['data'].get('target_type')
    if target_type not in ALLOWED_TARGET_TYPES:
        errors.append(f"Invalid target_type '{target_type}'. Allowed: {ALLOWED_TARGET_TYPES}")

    if target_type == 'classification':
        levels = config['data'].get('target_levels')
        if not isinstance(levels, list) or len(levels) != 2:
            errors.append("data.target_levels must list exactly two levels [negative, positive]")

    categorical = config['data'].get('categorical', {}) or {}
    if not isinstance(categorical, dict):
        errors.append("data.categorical must map feature name -> ordered list of levels")
    else:
        for feature, levels in categorical.items():
            if not isinstance(levels, list) or len(levels) < 2:
                errors.append(f"data.categorical.{feature} must list at least two levels")

    # Validate types
    if not isinstance(config['experiment'].get('seed'), int):
        errors.append("experiment.seed must be an integer")

    fraction = config['split'].get('train_fraction')
    if not isinstance(fraction, (int, float)) or not 0 < fraction < 1:
        errors.append(f"split.train_fraction must be in (0, 1), got {fraction}")

    cv_config = config['cross_validation']
    if not isinstance(cv_config.get('n_splits'), int):
        errors.append("cross_validation.n_splits must be an integer")
    elif cv_config['n_splits'] < 2:
        errors.append("cross_validation.n_splits must be >= 2")

    n_repeats = cv_config.get('n_repeats', 1)
    if not isinstance(n_repeats, int) or n_repeats < 1:
        errors.append("cross_validation.n_repeats must be a positive integer")

    n_jobs = cv_config.get('n_jobs', 1)
    # Negative values follow joblib (-1 = all CPUs)
    if isinstance(n_jobs, bool) or not isinstance(n_jobs, int) or n_jobs == 0:
        errors.append(f"cross_validation.n_jobs must be a non-zero integer, got {n_jobs!r}")

    models = config['models']
    if not isinstance(models, list) or not models:
        errors.append("models must be a non-empty list of model entries")
    else:
        for i, entry in enumerate(models):
            errors.extend(_validate_model_entry(entry, i, target_type))

    if errors:
        raise ConfigValidationError("Config validation failed:\n  - " + "\n  - ".join(errors))

    return True


def _validate_model_entry(entry, position, target_type):
    """Validate one entry of the models list."""
    errors = []
    where = f"models[{position}]"

    if not isinstance(entry, dict) or 'method' not in entry:
        return [f"{where} must be a mapping with a 'method' key"]

    method = entry['method']
    if method not in ALLOWED_METHODS:
        return [f"{where}: invalid method '{method}'. Allowed: {ALLOWED_METHODS}"]

    if target_type == 'regression' and method not in REGRESSION_METHODS:
        errors.append(f"{where}: method '{method}' cannot fit a regression target")
    if target_type == 'classification' and method not in CLASSIFICATION_METHODS:
        errors.append(f"{where}: method '{method}' cannot fit a classification target")

    preprocessing = entry.get('preprocessing', []) or []
    unknown = [p for p in preprocessing if p not in ALLOWED_PREPROCESSING]
    if unknown:
        errors.append(f"{where}: unknown preprocessing {unknown}. Allowed: {ALLOWED_PREPROCESSING}")

    if method in SHRINKAGE_METHODS and not {'center', 'scale'} <= set(preprocessing):
        errors.append(f"{where}: {method} requires preprocessing [center, scale]")

    grid = entry.get('tuning_grid')
    if method in UNTUNED_METHODS:
        if grid:
            errors.append(f"{where}: method '{method}' takes no tuning_grid")
    elif not grid:
        errors.append(f"{where}: method '{method}' requires a non-empty tuning_grid")
    elif method in SHRINKAGE_METHODS:
        if any(not isinstance(v, (int, float)) or v < 0 for v in grid):
            errors.append(f"{where}: shrinkage strengths must be non-negative numbers")
    elif method in SUBSET_METHODS:
        if any(not isinstance(v, int) or v < 1 for v in grid):
            errors.append(f"{where}: subset sizes must be positive integers")

    features = entry.get('features')
    if features is not None and (not isinstance(features, list) or not features):
        errors.append(f"{where}: features must be a non-empty list when given")

    return errors
