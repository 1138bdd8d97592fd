# I/O utilities for the selection pipeline
# Config loading, result saving, run directory management

import os
import json
import hashlib
import math
from datetime import datetime

import joblib
import yaml


def load_config(config_path):
    """Load YAML configuration file."""
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    if config is None:
        raise ValueError(f"Config file is empty or invalid: {config_path}")

    return config


def config_hash(config):
    """Generate deterministic hash of config for run naming."""
    config_str = json.dumps(config, sort_keys=True)
    return hashlib.md5(config_str.encode()).hexdigest()[:8]


def dataset_hash(df):
    """Generate hash of dataset content for fingerprinting."""
    # Hash based on shape and sample of data
    content = f"{df.shape}_{df.columns.tolist()}_{df.head(10).to_json()}_{df.tail(10).to_json()}"
    return hashlib.md5(content.encode()).hexdigest()[:12]


def create_run_dir(config, output_dir=None):
    """Create unique run directory for experiment outputs."""
    output_dir = output_dir or config['experiment'].get('output_dir', 'runs')
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    cfg_hash = config_hash(config)
    run_name = f"{config['experiment']['name']}_{timestamp}_{cfg_hash}"
    run_dir = os.path.join(output_dir, run_name)
    os.makedirs(run_dir, exist_ok=True)
    return run_dir


def _json_safe(value):
    """NaN/inf -> None, numpy scalars -> Python numbers."""
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if hasattr(value, 'item') and not isinstance(value, (str, bytes)):
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def save_results(run_dir, config, report):
    """Save all selection artifacts to run directory."""
    # Save config
    with open(os.path.join(run_dir, 'config.yaml'), 'w') as f:
        yaml.dump(config, f, default_flow_style=False)

    # Save metrics (include fold-level scores for each configuration)
    cv_results = {}
    for record in report.records:
        entry = cv_results.setdefault(record.label, {
            'configuration': record.configuration.to_dict(),
            'metrics': {},
        })
        for metric, value in record.metrics.items():
            entry['metrics'].setdefault(metric, {'all': []})['all'].append(value)

    for row in report.to_records():
        if row['configuration'] not in cv_results:
            continue
        for metric, values in cv_results[row['configuration']]['metrics'].items():
            values['mean'] = row.get(f'{metric}_mean')
            values['std'] = row.get(f'{metric}_std')
            values['sem'] = row.get(f'{metric}_sem')

    results_json = {
        'experiment_name': config['experiment']['name'],
        'seed': config['experiment']['seed'],
        'target_column': config['data']['target_column'],
        'target_type': config['data']['target_type'],
        'primary_metric': report.primary_metric,
        'n_train': int(len(report.split.train)),
        'n_holdout': int(len(report.split.holdout)),
        'cv_results': cv_results,
        'failures': {label: str(error) for label, error in report.failures.items()},
        'best_configuration': report.best_configuration.to_dict(),
        'holdout_metrics': report.holdout_metrics,
    }

    with open(os.path.join(run_dir, 'metrics.json'), 'w') as f:
        json.dump(_json_safe(results_json), f, indent=2)

    report.summary.to_csv(os.path.join(run_dir, 'summary.csv'), index=False)

    with open(os.path.join(run_dir, 'coefficients.json'), 'w') as f:
        json.dump(_json_safe(report.coefficients()), f, indent=2)

    # Save final model fitted on the full training split
    model_path = os.path.join(run_dir, 'model.joblib')
    joblib.dump(report.final_model, model_path)
    print(f"Model saved to: {model_path}")

    print(f"Results saved to: {run_dir}")
    return run_dir


def save_data_profile(run_dir, dataset, dataset_path):
    """Save dataset fingerprint/profile for reproducibility tracking."""
    df = dataset.frame
    y = dataset.y
    numeric_target = not dataset.is_classification
    profile = {
        'dataset_path': str(dataset_path) if dataset_path else 'in_memory',
        'dataset_hash': dataset_hash(df),
        'total_rows': len(df),
        'total_columns': len(df.columns),
        'feature_count': len(dataset.predictors),
        'features_used': list(dataset.predictors),
        'continuous': list(dataset.continuous),
        'categorical': {k: [str(v) for v in levels] for k, levels in dataset.categorical.items()},
        'target_column': dataset.target,
        'target_stats': {
            'mean': float(y.mean()) if numeric_target else None,
            'std': float(y.std()) if numeric_target else None,
            'min': float(y.min()) if numeric_target else None,
            'max': float(y.max()) if numeric_target else None,
            'unique_values': int(y.nunique()),
            'value_counts': {str(k): int(v) for k, v in y.value_counts().items()} if y.nunique() <= 10 else None
        },
        'missing_values': int(df.isnull().sum().sum()),
        'timestamp': datetime.now().isoformat()
    }

    with open(os.path.join(run_dir, 'data_profile.json'), 'w') as f:
        json.dump(_json_safe(profile), f, indent=2)

    return profile
