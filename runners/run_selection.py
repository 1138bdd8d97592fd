# Model selection experiment runner
# Cross-validates every configured candidate, refits the best one and scores it on the holdout split

import argparse
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from regression_lab.config_schema import validate_config, ConfigValidationError
from regression_lab.io import load_config, save_results, create_run_dir, save_data_profile
from regression_lab.data import load_dataset
from regression_lab.pipeline import run_selection


def print_report(report, target_type):
    metric = report.primary_metric
    print("\n" + "=" * 60)
    if target_type == 'regression':
        print("REGRESSION RESULTS (K-Fold CV, ranked by RMSE)")
    else:
        print("CLASSIFICATION RESULTS (Stratified K-Fold CV, ranked by accuracy)")
    print("=" * 60)

    ok = report.summary[report.summary['error'].isna()]
    ascending = target_type == 'regression'
    for _, row in ok.sort_values(f'{metric}_mean', ascending=ascending).iterrows():
        print(f"{row['configuration']:40s} | {metric}: {row[f'{metric}_mean']:.4f} ± {row[f'{metric}_std']:.4f}"
              f" | terms: {row['n_terms']:.1f}")

    if report.failures:
        print("\nFailed configurations:")
        for label, error in report.failures.items():
            print(f"  {label}: {error}")

    print("\n" + "-" * 60)
    print(f"Best: {report.best_configuration.label}")
    print("Coefficients:")
    for name, value in report.coefficients().items():
        print(f"  {name:30s} {value: .6f}")
    print("Holdout:")
    for name, value in report.holdout_metrics.items():
        print(f"  {name:10s} {value:.4f}")


def run_selection_experiment(config_path, dataset_path=None, output_dir=None):
    """
    Run a model selection experiment.

    Args:
        config_path: Path to YAML config file
        dataset_path: Optional path to dataset CSV (overrides config)
        output_dir: Optional output directory (overrides config)

    Returns:
        run_dir: Path to experiment output directory
    """
    # Load and validate config
    config = load_config(config_path)

    # Override output_dir if provided
    if output_dir:
        config['experiment']['output_dir'] = output_dir

    try:
        validate_config(config)
    except ConfigValidationError as e:
        print(f"\nCONFIG ERROR:\n{e}")
        raise

    target = config['data']['target_column']
    target_type = config['data']['target_type']

    print("=" * 60)
    print("MODEL SELECTION EXPERIMENT")
    print("=" * 60)
    print(f"Experiment: {config['experiment']['name']}")
    print(f"Target: {target} ({target_type})")
    print(f"Seed: {config['experiment']['seed']}")
    print(f"Train fraction: {config['split']['train_fraction']}")
    print(f"CV: {config['cross_validation']['n_splits']}-fold x "
          f"{config['cross_validation'].get('n_repeats', 1)} repeats")
    print("=" * 60)

    # Load data
    dataset, actual_path = load_dataset(config, dataset_path)

    print(f"\nDataset rows: {len(dataset)}")
    print(f"Predictors: {len(dataset.predictors)} "
          f"({len(dataset.continuous)} continuous, {len(dataset.categorical)} categorical)")

    if target_type == 'regression':
        y = dataset.y
        print(f"Target stats: mean={y.mean():.4f}, std={y.std():.4f}, min={y.min():.4f}, max={y.max():.4f}")
    else:
        print(f"Class distribution: {dataset.y.value_counts().to_dict()}")

    report = run_selection(dataset, config)
    print_report(report, target_type)

    # Create run directory
    run_dir = create_run_dir(config)

    # Save data profile (dataset fingerprint)
    save_data_profile(run_dir, dataset, actual_path)

    # Save results
    save_results(run_dir, config, report)

    print("\n" + "=" * 60)
    print("Model selection complete!")
    print("=" * 60)

    return run_dir


def main():
    parser = argparse.ArgumentParser(
        description='Cross-validated linear model selection with holdout evaluation'
    )
    parser.add_argument('--config', '-c', type=str, default='configs/bikeshare_regression.yaml',
                       help='Path to config YAML file')
    parser.add_argument('--dataset', '-d', type=str, default=None,
                       help='Path to dataset CSV (overrides config)')
    parser.add_argument('--output-dir', '-o', type=str, default=None,
                       help='Output directory for run artifacts (overrides config)')
    args = parser.parse_args()

    run_selection_experiment(args.config, args.dataset, args.output_dir)


if __name__ == "__main__":
    main()
