import copy
import pytest
import numpy as np
from regression_lab.data import Dataset
from regression_lab.errors import NoViableConfigurationError
from regression_lab.models import Method
from regression_lab.pipeline import run_selection

from conftest import NOISE_SD, TRUE_COEFS


def test_end_to_end_selects_three_predictor_model(linear_dataset, base_regression_config):
    cfg = copy.deepcopy(base_regression_config)
    cfg["models"] = [{"method": "forward_selection", "preprocessing": [], "tuning_grid": [1, 2, 3]}]

    report = run_selection(linear_dataset, cfg)

    assert report.best_configuration.method == Method.FORWARD_SELECTION
    assert report.best_configuration.n_variables == 3
    assert report.final_model.n_terms == 3
    assert len(report.split.train) == 75
    assert len(report.split.holdout) == 25
    assert report.holdout_metrics["rmse"] < 2 * NOISE_SD
    for name, coef in TRUE_COEFS.items():
        assert report.final_model.coefficients[name] == pytest.approx(coef, abs=0.1)


def test_end_to_end_with_ols_and_shrinkage(linear_dataset, base_regression_config):
    cfg = copy.deepcopy(base_regression_config)
    cfg["models"] = [
        {"method": "ols", "preprocessing": ["center", "scale"]},
        {"method": "ridge", "preprocessing": ["center", "scale"], "tuning_grid": [1000.0]},
        {"method": "lasso", "preprocessing": ["center", "scale"], "tuning_grid": [1e6]},
    ]
    report = run_selection(linear_dataset, cfg)

    # Heavy shrinkage cannot beat the true linear model
    assert report.best_configuration.method == Method.OLS
    assert report.holdout_metrics["rmse"] < 2 * NOISE_SD
    assert set(report.summary["configuration"]) == {"ols", "ridge(lambda=1000)", "lasso(lambda=1e+06)"}


def test_summary_has_one_row_per_configuration(linear_dataset, base_regression_config):
    report = run_selection(linear_dataset, base_regression_config)
    assert len(report.summary) == 5
    assert (report.summary["n_folds"] == 5).all()
    for column in ["rmse_mean", "rmse_std", "rmse_sem", "mae_mean", "r2_mean"]:
        assert column in report.summary.columns


def test_failing_configuration_reported_not_fatal(linear_dataset, base_regression_config):
    cfg = copy.deepcopy(base_regression_config)
    cfg["models"][0]["tuning_grid"] = [2, 3, 5]
    report = run_selection(linear_dataset, cfg)

    label = "forward_selection(n_variables=5)"
    assert list(report.failures) == [label]
    error = report.failures[label]
    assert error.configuration == label
    assert error.fold_index == 0
    failed_row = report.summary[report.summary["configuration"] == label].iloc[0]
    assert "Requested 5 variables" in failed_row["error"]
    assert report.best_configuration.label != label


def test_all_configurations_failing_raises(linear_dataset, base_regression_config):
    cfg = copy.deepcopy(base_regression_config)
    cfg["models"] = [{"method": "forward_selection", "preprocessing": [], "tuning_grid": [7]}]
    with pytest.raises(NoViableConfigurationError, match="Every configuration failed"):
        run_selection(linear_dataset, cfg)


def test_same_seed_same_results(linear_dataset, base_regression_config):
    r1 = run_selection(linear_dataset, base_regression_config)
    r2 = run_selection(linear_dataset, base_regression_config)
    assert np.array_equal(r1.split.train, r2.split.train)
    assert np.allclose(r1.summary["rmse_mean"], r2.summary["rmse_mean"], atol=1e-12)
    assert r1.best_configuration == r2.best_configuration


def test_classification_pipeline(bot_dataset, base_classification_config):
    report = run_selection(bot_dataset, base_classification_config)

    assert report.primary_metric == "accuracy"
    assert report.best_configuration.method == Method.LOGISTIC
    assert set(report.holdout_metrics) == {"accuracy", "kappa"}
    assert report.holdout_metrics["accuracy"] > 0.6
    # 4 folds x 2 repeats per configuration
    assert (report.summary["n_folds"] == 8).all()


def test_bike_pipeline_with_categorical_predictor(bike_dataset, base_regression_config):
    cfg = copy.deepcopy(base_regression_config)
    cfg["data"]["target_column"] = "checkouts"
    cfg["models"] = [
        {"method": "stepwise", "preprocessing": ["center", "scale"], "tuning_grid": [1, 2, 3, 4]},
        {"method": "backward_selection", "preprocessing": ["center", "scale"], "tuning_grid": [1, 2, 3, 4]},
    ]
    report = run_selection(bike_dataset, cfg)
    assert report.best_configuration.n_variables == 4
    assert "day_type_weekend" in report.coefficients()
    assert "(Intercept)" in report.coefficients()


def test_report_records_export(linear_dataset, base_regression_config):
    report = run_selection(linear_dataset, base_regression_config)
    rows = report.to_records()
    assert len(rows) == len(report.summary)
    assert all(isinstance(row, dict) for row in rows)
    assert {"configuration", "rmse_mean", "rmse_std"} <= set(rows[0])


def test_derived_feature_dataset_is_new(linear_dataset):
    derived = linear_dataset.with_feature("x1_sq", linear_dataset.frame["x1"] ** 2)
    assert "x1_sq" in derived.continuous
    assert "x1_sq" not in linear_dataset.frame.columns
    assert isinstance(derived, Dataset)
