import pytest
import copy
import numpy as np
import pandas as pd
from regression_lab.data import Dataset, dataset_from_config, load_dataset, validate_data_integrity
from regression_lab.errors import EmptyDatasetError, MissingValueError


def test_dataset_from_config_declares_columns(bike_df, base_regression_config):
    cfg = copy.deepcopy(base_regression_config)
    cfg["data"].update({
        "target_column": "checkouts",
        "continuous": ["temperature", "humidity"],
        "categorical": {"day_type": ["weekday", "weekend", "holiday"]},
    })
    dataset = dataset_from_config(bike_df, cfg)
    assert dataset.target == "checkouts"
    assert dataset.predictors == ["temperature", "humidity", "day_type"]
    assert dataset.categorical["day_type"][0] == "weekday"
    assert len(dataset) == len(bike_df)


def test_unlisted_columns_default_to_continuous(linear_df, base_regression_config):
    cfg = copy.deepcopy(base_regression_config)
    del cfg["data"]["continuous"]
    cfg["data"]["ignored_columns"] = ["x3"]
    dataset = dataset_from_config(linear_df, cfg)
    assert dataset.continuous == ["x1", "x2"]


def test_missing_target_raises(linear_df, base_regression_config):
    cfg = copy.deepcopy(base_regression_config)
    cfg["data"]["target_column"] = "Nonexistent_Target"
    with pytest.raises(ValueError, match="not found"):
        dataset_from_config(linear_df, cfg)


def test_undeclared_column_raises(linear_df):
    with pytest.raises(ValueError, match="not found"):
        Dataset(linear_df, target="y", continuous=["x1", "x9"])


def test_target_cannot_be_predictor(linear_df):
    with pytest.raises(ValueError, match="also declared as a predictor"):
        Dataset(linear_df, target="y", continuous=["x1", "y"])


def test_incomplete_records_dropped(linear_df, base_regression_config):
    df = linear_df.copy()
    df.loc[[0, 5], "x2"] = np.nan
    dataset = dataset_from_config(df, base_regression_config)
    assert len(dataset) == len(df) - 2
    assert not dataset.frame.isnull().any().any()


def test_incomplete_records_kept_when_asked(linear_df, base_regression_config):
    cfg = copy.deepcopy(base_regression_config)
    cfg["data"]["drop_incomplete"] = False
    df = linear_df.copy()
    df.loc[0, "x2"] = np.nan
    dataset = dataset_from_config(df, cfg)
    assert len(dataset) == len(df)
    with pytest.raises(MissingValueError, match="NaN values"):
        validate_data_integrity(dataset)


def test_validate_data_integrity_catches_infinite(linear_df):
    df = linear_df.copy()
    df.loc[1, "x1"] = np.inf
    dataset = Dataset(df, target="y", continuous=["x1", "x2", "x3"])
    with pytest.raises(MissingValueError, match="Infinite"):
        validate_data_integrity(dataset)


def test_validate_empty_dataset():
    empty = Dataset(pd.DataFrame({"x": [], "y": []}), target="y", continuous=["x"])
    with pytest.raises(EmptyDatasetError):
        validate_data_integrity(empty)


def test_with_feature_leaves_original_untouched(bike_dataset):
    weekend = (bike_dataset.frame["day_type"] == "weekend").map({True: "yes", False: "no"})
    derived = bike_dataset.with_feature("is_weekend", weekend, kind="categorical", levels=["no", "yes"])
    assert "is_weekend" in derived.categorical
    assert "is_weekend" not in bike_dataset.categorical
    assert "is_weekend" not in bike_dataset.frame.columns


def test_load_dataset_reads_declared_types(tmp_path, base_classification_config):
    path = tmp_path / "accounts.csv"
    pd.DataFrame({
        "followers": [10, 2000, 35, 8],
        "statuses": [5.0, 1.5, None, 3.0],
        "verified": [0, 1, 0, 0],
        "account_type": ["bot", "human", "bot", "human"],
    }).to_csv(path, index=False)

    cfg = copy.deepcopy(base_classification_config)
    cfg["data"]["categorical"] = {"verified": [0, 1]}
    dataset, actual = load_dataset(cfg, str(path))

    assert actual == str(path)
    # Row with a missing status is dropped
    assert len(dataset) == 3
    assert dataset.categorical["verified"] == ["0", "1"]
    assert set(dataset.frame["verified"]) <= {"0", "1"}
    assert dataset.frame["followers"].dtype.kind in "if"
