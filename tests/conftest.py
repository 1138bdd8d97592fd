import pytest
import pandas as pd
import numpy as np

from regression_lab.data import Dataset

TRUE_COEFS = {"x1": 3.0, "x2": -2.0, "x3": 1.5}
TRUE_INTERCEPT = 1.0
NOISE_SD = 0.1


@pytest.fixture(scope="session")
def seed():
    return 42


@pytest.fixture
def linear_df(seed):
    """
    100 rows, 3 continuous predictors, linear target with known
    coefficients plus small Gaussian noise (sd = NOISE_SD).
    """
    rng = np.random.default_rng(seed)
    n = 100
    df = pd.DataFrame({
        "x1": rng.normal(size=n),
        "x2": rng.normal(size=n),
        "x3": rng.normal(size=n),
    })
    df["y"] = (TRUE_INTERCEPT
               + sum(coef * df[name] for name, coef in TRUE_COEFS.items())
               + rng.normal(scale=NOISE_SD, size=n))
    return df


@pytest.fixture
def linear_dataset(linear_df):
    return Dataset(linear_df, target="y", continuous=["x1", "x2", "x3"])


@pytest.fixture
def bike_df(seed):
    """
    Small station-usage style frame: continuous weather features plus a
    categorical day type, target is a count of checkouts.
    """
    rng = np.random.default_rng(seed)
    n = 60
    df = pd.DataFrame({
        "temperature": rng.uniform(0, 30, size=n),
        "humidity": rng.uniform(20, 90, size=n),
        "day_type": rng.choice(["weekday", "weekend", "holiday"], size=n),
    })
    effect = df["day_type"].map({"weekday": 0.0, "weekend": 12.0, "holiday": -6.0})
    df["checkouts"] = 20 + 1.5 * df["temperature"] - 0.2 * df["humidity"] + effect \
        + rng.normal(scale=1.0, size=n)
    return df


@pytest.fixture
def bike_dataset(bike_df):
    return Dataset(
        bike_df,
        target="checkouts",
        continuous=["temperature", "humidity"],
        categorical={"day_type": ["weekday", "weekend", "holiday"]},
    )


@pytest.fixture
def bot_df(seed):
    """Account features with a bot/human label drawn from a logistic model."""
    rng = np.random.default_rng(seed)
    n = 160
    df = pd.DataFrame({
        "followers": rng.normal(size=n),
        "statuses": rng.normal(size=n),
        "verified": rng.choice(["no", "yes"], size=n, p=[0.7, 0.3]),
    })
    eta = 4.0 * df["followers"] - 3.0 * df["statuses"] - 1.0 * (df["verified"] == "yes")
    p = 1.0 / (1.0 + np.exp(-eta))
    df["account_type"] = np.where(rng.random(n) < p, "bot", "human")
    return df


@pytest.fixture
def bot_dataset(bot_df):
    return Dataset(
        bot_df,
        target="account_type",
        target_type="classification",
        continuous=["followers", "statuses"],
        categorical={"verified": ["no", "yes"]},
        target_levels=["human", "bot"],
    )


@pytest.fixture
def base_regression_config(tmp_path, seed):
    """
    Minimal config for regression selection on the synthetic linear data.
    """
    cfg = {
        "experiment": {
            "name": "pytest_regression",
            "seed": seed,
            "output_dir": str(tmp_path / "runs")
        },
        "data": {
            "dataset_path": "DUMMY.csv",
            "target_column": "y",
            "target_type": "regression",
            "continuous": ["x1", "x2", "x3"],
        },
        "split": {
            "train_fraction": 0.75
        },
        "cross_validation": {
            "n_splits": 5,
            "n_repeats": 1
        },
        "models": [
            {"method": "forward_selection", "preprocessing": [], "tuning_grid": [1, 2, 3]},
            {"method": "ridge", "preprocessing": ["center", "scale"], "tuning_grid": [0.1, 10.0]},
        ]
    }
    return cfg


@pytest.fixture
def base_classification_config(tmp_path, seed):
    cfg = {
        "experiment": {
            "name": "pytest_classification",
            "seed": seed,
            "output_dir": str(tmp_path / "runs")
        },
        "data": {
            "dataset_path": "DUMMY.csv",
            "target_column": "account_type",
            "target_type": "classification",
            "target_levels": ["human", "bot"],
            "continuous": ["followers", "statuses"],
            "categorical": {"verified": ["no", "yes"]},
        },
        "split": {
            "train_fraction": 0.75
        },
        "cross_validation": {
            "n_splits": 4,
            "n_repeats": 2
        },
        "models": [
            {"method": "logistic", "preprocessing": ["center", "scale"]},
            {"method": "logistic", "preprocessing": ["center", "scale"], "features": ["followers"]},
        ]
    }
    return cfg


@pytest.fixture
def patch_dataset_loader(monkeypatch, linear_dataset):
    """
    Monkeypatch load_dataset so experiments don't hit disk.
    """
    def _fake_load_dataset(config, dataset_path=None):
        return linear_dataset, "test_dataset.csv"

    monkeypatch.setattr("regression_lab.data.load_dataset", _fake_load_dataset)
    monkeypatch.setattr("runners.run_selection.load_dataset", _fake_load_dataset)
    return _fake_load_dataset


@pytest.fixture
def freeze_time(monkeypatch):
    """
    Make run_dir deterministic by freezing datetime.now().
    """
    import datetime as dt

    class _FixedDT:
        @staticmethod
        def now():
            return dt.datetime(2026, 1, 4, 12, 34, 56)

    monkeypatch.setattr("regression_lab.io.datetime", _FixedDT)
    return _FixedDT


@pytest.fixture
def write_yaml(tmp_path):
    import yaml
    def _write(cfg, name="temp.yaml"):
        p = tmp_path / name
        with open(p, "w") as f:
            yaml.safe_dump(cfg, f, default_flow_style=False)
        return str(p)
    return _write
