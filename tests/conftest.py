import numpy as np
import pytest

from lottery_ensemble.config import BoostingParams, PredictionConfig
from lottery_ensemble.data import generate_synthetic_draws


@pytest.fixture
def megasena_config():
    return PredictionConfig.for_lottery("megasena", seed=7)


@pytest.fixture(scope="session")
def short_history():
    return generate_synthetic_draws(120, 6, 1, 60, rng=np.random.default_rng(1))


@pytest.fixture(scope="session")
def trainable_history():
    return generate_synthetic_draws(260, 6, 1, 60, rng=np.random.default_rng(2))


@pytest.fixture(scope="session")
def long_history():
    return generate_synthetic_draws(600, 6, 1, 60, rng=np.random.default_rng(3))


@pytest.fixture
def fast_params():
    return BoostingParams(n_estimators=4, max_depth=3, learning_rate=0.1, min_samples_split=10, subsample=0.8)
