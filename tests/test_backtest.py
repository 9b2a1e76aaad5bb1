import numpy as np
import pandas as pd
import pytest

from helpers import FailingStrategy, FixedStrategy, make_draws
from lottery_ensemble.backtest import Backtester, derive_weights
from lottery_ensemble.config import PredictionConfig
from lottery_ensemble.consensus import WeightedEnsemble
from lottery_ensemble.registry import StrategyRegistry
from lottery_ensemble.weights import StrategyWeight


@pytest.fixture
def config():
    return PredictionConfig(numbers_to_draw=3, min_number=1, max_number=10,
                            lottery_context="test", rng=np.random.default_rng(0))


@pytest.fixture
def registry():
    return (
        StrategyRegistry()
        .register(FixedStrategy("perfect", [1, 2, 3]))
        .register(FixedStrategy("miss", [4, 5, 6]))
    )


def test_summary_per_strategy(registry, config):
    draws = make_draws([[1, 2, 3]] * 40)
    backtester = Backtester(registry, window=20, history_window=10)

    summary = backtester.run(draws, config)

    assert list(summary.index) == ["perfect", "miss"]
    perfect = summary.loc["perfect"]
    assert perfect["total_predictions"] == 20
    assert perfect["avg_hits"] == 3
    assert perfect["max_hits"] == 3
    assert perfect["hits_std"] == 0
    assert perfect["successful_predictions"] == 0
    assert perfect["accuracy"] == pytest.approx(1.0)
    assert summary.loc["miss", "avg_hits"] == 0
    assert backtester.hit_distribution("perfect") == {3: 20}


def test_success_threshold():
    registry = StrategyRegistry().register(FixedStrategy("good", [1, 2, 3, 4, 5, 6]))
    draws = make_draws([[1, 2, 3, 4, 50, 60], [1, 2, 3, 40, 50, 60]] * 10)
    summary = Backtester(registry, window=10, history_window=10).run(draws, PredictionConfig())

    assert summary.loc["good", "successful_predictions"] == 5
    assert summary.loc["good", "hit_rate"] == pytest.approx(0.5)
    assert summary.loc["good", "hits_std"] == pytest.approx(0.5)


def test_window_shrinks_to_available_history(registry, config):
    draws = make_draws([[1, 2, 3]] * 15)
    summary = Backtester(registry, window=50, history_window=10).run(draws, config)
    assert summary.loc["perfect", "total_predictions"] == 5


def test_backtest_uses_separate_context(registry, config):
    Backtester(registry, window=5, history_window=10).run(make_draws([[1, 2, 3]] * 20), config)
    assert registry.get("perfect").last_config.lottery_context == "test/backtest"


def test_failures_and_ensemble_are_skipped(registry, config):
    registry.register(FailingStrategy("broken"))
    registry.register(WeightedEnsemble(registry))

    summary = Backtester(registry, window=5, history_window=10).run(make_draws([[1, 2, 3]] * 20), config)

    assert "broken" not in summary.index
    assert "weighted_ensemble" not in summary.index


def test_derive_weights():
    summary = pd.DataFrame(
        {
            "total_predictions": [20, 200],
            "avg_hits": [3.0, 0.0],
            "max_hits": [3, 0],
            "hits_std": [0.0, 0.0],
            "successful_predictions": [0, 0],
            "hit_rate": [0.0, 0.0],
            "accuracy": [1.0, 0.0],
        },
        index=["perfect", "miss"],
    )

    weights = derive_weights(summary, 3)
    assert weights["perfect"].weight == pytest.approx(0.4 + 0.2 + 0.1)
    assert weights["perfect"].confidence == pytest.approx(0.2)
    assert weights["perfect"].avg_hits == 3.0
    assert weights["miss"].weight == pytest.approx(0.1)
    assert weights["miss"].confidence == 1.0

    smoothed = derive_weights(summary, 3, previous={"perfect": StrategyWeight(weight=1.0)})
    assert smoothed["perfect"].weight == pytest.approx(0.3 * 1.0 + 0.7 * 0.7)
    assert smoothed["miss"].weight == pytest.approx(0.1)
