from lottery_ensemble.config import PredictionConfig
from lottery_ensemble.consensus import WeightedEnsemble
from lottery_ensemble.registry import build_default_registry
from lottery_ensemble.weights import StaticWeightProvider


def test_full_ensemble_prediction(long_history, fast_params):
    registry = build_default_registry(boosting_params=fast_params)
    ensemble = WeightedEnsemble(registry, StaticWeightProvider())
    registry.register(ensemble)
    config = PredictionConfig.for_lottery("megasena", seed=42)

    result = ensemble.predict_with_consensus(long_history, config)
    games = ensemble.predict_diversified(long_history, config, game_count=5)

    assert len(result.numbers) == 6
    assert result.numbers == sorted(set(result.numbers))
    assert all(1 <= n <= 60 for n in result.numbers)
    assert not result.degraded
    assert 0 < result.consensus <= 100
    assert 1 <= len(result.top_strategies) <= 5
    assert len(games) == 5
    assert games.games[0] == result.numbers
    assert len({tuple(g) for g in games}) == 5


def test_same_seed_same_numbers(long_history, fast_params):
    def run():
        registry = build_default_registry(boosting_params=fast_params, include_ml=False)
        ensemble = WeightedEnsemble(registry)
        return ensemble.predict(long_history, PredictionConfig.for_lottery("megasena", seed=7))

    assert run() == run()
