import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np

from .config import ENSEMBLE_CONFIG, PredictionConfig
from .data import Draw, validate_request
from .errors import InvalidConfigurationError
from .registry import StrategyRegistry
from .strategy import Strategy, top_k
from .weights import StaticWeightProvider, WeightProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrategyPrediction:
    strategy_name: str
    numbers: Tuple[int, ...]
    weight: float


@dataclass
class EnsembleResult:
    numbers: List[int]
    consensus: int                                   # percentage
    strategy_agreement: List[Tuple[int, int]]        # (number, percentage), ascending by number
    top_strategies: List[str]
    degraded: bool = False


@dataclass
class DiversifiedSet:
    games: List[List[int]] = field(default_factory=list)
    requested: int = 0
    degraded: bool = False

    def __len__(self) -> int:
        return len(self.games)

    def __iter__(self):
        return iter(self.games)


class WeightedEnsemble(Strategy):
    """
    Weighted positional voting over every other registered strategy.

    Each strategy votes for the numbers it returns; a number at position p of
    an L-long output gets weight * (L - p) / L. Votes are normalised by the
    sum of participating weights and the best `numbers_to_draw` win.
    A failing strategy is logged and left out of the round.
    """

    name = "weighted_ensemble"
    display_name = "Weighted Super-Ensemble"

    def __init__(self, registry: StrategyRegistry, weight_provider: Optional[WeightProvider] = None):
        self.registry = registry
        self.weight_provider = weight_provider or StaticWeightProvider()
        logger.info(f"Registered {len(registry)} strategies for ensemble")

    def collect_predictions(self, history: Sequence[Draw], config: PredictionConfig) -> List[StrategyPrediction]:
        """Run every other strategy once; failures are excluded."""
        weights = self.weight_provider.get_weights(config.lottery_context)
        predictions = []

        for name, strategy in self.registry.items():
            if name == self.name or strategy is self:
                continue
            try:
                numbers = strategy.predict(history, config)
                self._check_output(numbers, config)
            except Exception as e:
                logger.error(f"Strategy {name} failed: {e}", exc_info=True)
                continue

            weight = self.weight_provider.weight_for(config.lottery_context, name, weights)
            predictions.append(StrategyPrediction(strategy_name=name, numbers=tuple(numbers), weight=weight))
            logger.debug(f"Strategy {name}: {', '.join(map(str, numbers))} (weight: {weight})")

        return predictions

    @staticmethod
    def _check_output(numbers: Sequence[int], config: PredictionConfig) -> None:
        if len(numbers) != config.numbers_to_draw or len(set(numbers)) != len(numbers):
            raise ValueError(f"expected {config.numbers_to_draw} distinct numbers, got {list(numbers)}")
        out_of_range = [n for n in numbers if not config.min_number <= n <= config.max_number]
        if out_of_range:
            raise ValueError(f"numbers outside [{config.min_number}, {config.max_number}]: {out_of_range}")

    def vote(self, predictions: Sequence[StrategyPrediction], config: PredictionConfig) -> Dict[int, float]:
        votes = {num: 0.0 for num in config.number_range}
        for pred in predictions:
            length = len(pred.numbers)
            for position, num in enumerate(pred.numbers):
                votes[num] += pred.weight * (length - position) / length

        total_weight = sum(p.weight for p in predictions)
        if total_weight > 0:
            votes = {num: v / total_weight for num, v in votes.items()}
        return votes

    def predict(self, history: Sequence[Draw], config: PredictionConfig) -> List[int]:
        logger.info(f"Weighted Ensemble predicting for {config.lottery_context}")
        result = self.predict_with_consensus(history, config)
        return result.numbers

    def predict_with_consensus(self, history: Sequence[Draw], config: PredictionConfig) -> EnsembleResult:
        validate_request(history, config)
        predictions = self.collect_predictions(history, config)
        return self._consensus(predictions, config)

    def _consensus(self, predictions: Sequence[StrategyPrediction], config: PredictionConfig) -> EnsembleResult:
        if not predictions:
            logger.warning("No strategy predictions available; falling back to a random selection (degraded)")
            return EnsembleResult(
                numbers=self._random_numbers(config),
                consensus=0,
                strategy_agreement=[],
                top_strategies=[],
                degraded=True,
            )

        selected = top_k(self.vote(predictions, config), config.numbers_to_draw)
        total = len(predictions)

        counts = {num: sum(1 for p in predictions if num in p.numbers) for num in selected}
        consensus = int(round(100 * sum(c / total for c in counts.values()) / len(selected)))
        agreement = [(num, int(round(100 * counts[num] / total))) for num in selected]

        # Registry order breaks ties
        presence = {}
        selected_set = set(selected)
        for pred in predictions:
            proposed = len(selected_set.intersection(pred.numbers))
            if proposed:
                presence[pred.strategy_name] = proposed
        top_strategies = [name for name, _ in sorted(presence.items(), key=lambda item: -item[1])]
        top_strategies = top_strategies[:ENSEMBLE_CONFIG["top_strategies"]]

        logger.info(f"Weighted Ensemble result: {', '.join(map(str, selected))} (consensus {consensus}%)")
        return EnsembleResult(
            numbers=selected,
            consensus=consensus,
            strategy_agreement=agreement,
            top_strategies=top_strategies,
        )

    def predict_diversified(self, history: Sequence[Draw], config: PredictionConfig,
                            game_count: int = ENSEMBLE_CONFIG["default_games"]) -> DiversifiedSet:
        """
        Up to `game_count` distinct games: the consensus game, then the raw
        outputs of the heaviest strategies, then random variations of the
        consensus game. Returns fewer games (flagged degraded) when the
        variation budget runs out.
        """
        validate_request(history, config)
        if game_count < 1:
            raise InvalidConfigurationError(f"game_count must be at least 1, got {game_count}")

        predictions = self.collect_predictions(history, config)
        result = self._consensus(predictions, config)

        games = [list(result.numbers)]
        used: Set[Tuple[int, ...]] = {tuple(result.numbers)}

        for pred in sorted(predictions, key=lambda p: -p.weight):
            if len(games) >= game_count:
                break
            key = tuple(sorted(pred.numbers))
            if key not in used:
                games.append(list(key))
                used.add(key)

        while len(games) < game_count:
            variation = self._create_variation(games[0], config, used)
            if variation is None:
                break
            games.append(variation)
            used.add(tuple(variation))

        degraded = result.degraded
        if len(games) < game_count:
            degraded = True
            logger.warning(
                f"Diversification exhausted: returning {len(games)} of {game_count} games (degraded)"
            )
        return DiversifiedSet(games=games, requested=game_count, degraded=degraded)

    def _create_variation(self, base: Sequence[int], config: PredictionConfig,
                          used: Set[Tuple[int, ...]]) -> Optional[List[int]]:
        """Swap 1 or 2 numbers of `base` for unused ones; None after the attempt budget."""
        rng = config.rng
        if len(base) >= config.max_number - config.min_number + 1:
            return None

        for _ in range(ENSEMBLE_CONFIG["variation_attempts"]):
            variation = list(base)
            n_replace = 1 if rng.random() < 0.5 else 2

            for _ in range(n_replace):
                idx = int(rng.integers(len(variation)))
                candidates = [n for n in config.number_range if n not in variation]
                variation[idx] = int(rng.choice(candidates))

            key = tuple(sorted(variation))
            if key not in used:
                return list(key)

        return None

    def _random_numbers(self, config: PredictionConfig) -> List[int]:
        pool = np.arange(config.min_number, config.max_number + 1)
        picks = config.rng.choice(pool, size=config.numbers_to_draw, replace=False)
        return sorted(int(n) for n in picks)
