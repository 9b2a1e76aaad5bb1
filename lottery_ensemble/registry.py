import logging
from collections import OrderedDict
from typing import Iterator, Optional, Tuple

from .boosting import BoostedTrainer
from .config import BoostingParams
from .gradient_boosting import GradientBoostingStrategy
from .model_store import ModelStore
from .random_forest import RandomForestStrategy
from .statistical import (
    DelayStrategy,
    FrequencyStrategy,
    GapAnalysisStrategy,
    HotColdStrategy,
    MarkovChainStrategy,
    MovingAverageStrategy,
    StatisticalStrategy,
)
from .strategy import Strategy
from .xgboost_model import XGBoostStrategy

logger = logging.getLogger(__name__)


class StrategyRegistry:
    """Ordered, name-keyed collection of strategies. Registration order is iteration order."""

    def __init__(self):
        self._strategies: "OrderedDict[str, Strategy]" = OrderedDict()

    def register(self, strategy: Strategy) -> "StrategyRegistry":
        if not strategy.name:
            raise ValueError(f"{strategy!r} has no name")
        if strategy.name in self._strategies:
            raise ValueError(f"Strategy '{strategy.name}' is already registered")
        self._strategies[strategy.name] = strategy
        return self

    def get(self, name: str) -> Optional[Strategy]:
        return self._strategies.get(name)

    def names(self) -> Tuple[str, ...]:
        return tuple(self._strategies)

    def items(self) -> Iterator[Tuple[str, Strategy]]:
        return iter(list(self._strategies.items()))

    def __contains__(self, name: str) -> bool:
        return name in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)

    def __iter__(self) -> Iterator[Strategy]:
        return iter(list(self._strategies.values()))


def build_default_registry(model_store: Optional[ModelStore] = None,
                           boosting_params: Optional[BoostingParams] = None,
                           include_ml: bool = True) -> StrategyRegistry:
    """
    Registry with every built-in strategy.

    The tree-based strategies share `model_store`, keyed by (strategy, context).
    Set `include_ml=False` to leave out the XGBoost and random forest models.
    """
    store = model_store if model_store is not None else ModelStore()
    registry = (
        StrategyRegistry()
        .register(FrequencyStrategy())
        .register(DelayStrategy())
        .register(HotColdStrategy())
        .register(GapAnalysisStrategy())
        .register(MovingAverageStrategy())
        .register(MarkovChainStrategy())
        .register(StatisticalStrategy())
        .register(GradientBoostingStrategy(store, BoostedTrainer(boosting_params)))
    )
    if include_ml:
        registry.register(XGBoostStrategy(store)).register(RandomForestStrategy(store))

    logger.info(f"Registered {len(registry)} strategies: {', '.join(registry.names())}")
    return registry
