import json
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

from .config import ENSEMBLE_CONFIG, WEIGHTS_FILE
from .errors import LotteryDataError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrategyWeight:
    weight: float = ENSEMBLE_CONFIG["default_weight"]
    confidence: float = 0.5
    avg_hits: float = 0.0


class WeightProvider(ABC):
    """Source of per-strategy weights for a lottery context."""

    @abstractmethod
    def get_weights(self, context: str) -> Dict[str, StrategyWeight]:
        raise NotImplementedError

    def weight_for(self, context: str, strategy_name: str,
                   weights: Optional[Mapping[str, StrategyWeight]] = None) -> float:
        """Weight of one strategy; strategies without an entry get the default weight."""
        weights = weights if weights is not None else self.get_weights(context)
        entry = weights.get(strategy_name)
        return entry.weight if entry is not None else ENSEMBLE_CONFIG["default_weight"]


class StaticWeightProvider(WeightProvider):
    """In-memory weights, either shared by every context or given per context."""

    def __init__(self, weights: Optional[Mapping[str, StrategyWeight]] = None,
                 per_context: Optional[Mapping[str, Mapping[str, StrategyWeight]]] = None):
        self.weights = dict(weights or {})
        self.per_context = {ctx: dict(w) for ctx, w in (per_context or {}).items()}

    def get_weights(self, context: str) -> Dict[str, StrategyWeight]:
        return dict(self.per_context.get(context, self.weights))

    def update(self, context: str, weights: Mapping[str, StrategyWeight]) -> None:
        self.per_context[context] = dict(weights)


class JsonWeightProvider(WeightProvider):
    """
    Weights persisted as JSON:

        {"megasena": {"frequency": {"weight": 0.61, "confidence": 1.0, "avg_hits": 0.9}}}

    The file is read on every call so external updates are picked up.
    """

    def __init__(self, file_path: str = str(WEIGHTS_FILE)):
        self.file_path = Path(file_path)

    def _read(self) -> Dict[str, Dict[str, dict]]:
        if not self.file_path.exists():
            return {}
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise LotteryDataError(f"Error reading weights from {self.file_path}: {e}") from e

    def get_weights(self, context: str) -> Dict[str, StrategyWeight]:
        raw = self._read().get(context, {})
        weights = {}
        for name, entry in raw.items():
            weights[name] = StrategyWeight(
                weight=float(entry.get("weight", ENSEMBLE_CONFIG["default_weight"])),
                confidence=float(entry.get("confidence", 0.5)),
                avg_hits=float(entry.get("avg_hits", 0.0)),
            )
        if not weights:
            logger.warning(f"No strategy weights found for {context}, using equal weights")
        return weights

    def save(self, context: str, weights: Mapping[str, StrategyWeight]) -> None:
        data = self._read()
        data[context] = {name: asdict(w) for name, w in weights.items()}
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.file_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=4)
        logger.info(f"Saved {len(weights)} strategy weights for {context} to {self.file_path}")
