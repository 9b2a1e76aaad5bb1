import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Sequence

import numpy as np

from .config import FEATURE_WINDOW, MIN_TRAINING_DRAWS, TRAINING_HISTORY_LIMIT, PredictionConfig
from .data import Draw, validate_request
from .errors import InsufficientHistoryError
from .features import build_pooled_training_set, feature_matrix, heuristic_score
from .model_store import ModelStore

logger = logging.getLogger(__name__)


class Strategy(ABC):
    """A scorer that proposes `numbers_to_draw` numbers for the next draw."""

    name: str = ""
    display_name: str = ""

    @abstractmethod
    def predict(self, history: Sequence[Draw], config: PredictionConfig) -> List[int]:
        """
        Args:
            history: draws ordered most recent first
            config: request configuration

        Returns:
            ascending, distinct numbers within [min_number, max_number]
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


def rank_numbers(scores: Dict[int, float]) -> List[int]:
    """Numbers by descending score, ascending number on ties."""
    return [num for num, _ in sorted(scores.items(), key=lambda item: (-item[1], item[0]))]


def top_k(scores: Dict[int, float], k: int) -> List[int]:
    return sorted(rank_numbers(scores)[:k])


class PooledModelStrategy(Strategy):
    """
    Base for strategies backed by one library classifier per lottery context,
    fitted on the sliding-window feature rows of every number at once.

    Subclasses implement `fit`; scores are the predicted probability that a
    number comes out next. With too little history the feature heuristic is used.
    """

    def __init__(self, model_store: ModelStore = None):
        self.model_store = model_store if model_store is not None else ModelStore()

    @abstractmethod
    def fit(self, X: np.ndarray, y: np.ndarray, rng: np.random.Generator):
        raise NotImplementedError

    def train(self, history: Sequence[Draw], config: PredictionConfig):
        draws = history[:TRAINING_HISTORY_LIMIT]
        X, y = build_pooled_training_set(draws, list(config.number_range), FEATURE_WINDOW, config.max_number)
        if len(X) == 0 or len(np.unique(y)) < 2:
            raise InsufficientHistoryError(f"Not enough samples to train {self.name} for {config.lottery_context}")
        logger.info(f"Training {self.display_name} for {config.lottery_context} on {len(X)} samples...")
        model = self.fit(X, y, config.rng)
        logger.info(f"{self.display_name} training complete.")
        return model

    def get_model(self, history: Sequence[Draw], config: PredictionConfig):
        key = (self.name, config.lottery_context)
        if len(history) <= MIN_TRAINING_DRAWS:
            return self.model_store.get(key)
        try:
            return self.model_store.get_or_create(key, lambda: self.train(history, config))
        except InsufficientHistoryError as e:
            logger.warning(f"{self.display_name} unavailable: {e}")
            return None

    def predict(self, history: Sequence[Draw], config: PredictionConfig) -> List[int]:
        validate_request(history, config)
        numbers = list(config.number_range)
        X_next = feature_matrix(history, numbers, FEATURE_WINDOW, config.max_number)

        model = self.get_model(history, config)
        if model is None:
            scores = [heuristic_score(row) for row in X_next]
        else:
            scores = model.predict_proba(X_next)[:, 1]
        return top_k({num: float(s) for num, s in zip(numbers, scores)}, config.numbers_to_draw)
