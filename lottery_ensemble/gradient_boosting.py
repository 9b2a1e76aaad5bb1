import logging
from typing import Dict, List, Optional, Sequence

from .boosting import BoostedModel, BoostedTrainer
from .config import (
    FEATURE_WINDOW,
    MIN_TRAINING_DRAWS,
    TRAINING_HISTORY_LIMIT,
    PredictionConfig,
)
from .data import Draw, validate_request
from .errors import InsufficientHistoryError
from .features import extract_features, heuristic_score
from .model_store import ModelStore
from .strategy import Strategy, top_k

logger = logging.getLogger(__name__)


class GradientBoostingStrategy(Strategy):
    """
    Scores every number with its boosted trees, trained lazily per lottery
    context and cached in the model store. Falls back to a feature heuristic
    while no model is available.
    """

    name = "gradient_boosting"
    display_name = "Gradient Boosting Ensemble"

    def __init__(self, model_store: Optional[ModelStore] = None, trainer: Optional[BoostedTrainer] = None):
        self.model_store = model_store if model_store is not None else ModelStore()
        self.trainer = trainer or BoostedTrainer()

    def model_key(self, context: str):
        return (self.name, context)

    def get_model(self, history: Sequence[Draw], config: PredictionConfig) -> Optional[BoostedModel]:
        key = self.model_key(config.lottery_context)
        if len(history) <= MIN_TRAINING_DRAWS:
            return self.model_store.get(key)

        def build() -> BoostedModel:
            return self.trainer.train(config.lottery_context, history[:TRAINING_HISTORY_LIMIT], config.rng)

        try:
            return self.model_store.get_or_create(key, build)
        except InsufficientHistoryError as e:
            logger.warning(f"Gradient boosting unavailable for {config.lottery_context}: {e}")
            return None

    def score_numbers(self, history: Sequence[Draw], config: PredictionConfig) -> Dict[int, float]:
        model = self.get_model(history, config)
        scores = {}
        if model is None:
            logger.debug(f"No boosted model for {config.lottery_context}; using heuristic scores")
            for num in config.number_range:
                features = extract_features(num, history, FEATURE_WINDOW, config.max_number)
                scores[num] = heuristic_score(features)
            return scores

        for num in config.number_range:
            features = extract_features(num, history, FEATURE_WINDOW, model.max_number)
            scores[num] = model.score(num, features)
        return scores

    def predict(self, history: Sequence[Draw], config: PredictionConfig) -> List[int]:
        validate_request(history, config)
        return top_k(self.score_numbers(history, config), config.numbers_to_draw)
