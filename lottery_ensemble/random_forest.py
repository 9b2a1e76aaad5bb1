import logging

import numpy as np
from sklearn.ensemble import RandomForestClassifier

from .config import RANDOM_FOREST_PARAMS
from .strategy import PooledModelStrategy

logger = logging.getLogger(__name__)


class RandomForestStrategy(PooledModelStrategy):
    """Random forest classifier over the per-number feature rows."""

    name = "random_forest"
    display_name = "Random Forest"

    def __init__(self, model_store=None, params: dict = None):
        super().__init__(model_store)
        self.params = dict(RANDOM_FOREST_PARAMS, **(params or {}))

    def fit(self, X: np.ndarray, y: np.ndarray, rng: np.random.Generator) -> RandomForestClassifier:
        model = RandomForestClassifier(
            class_weight="balanced",
            random_state=int(rng.integers(0, 2**31 - 1)),
            **self.params
        )
        model.fit(X, y.astype(int))
        return model
