import logging

import numpy as np
import xgboost as xgb

from .config import XGBOOST_PARAMS
from .strategy import PooledModelStrategy

logger = logging.getLogger(__name__)


class XGBoostStrategy(PooledModelStrategy):
    """XGBoost classifier over the per-number feature rows."""

    name = "xgboost"
    display_name = "XGBoost"

    def __init__(self, model_store=None, params: dict = None):
        super().__init__(model_store)
        self.params = dict(XGBOOST_PARAMS, **(params or {}))

    def fit(self, X: np.ndarray, y: np.ndarray, rng: np.random.Generator) -> xgb.XGBClassifier:
        # Positives are rare (numbers_to_draw out of the range), rebalance them
        pos = float(np.sum(y))
        neg = float(len(y) - pos)
        scale_pos_weight = (neg / pos) if pos > 0 else 1.0
        scale_pos_weight = float(np.clip(scale_pos_weight, 1.0, 50.0))

        model = xgb.XGBClassifier(
            scale_pos_weight=scale_pos_weight,
            random_state=int(rng.integers(0, 2**31 - 1)),
            **self.params
        )
        model.fit(X, y.astype(int), verbose=False)
        return model
