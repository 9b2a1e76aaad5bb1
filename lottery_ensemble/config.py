from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import numpy as np

from .errors import InvalidConfigurationError

# File Paths
PROJECT_ROOT = Path(__file__).parent.parent.absolute()
DATA_DIR = PROJECT_ROOT / "lottery_data"
DATA_FILE = DATA_DIR / "draws.csv"
LOGS_DIR = PROJECT_ROOT / "logs"
PREDICTIONS_DIR = PROJECT_ROOT / "predictions"
WEIGHTS_FILE = PREDICTIONS_DIR / "strategy_weights.json"

# Ensure directories exist
for directory in [LOGS_DIR, PREDICTIONS_DIR]:
    directory.mkdir(exist_ok=True)

# Lottery Rules
LOTTERY_CONFIGS = {
    "megasena": {"display_name": "Mega-Sena", "numbers_to_draw": 6, "min_number": 1, "max_number": 60},
    "quina": {"display_name": "Quina", "numbers_to_draw": 5, "min_number": 1, "max_number": 80},
    "lotofacil": {"display_name": "Lotofácil", "numbers_to_draw": 15, "min_number": 1, "max_number": 25},
    "lotomania": {"display_name": "Lotomania", "numbers_to_draw": 20, "min_number": 1, "max_number": 100},
}
DEFAULT_LOTTERY = "megasena"

# Feature extraction
FEATURE_WINDOW = 50
N_FEATURES = 10

# Model Configuration
GRADIENT_BOOSTING_PARAMS = {
    "n_estimators": 100,
    "max_depth": 5,
    "learning_rate": 0.1,
    "min_samples_split": 10,
    "subsample": 0.8
}

MIN_TRAINING_DRAWS = 200       # need strictly more than this before training
TRAINING_HISTORY_LIMIT = 500   # most recent draws fed to the trainers
MIN_SAMPLES_PER_NUMBER = 100
TREES_PER_NUMBER = 10

XGBOOST_PARAMS = {
    "n_estimators": 200,
    "max_depth": 4,
    "learning_rate": 0.05,
    "subsample": 0.8,
    "colsample_bytree": 0.9,
    "objective": "binary:logistic",
    "eval_metric": "logloss",
    "tree_method": "hist",
    "n_jobs": -1
}

RANDOM_FOREST_PARAMS = {
    "n_estimators": 100,
    "max_depth": 8,
    "min_samples_leaf": 5,
    "n_jobs": -1
}

HEURISTIC_CONFIG = {
    "hot_cold_window": 20,
    "hot_factor": 1.2,
    "cold_factor": 0.5,
    "hot_share": 0.6,
    "moving_average_window": 10,
    "markov_window": 100,
    "statistical_window": 50
}

ENSEMBLE_CONFIG = {
    "default_weight": 0.5,
    "top_strategies": 5,
    "variation_attempts": 100,
    "default_games": 5
}

BACKTEST_CONFIG = {
    "window": 50,           # draws evaluated
    "history_window": 50,   # draws fed to each strategy per evaluation
    "min_history": 10,
    "success_hits": 4,
    "smoothing": 0.3        # share kept from the previous weight
}


@dataclass(frozen=True)
class BoostingParams:
    """Hyper-parameters of the boosted tree learner."""
    n_estimators: int = GRADIENT_BOOSTING_PARAMS["n_estimators"]
    max_depth: int = GRADIENT_BOOSTING_PARAMS["max_depth"]
    learning_rate: float = GRADIENT_BOOSTING_PARAMS["learning_rate"]
    min_samples_split: int = GRADIENT_BOOSTING_PARAMS["min_samples_split"]
    subsample: float = GRADIENT_BOOSTING_PARAMS["subsample"]


@dataclass
class PredictionConfig:
    """
    Request-level configuration shared by every strategy.

    `rng` is the single random source for training subsamples, fallbacks and
    game variations. Pass a seeded generator for repeatable runs.
    """
    numbers_to_draw: int = 6
    min_number: int = 1
    max_number: int = 60
    lottery_context: str = DEFAULT_LOTTERY
    rng: np.random.Generator = field(default_factory=np.random.default_rng, repr=False)

    @classmethod
    def for_lottery(cls, name: str, seed: Optional[int] = None) -> "PredictionConfig":
        if name not in LOTTERY_CONFIGS:
            raise InvalidConfigurationError(f"Unknown lottery '{name}'. Known: {sorted(LOTTERY_CONFIGS)}")
        preset = LOTTERY_CONFIGS[name]
        return cls(
            numbers_to_draw=preset["numbers_to_draw"],
            min_number=preset["min_number"],
            max_number=preset["max_number"],
            lottery_context=name,
            rng=np.random.default_rng(seed),
        )

    @property
    def number_range(self) -> range:
        return range(self.min_number, self.max_number + 1)
