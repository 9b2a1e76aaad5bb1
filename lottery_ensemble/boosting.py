import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import (
    FEATURE_WINDOW,
    MIN_SAMPLES_PER_NUMBER,
    TREES_PER_NUMBER,
    BoostingParams,
)
from .data import Draw
from .errors import InsufficientHistoryError
from .features import build_training_set
from .tree import Node, build_tree, predict_tree, predict_tree_batch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainingReport:
    context: str
    numbers_trained: int
    numbers_skipped: int
    mse: float
    seconds: float


@dataclass(frozen=True)
class BoostedModel:
    """
    Per-number boosted trees for one lottery context.

    `trees[n]` holds the most recent trees fitted for number n (at most
    TREES_PER_NUMBER); `base_weights[n]` is the share of positive samples.
    """
    context: str
    trees: Dict[int, Tuple[Node, ...]]
    base_weights: Dict[int, float]
    max_number: int
    report: Optional[TrainingReport] = field(default=None, compare=False)

    def __contains__(self, number: int) -> bool:
        return bool(self.trees.get(number))

    def score(self, number: int, features: np.ndarray) -> float:
        """Mean output of the number's retained trees."""
        trees = self.trees.get(number)
        if not trees:
            return 0.0
        return sum(predict_tree(t, features) for t in trees) / len(trees)


class BoostedTrainer:
    """Gradient boosting on per-number sliding-window samples."""

    def __init__(self, params: Optional[BoostingParams] = None, window_size: int = FEATURE_WINDOW):
        self.params = params or BoostingParams()
        self.window_size = window_size

    def train(self, context: str, draws: Sequence[Draw],
              rng: Optional[np.random.Generator] = None) -> BoostedModel:
        """
        Fit one boosted ensemble per number in the observed range of `draws`.

        Raises InsufficientHistoryError when no number gets enough samples.
        """
        rng = rng if rng is not None else np.random.default_rng()
        start = time.perf_counter()
        logger.info(f"Training Gradient Boosting for {context} on {len(draws)} draws...")

        observed = [n for d in draws for n in d.numbers]
        if not observed:
            raise InsufficientHistoryError(f"No numbers observed for {context}.")
        min_number, max_number = min(observed), max(observed)

        trees: Dict[int, Tuple[Node, ...]] = {}
        base_weights: Dict[int, float] = {}
        errors: List[float] = []
        skipped = 0

        for number in range(min_number, max_number + 1):
            X, y = build_training_set(draws, number, self.window_size, max_number)
            if len(X) < MIN_SAMPLES_PER_NUMBER:
                skipped += 1
                continue

            number_trees, predictions = self.boost(X, y, rng)
            trees[number] = tuple(number_trees[-TREES_PER_NUMBER:])
            base_weights[number] = float(np.mean(y))
            errors.append(float(np.mean((y - predictions) ** 2)))

        if not trees:
            raise InsufficientHistoryError(
                f"Not enough history to train {context}: every number has fewer than "
                f"{MIN_SAMPLES_PER_NUMBER} samples."
            )

        report = TrainingReport(
            context=context,
            numbers_trained=len(trees),
            numbers_skipped=skipped,
            mse=float(np.mean(errors)),
            seconds=time.perf_counter() - start,
        )
        logger.info(
            f"Training complete for {context}: {report.numbers_trained} numbers, "
            f"MSE = {report.mse:.4f}, {report.seconds:.1f}s"
        )
        return BoostedModel(context=context, trees=trees, base_weights=base_weights,
                            max_number=max_number, report=report)

    def boost(self, X: np.ndarray, y: np.ndarray,
              rng: np.random.Generator) -> Tuple[List[Node], np.ndarray]:
        """Residual boosting from a constant 0.5 start. Returns every tree and the final predictions."""
        n = len(X)
        sample_size = max(1, int(n * self.params.subsample))
        predictions = np.full(n, 0.5)
        fitted: List[Node] = []

        for _ in range(self.params.n_estimators):
            residuals = y - predictions
            indices = rng.permutation(n)[:sample_size]
            tree = build_tree(X[indices], residuals[indices], 0, self.params)
            fitted.append(tree)
            predictions = predictions + self.params.learning_rate * predict_tree_batch(tree, X)

        return fitted, predictions
