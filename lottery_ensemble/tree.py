import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from .config import BoostingParams

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Leaf:
    value: float


@dataclass(frozen=True)
class Split:
    feature: int
    threshold: float
    left: "Node"
    right: "Node"


Node = Union[Leaf, Split]


def variance(y: np.ndarray) -> float:
    """Population variance; 0 for an empty array."""
    if len(y) == 0:
        return 0.0
    return float(np.mean((y - np.mean(y)) ** 2))


def build_tree(X: np.ndarray, y: np.ndarray, depth: int = 0,
               params: BoostingParams = BoostingParams()) -> Node:
    """
    Grow a regression tree by greedy variance reduction.

    A leaf (mean of `y`) is returned at `max_depth`, below `min_samples_split`
    rows, or when no split has positive gain.
    """
    X = np.asarray(X, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if len(y) == 0:
        return Leaf(0.0)
    # A constant target cannot be split; keep its exact value
    mean = float(y[0]) if np.all(y == y[0]) else float(np.mean(y))

    if depth >= params.max_depth or len(X) < params.min_samples_split:
        return Leaf(mean)

    best = find_best_split(X, y)
    if best is None:
        return Leaf(mean)

    feature, threshold, _ = best
    left_mask = X[:, feature] <= threshold
    # Midpoint rounding can collapse a partition on adjacent floats
    if left_mask.all() or not left_mask.any():
        return Leaf(mean)

    return Split(
        feature=feature,
        threshold=threshold,
        left=build_tree(X[left_mask], y[left_mask], depth + 1, params),
        right=build_tree(X[~left_mask], y[~left_mask], depth + 1, params),
    )


def find_best_split(X: np.ndarray, y: np.ndarray) -> Optional[Tuple[int, float, float]]:
    """
    Best (feature, threshold, gain) over all midpoints between consecutive
    distinct values of every feature, or None when no split has positive gain.

    gain = var(y) - (n_left * var(y_left) + n_right * var(y_right)) / n

    All candidate thresholds of a feature are scored at once from prefix sums
    over the rows sorted by that feature. Ties go to the lowest feature index,
    then the lowest threshold.
    """
    n, n_features = X.shape
    if n < 2 or np.all(y == y[0]):
        return None

    # Centering leaves every variance unchanged and keeps the prefix sums small
    yc = y - np.mean(y)

    order = np.argsort(X, axis=0, kind="stable")
    xs = np.take_along_axis(X, order, axis=0)
    ys = yc[order]

    left_sum = np.cumsum(ys, axis=0)[:-1]
    left_sq = np.cumsum(ys ** 2, axis=0)[:-1]
    total_sum = left_sum[-1] + ys[-1]
    total_sq = left_sq[-1] + ys[-1] ** 2

    n_left = np.arange(1, n, dtype=np.float64)[:, None]
    n_right = n - n_left
    right_sum = total_sum - left_sum
    right_sq = total_sq - left_sq

    # n_side * var(side) == sum of squares - sum**2 / n_side
    weighted = ((left_sq - left_sum ** 2 / n_left) + (right_sq - right_sum ** 2 / n_right)) / n
    total_var = (total_sq - total_sum ** 2 / n) / n
    gains = total_var - weighted

    distinct = xs[1:] != xs[:-1]
    gains = np.where(distinct, gains, -np.inf)

    # Feature-major scan order
    flat = gains.T.ravel()
    best_idx = int(np.argmax(flat))
    best_gain = float(flat[best_idx])
    if not best_gain > 0:
        return None

    feature, position = divmod(best_idx, n - 1)
    threshold = (xs[position, feature] + xs[position + 1, feature]) / 2
    return feature, float(threshold), best_gain


def predict_tree(tree: Node, x: np.ndarray) -> float:
    while isinstance(tree, Split):
        tree = tree.left if x[tree.feature] <= tree.threshold else tree.right
    return tree.value


def predict_tree_batch(tree: Node, X: np.ndarray) -> np.ndarray:
    """Vectorised `predict_tree` over the rows of X."""
    X = np.asarray(X, dtype=np.float64)
    out = np.empty(len(X), dtype=np.float64)
    _fill(tree, X, np.arange(len(X)), out)
    return out


def _fill(tree: Node, X: np.ndarray, rows: np.ndarray, out: np.ndarray) -> None:
    if isinstance(tree, Leaf):
        out[rows] = tree.value
        return
    go_left = X[rows, tree.feature] <= tree.threshold
    if go_left.any():
        _fill(tree.left, X, rows[go_left], out)
    if not go_left.all():
        _fill(tree.right, X, rows[~go_left], out)


def tree_depth(tree: Node) -> int:
    if isinstance(tree, Leaf):
        return 0
    return 1 + max(tree_depth(tree.left), tree_depth(tree.right))
