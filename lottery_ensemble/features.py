"""
Per-number feature vectors built from a window of recent draws.

Every vector has N_FEATURES components, in this order:

    0 frequency       hits in the window / window_size
    1 current_gap     draws since the most recent hit / window_size
    2 average_gap     mean distance between consecutive hits / window_size
    3 gap_ratio       current_gap / average_gap (raw draw units)
    4 trend           (hits in draws 0-9 - hits in draws 10-19 + 10) / 20
    5 parity          number % 2
    6 magnitude       number / max_number
    7 decade          floor(number / 10) / 6
    8 in_last_draw    1 if the number came out in the most recent draw
    9 last5           hits in the 5 most recent draws / 5
"""
import logging
from typing import List, Sequence, Tuple

import numpy as np

from .config import FEATURE_WINDOW, N_FEATURES
from .data import Draw, hit_column
from .errors import InvalidConfigurationError

logger = logging.getLogger(__name__)

FEATURE_NAMES = (
    "frequency", "current_gap", "average_gap", "gap_ratio", "trend",
    "parity", "magnitude", "decade", "in_last_draw", "last5",
)

# Used when the raw average gap is zero
GAP_RATIO_SENTINEL = 1.0


def extract_features(number: int, draws: Sequence[Draw], window_size: int = FEATURE_WINDOW,
                     max_number: int = 60) -> np.ndarray:
    """Feature vector for `number` given `draws` ordered most recent first."""
    if not draws:
        raise InvalidConfigurationError("Cannot extract features from an empty history.")
    return features_from_hits(number, hit_column(draws, number), window_size, max_number)


def features_from_hits(number: int, hits: np.ndarray, window_size: int = FEATURE_WINDOW,
                       max_number: int = 60) -> np.ndarray:
    """
    Same as `extract_features` but reads a precomputed hit column, so callers
    sliding over history can pass `hits[offset:]` instead of rebuilding draws.
    """
    if len(hits) == 0:
        raise InvalidConfigurationError("Cannot extract features from an empty history.")

    window = np.flatnonzero(hits[:window_size])

    frequency = len(window) / window_size
    current_gap = float(window[0]) if len(window) else float(window_size)
    average_gap = float(np.mean(np.diff(window))) if len(window) >= 2 else float(window_size)
    gap_ratio = current_gap / average_gap if average_gap > 0 else GAP_RATIO_SENTINEL

    recent = int(np.count_nonzero(hits[:10]))
    older = int(np.count_nonzero(hits[10:20]))

    features = np.empty(N_FEATURES, dtype=np.float64)
    features[0] = frequency
    features[1] = current_gap / window_size
    features[2] = average_gap / window_size
    features[3] = gap_ratio
    features[4] = (recent - older + 10) / 20
    features[5] = number % 2
    features[6] = number / max_number
    features[7] = (number // 10) / 6
    features[8] = 1.0 if hits[0] else 0.0
    features[9] = np.count_nonzero(hits[:5]) / 5
    return features


def build_training_set(draws: Sequence[Draw], number: int, window_size: int = FEATURE_WINDOW,
                       max_number: int = 60) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sliding-window samples for one number.

    Row i holds the features of the history starting at offset i; its target
    is 1 when the draw just before that window (offset i - 1) contains the
    number. Offsets run from `window_size` to `len(draws) - 2`.
    """
    hits = hit_column(draws, number)
    rows: List[np.ndarray] = []
    targets: List[float] = []
    for offset in range(window_size, len(draws) - 1):
        rows.append(features_from_hits(number, hits[offset:], window_size, max_number))
        targets.append(1.0 if hits[offset - 1] else 0.0)

    if not rows:
        return np.empty((0, N_FEATURES)), np.empty(0)
    return np.vstack(rows), np.asarray(targets)


def heuristic_score(features: np.ndarray) -> float:
    """Model-free score: 0.4 * gap ratio + 0.3 * frequency + 0.3 * trend."""
    return 0.4 * features[3] + 0.3 * features[0] + 0.3 * features[4]


def build_pooled_training_set(draws: Sequence[Draw], numbers: Sequence[int],
                              window_size: int = FEATURE_WINDOW,
                              max_number: int = 60) -> Tuple[np.ndarray, np.ndarray]:
    """Sliding-window samples of several numbers stacked into one matrix."""
    blocks = [build_training_set(draws, n, window_size, max_number) for n in numbers]
    blocks = [(X, y) for X, y in blocks if len(X)]
    if not blocks:
        return np.empty((0, N_FEATURES)), np.empty(0)
    return np.vstack([X for X, _ in blocks]), np.concatenate([y for _, y in blocks])


def feature_matrix(draws: Sequence[Draw], numbers: Sequence[int], window_size: int = FEATURE_WINDOW,
                   max_number: int = 60) -> np.ndarray:
    """One feature row per number, for scoring the next draw."""
    return np.vstack([extract_features(n, draws, window_size, max_number) for n in numbers])
