"""Model-free strategies built from counts, gaps and transitions over the history."""
import logging
import math
from typing import Dict, List, Sequence

import numpy as np

from .config import HEURISTIC_CONFIG, PredictionConfig
from .data import Draw, hit_column, validate_request
from .strategy import Strategy, rank_numbers, top_k

logger = logging.getLogger(__name__)


def _presence(history: Sequence[Draw], config: PredictionConfig) -> np.ndarray:
    """(n_draws, range size) 0/1 matrix; column j is number min_number + j."""
    presence = np.zeros((len(history), config.max_number - config.min_number + 1))
    for i, draw in enumerate(history):
        for num in draw.numbers:
            if config.min_number <= num <= config.max_number:
                presence[i, num - config.min_number] = 1
    return presence


class FrequencyStrategy(Strategy):
    """Occurrence counts, each draw weighted by how recent it is."""

    name = "frequency"
    display_name = "Frequency Analysis"

    def predict(self, history: Sequence[Draw], config: PredictionConfig) -> List[int]:
        validate_request(history, config)
        n = len(history)
        recency = 1 - np.arange(n) / n
        weighted = recency @ _presence(history, config)
        scores = {num: float(weighted[j]) for j, num in enumerate(config.number_range)}
        return top_k(scores, config.numbers_to_draw)


class DelayStrategy(Strategy):
    """Numbers that have been absent the longest."""

    name = "delay"
    display_name = "Delay/Latency Analysis"

    def predict(self, history: Sequence[Draw], config: PredictionConfig) -> List[int]:
        validate_request(history, config)
        scores = {}
        for num in config.number_range:
            seen = np.flatnonzero(hit_column(history, num))
            scores[num] = float(seen[0]) if len(seen) else float(len(history))
        return top_k(scores, config.numbers_to_draw)


class HotColdStrategy(Strategy):
    """Mix of the hottest and coldest numbers of the recent window."""

    name = "hot_cold"
    display_name = "Hot & Cold Numbers"

    def __init__(self, window: int = HEURISTIC_CONFIG["hot_cold_window"]):
        self.window = window

    def predict(self, history: Sequence[Draw], config: PredictionConfig) -> List[int]:
        validate_request(history, config)
        counts = _presence(history[:self.window], config).sum(axis=0)
        frequency = {num: float(counts[j]) for j, num in enumerate(config.number_range)}
        avg = float(np.mean(counts))

        hot = [n for n in rank_numbers(frequency) if frequency[n] > avg * HEURISTIC_CONFIG["hot_factor"]]
        cold = sorted(
            (n for n in frequency if frequency[n] < avg * HEURISTIC_CONFIG["cold_factor"]),
            key=lambda n: (frequency[n], n),
        )

        k = config.numbers_to_draw
        hot_count = math.ceil(k * HEURISTIC_CONFIG["hot_share"])
        selected = hot[:hot_count] + cold[:k - hot_count]

        if len(selected) < k:
            # Fill with the numbers furthest from the average
            remaining = {n: abs(f - avg) for n, f in frequency.items() if n not in selected}
            selected += rank_numbers(remaining)[:k - len(selected)]

        return sorted(selected[:k])


class GapAnalysisStrategy(Strategy):
    """Numbers whose current absence is long relative to their usual gap."""

    name = "gap_analysis"
    display_name = "Gap Analysis"

    def predict(self, history: Sequence[Draw], config: PredictionConfig) -> List[int]:
        validate_request(history, config)
        scores = {}
        for num in config.number_range:
            seen = np.flatnonzero(hit_column(history, num))
            if len(seen) < 2:
                scores[num] = 0.0
                continue
            avg_gap = float(np.mean(np.diff(seen)))
            scores[num] = float(seen[0]) / (avg_gap or 1.0)
        return top_k(scores, config.numbers_to_draw)


class MovingAverageStrategy(Strategy):
    """Trend of per-window counts: recent windows against the oldest ones."""

    name = "moving_average"
    display_name = "Moving Average"

    def __init__(self, window: int = HEURISTIC_CONFIG["moving_average_window"]):
        self.window = window

    def predict(self, history: Sequence[Draw], config: PredictionConfig) -> List[int]:
        validate_request(history, config)
        presence = _presence(history, config)
        n_windows = len(history) - self.window
        if n_windows <= 0:
            counts = presence.sum(axis=0, keepdims=True)
        else:
            cumulative = np.vstack([np.zeros(presence.shape[1]), np.cumsum(presence, axis=0)])
            # Row i counts hits in history[i : i + window]; row 0 is the most recent window
            counts = cumulative[self.window:self.window + n_windows] - cumulative[:n_windows]

        avg = counts.mean(axis=0)
        trend = counts[:5].mean(axis=0) - counts[-5:].mean(axis=0)

        ranked = sorted(
            range(len(avg)),
            key=lambda j: (-round(float(trend[j]), 1), -float(avg[j]), j),
        )
        selected = [config.min_number + j for j in ranked[:config.numbers_to_draw]]
        return sorted(selected)


class MarkovChainStrategy(Strategy):
    """First-order transitions between consecutive draws, started from the latest draw."""

    name = "markov_chain"
    display_name = "Markov Chain"

    def __init__(self, window: int = HEURISTIC_CONFIG["markov_window"]):
        self.window = window

    def predict(self, history: Sequence[Draw], config: PredictionConfig) -> List[int]:
        validate_request(history, config)
        presence = _presence(history[:self.window], config)

        # transitions[a, b]: how often b came out in the draw after one containing a
        transitions = presence[1:].T @ presence[:-1]
        totals = transitions.sum(axis=1, keepdims=True)
        probs = np.divide(transitions, totals, out=np.zeros_like(transitions), where=totals > 0)

        last = np.flatnonzero(presence[0])
        scores: Dict[int, float] = {}
        for j, num in enumerate(config.number_range):
            scores[num] = float(probs[last, j].mean()) if len(last) else 0.0
        return top_k(scores, config.numbers_to_draw)


class StatisticalStrategy(Strategy):
    """Blend of recent frequency (hot numbers) and recency (due numbers)."""

    name = "statistical"
    display_name = "Statistical Frequency/Recency"

    def __init__(self, window: int = HEURISTIC_CONFIG["statistical_window"]):
        self.window = window

    def predict(self, history: Sequence[Draw], config: PredictionConfig) -> List[int]:
        validate_request(history, config)
        freq = self._calculate_frequency(history[:self.window], config)
        recency = self._calculate_recency(history, config)

        # Normalize recency (higher is more due)
        recency_score = recency / (np.max(recency) + 1)
        weights = (freq * 0.6) + (recency_score * 0.4)
        scores = {num: float(weights[j]) for j, num in enumerate(config.number_range)}
        return top_k(scores, config.numbers_to_draw)

    def _calculate_frequency(self, history: Sequence[Draw], config: PredictionConfig) -> np.ndarray:
        """Normalized frequency for each number."""
        counts = _presence(history, config).sum(axis=0)
        total_picks = sum(len(d.numbers) for d in history)
        if total_picks == 0:
            return counts
        return counts / total_picks

    def _calculate_recency(self, history: Sequence[Draw], config: PredictionConfig) -> np.ndarray:
        """Draws since last drawn for each number; never-seen numbers get the history length."""
        presence = _presence(history, config)
        last_seen = np.full(presence.shape[1], len(history), dtype=np.float64)
        seen = presence.any(axis=0)
        last_seen[seen] = presence.argmax(axis=0)[seen]
        return last_seen
