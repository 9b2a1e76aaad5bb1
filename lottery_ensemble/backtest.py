import logging
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .config import BACKTEST_CONFIG, PredictionConfig
from .data import Draw, validate_request
from .registry import StrategyRegistry
from .strategy import Strategy
from .weights import StrategyWeight

logger = logging.getLogger(__name__)


class Backtester:
    """
    Walk-forward evaluation of registered strategies.

    Draw i of the evaluation window is predicted from the `history_window`
    draws that precede it and scored by the number of hits.
    """

    def __init__(self, registry: StrategyRegistry, window: int = BACKTEST_CONFIG["window"],
                 history_window: int = BACKTEST_CONFIG["history_window"],
                 skip: Sequence[str] = ("weighted_ensemble",)):
        self.registry = registry
        self.window = window
        self.history_window = history_window
        self.skip = set(skip)
        self.results: List[Dict] = []

    def run(self, draws: Sequence[Draw], config: PredictionConfig) -> pd.DataFrame:
        """Backtest every registered strategy. Returns one summary row per strategy."""
        validate_request(draws, config)
        # Separate cache key so models trained on the full history are never reused here
        bt_config = replace(config, lottery_context=f"{config.lottery_context}/backtest")

        window = self.window
        if len(draws) < window + BACKTEST_CONFIG["min_history"]:
            logger.warning("Not enough data for requested backtest window. Adjusting...")
            window = max(0, len(draws) - BACKTEST_CONFIG["min_history"])

        logger.info(f"Starting Backtest over last {window} draws...")
        self.results = []
        for name, strategy in self.registry.items():
            if name in self.skip:
                continue
            self.evaluate_strategy(strategy, draws, bt_config, window)

        summary = self.summarize(config.numbers_to_draw)
        self._generate_report(summary)
        return summary

    def evaluate_strategy(self, strategy: Strategy, draws: Sequence[Draw],
                          config: PredictionConfig, window: int) -> None:
        for i in range(window):
            # Training data: the draws before draw i (which come after it in the list)
            training = draws[i + 1:i + 1 + self.history_window]
            if len(training) < BACKTEST_CONFIG["min_history"]:
                continue
            actual = draws[i]
            try:
                prediction = strategy.predict(training, config)
            except Exception as e:
                logger.warning(f"{strategy.name} failed in backtest iteration {i}: {e}")
                continue

            hits = len(set(prediction) & set(actual.numbers))
            self.results.append({
                "strategy": strategy.name,
                "draw_idx": i,
                "concurso": actual.concurso,
                "hits": hits,
            })

    def summarize(self, numbers_to_draw: int) -> pd.DataFrame:
        df = pd.DataFrame(self.results, columns=["strategy", "draw_idx", "concurso", "hits"])
        if df.empty:
            return pd.DataFrame(columns=[
                "total_predictions", "avg_hits", "max_hits", "hits_std",
                "successful_predictions", "hit_rate", "accuracy",
            ])

        grouped = df.groupby("strategy", sort=False)["hits"]
        summary = pd.DataFrame({
            "total_predictions": grouped.count(),
            "avg_hits": grouped.mean(),
            "max_hits": grouped.max(),
            "hits_std": grouped.std(ddof=0),
            "successful_predictions": grouped.apply(lambda h: int((h >= BACKTEST_CONFIG["success_hits"]).sum())),
        })
        summary["hit_rate"] = summary["successful_predictions"] / summary["total_predictions"]
        summary["accuracy"] = summary["avg_hits"] / numbers_to_draw
        return summary

    def hit_distribution(self, strategy_name: str) -> Dict[int, int]:
        counts: Dict[int, int] = {}
        for row in self.results:
            if row["strategy"] == strategy_name:
                counts[row["hits"]] = counts.get(row["hits"], 0) + 1
        return dict(sorted(counts.items()))

    def _generate_report(self, summary: pd.DataFrame) -> None:
        """Summarize backtest results."""
        if summary.empty:
            logger.warning("No results to report.")
            return

        report_lines = ["=== Backtest Report ==="]
        for name, row in summary.sort_values("avg_hits", ascending=False).iterrows():
            report_lines.append(
                f"{name}: {int(row['total_predictions'])} draws | "
                f"Avg: {row['avg_hits']:.2f} | Max: {int(row['max_hits'])} | "
                f"Hit Rate: {row['hit_rate'] * 100:.1f}%"
            )
            dist = ", ".join(f"{h}: {c}" for h, c in self.hit_distribution(name).items())
            report_lines.append(f"  Hits distribution: {dist}")

        # Print to console and log to file for traceability
        print("\n".join(report_lines))
        logger.info(" | ".join(report_lines))


def derive_weights(summary: pd.DataFrame, numbers_to_draw: int,
                   previous: Optional[Mapping[str, StrategyWeight]] = None) -> Dict[str, StrategyWeight]:
    """
    Turn backtest metrics into ensemble weights in [0, 1].

    40% average hits, 30% hit rate, 20% best result, 10% consistency (low
    spread of hits). An existing weight is smoothed as
    `smoothing * previous + (1 - smoothing) * new`.
    """
    previous = previous or {}
    smoothing = BACKTEST_CONFIG["smoothing"]
    weights = {}

    for name, row in summary.iterrows():
        avg_hits_score = (row["avg_hits"] / numbers_to_draw) * 0.4
        hit_rate_score = row["hit_rate"] * 0.3
        max_hits_score = (row["max_hits"] / numbers_to_draw) * 0.2
        std = float(row["hits_std"]) if not np.isnan(row["hits_std"]) else 0.0
        consistency_score = (1 - min(std / numbers_to_draw, 1)) * 0.1 if std > 0 else 0.1

        weight = min(avg_hits_score + hit_rate_score + max_hits_score + consistency_score, 1.0)
        if name in previous:
            weight = previous[name].weight * smoothing + weight * (1 - smoothing)

        weights[name] = StrategyWeight(
            weight=float(weight),
            confidence=float(min(row["total_predictions"] / 100, 1.0)),
            avg_hits=float(row["avg_hits"]),
        )
        logger.debug(f"Strategy {name}: weight={weight:.4f}")

    return weights
