import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import DATA_FILE, PredictionConfig
from .errors import InvalidConfigurationError, LotteryDataError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Draw:
    """One recorded draw. `numbers` is kept ascending."""
    numbers: Tuple[int, ...]
    concurso: int
    date: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "numbers", tuple(sorted(int(n) for n in self.numbers)))

    def __contains__(self, number: int) -> bool:
        return number in self.numbers


def validate_request(history: Sequence[Draw], config: PredictionConfig) -> None:
    """Reject requests that no strategy can satisfy."""
    if not history:
        raise InvalidConfigurationError("History is empty; at least one draw is required.")
    if config.min_number > config.max_number:
        raise InvalidConfigurationError(
            f"min_number ({config.min_number}) is greater than max_number ({config.max_number})."
        )
    if config.numbers_to_draw <= 0:
        raise InvalidConfigurationError(f"numbers_to_draw must be positive, got {config.numbers_to_draw}.")
    span = config.max_number - config.min_number + 1
    if config.numbers_to_draw > span:
        raise InvalidConfigurationError(
            f"numbers_to_draw ({config.numbers_to_draw}) exceeds the size of "
            f"[{config.min_number}, {config.max_number}] ({span})."
        )


def hit_column(draws: Sequence[Draw], number: int) -> np.ndarray:
    """Boolean vector, one entry per draw (most recent first): did `number` come out?"""
    return np.fromiter((number in d.numbers for d in draws), dtype=bool, count=len(draws))


def generate_synthetic_draws(count: int, numbers_per_draw: int = 6, min_number: int = 1,
                             max_number: int = 60, rng: Optional[np.random.Generator] = None,
                             start: Optional[datetime] = None) -> List[Draw]:
    """Uniform random history, most recent first. Used for demos and tests."""
    rng = rng if rng is not None else np.random.default_rng()
    start = start or datetime(2020, 1, 1)
    pool = np.arange(min_number, max_number + 1)
    draws = []
    for concurso in range(count, 0, -1):
        numbers = rng.choice(pool, size=numbers_per_draw, replace=False)
        draws.append(Draw(
            numbers=tuple(int(n) for n in numbers),
            concurso=concurso,
            date=start + timedelta(days=3 * (concurso - 1)),
        ))
    return draws


class LotteryDataManager:
    """Loads draw history from CSV or JSON exports."""

    def __init__(self, file_path: str = str(DATA_FILE)):
        self.file_path = file_path
        self.data = None

    def load_data(self) -> pd.DataFrame:
        """
        Load and parse the history file.

        Accepted formats:
          - CSV with columns `concurso`, `data`, `dezenas` ("04 11 23 35 41 58" or "4-11-23-35-41-58")
          - JSON list of objects with the same keys, `dezenas` being a list (Caixa API export)

        Returns a DataFrame sorted most-recent-first with columns
        `concurso`, `date`, `numbers`.
        """
        if self.data is not None:
            return self.data

        path = Path(self.file_path)
        if not path.exists():
            raise LotteryDataError(f"Data file not found: {path}")

        try:
            if path.suffix.lower() == ".json":
                with open(path, "r", encoding="utf-8") as f:
                    raw = pd.DataFrame(json.load(f))
            else:
                raw = pd.read_csv(path, dtype={"dezenas": str})
        except (ValueError, OSError) as e:
            raise LotteryDataError(f"Error reading {path}: {e}") from e

        missing = {"concurso", "dezenas"} - set(raw.columns)
        if missing:
            raise LotteryDataError(f"Missing columns in {path}: {sorted(missing)}")

        parsed = pd.DataFrame({
            "concurso": raw["concurso"].astype(int),
            "date": pd.to_datetime(raw["data"], dayfirst=True, errors="coerce") if "data" in raw else pd.NaT,
            "numbers": raw["dezenas"].apply(self._parse_numbers),
        })
        empty = parsed["numbers"].apply(len) == 0
        if empty.any():
            logger.warning(f"Skipping {int(empty.sum())} rows without numbers.")
            parsed = parsed[~empty]

        parsed.sort_values("concurso", ascending=False, inplace=True)
        parsed.reset_index(drop=True, inplace=True)
        self.data = parsed

        logger.info(f"Successfully loaded {len(self.data)} draws.")
        return self.data

    def load_draws(self) -> List[Draw]:
        return self.to_draws(self.load_data())

    @staticmethod
    def to_draws(data: pd.DataFrame) -> List[Draw]:
        draws = []
        for row in data.itertuples(index=False):
            date = row.date.to_pydatetime() if isinstance(row.date, pd.Timestamp) else None
            draws.append(Draw(numbers=tuple(row.numbers), concurso=int(row.concurso), date=date))
        return draws

    @staticmethod
    def to_frame(draws: Sequence[Draw]) -> pd.DataFrame:
        return pd.DataFrame({
            "concurso": [d.concurso for d in draws],
            "date": [d.date for d in draws],
            "numbers": [list(d.numbers) for d in draws],
        })

    @staticmethod
    def _parse_numbers(value) -> Tuple[int, ...]:
        if isinstance(value, (list, tuple)):
            return tuple(sorted(int(v) for v in value))
        if value is None or (isinstance(value, float) and np.isnan(value)):
            return ()
        return tuple(sorted(int(v) for v in re.findall(r"\d+", str(value))))
