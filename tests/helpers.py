from typing import List, Sequence

from lottery_ensemble.data import Draw
from lottery_ensemble.strategy import Strategy


def make_draws(rows: Sequence[Sequence[int]]) -> List[Draw]:
    """Draws from number lists given most recent first."""
    return [Draw(numbers=tuple(r), concurso=len(rows) - i) for i, r in enumerate(rows)]


class FixedStrategy(Strategy):
    def __init__(self, name: str, numbers: Sequence[int]):
        self.name = name
        self.display_name = name
        self.numbers = list(numbers)
        self.calls = 0
        self.last_config = None

    def predict(self, history, config):
        self.calls += 1
        self.last_config = config
        return list(self.numbers)


class FailingStrategy(Strategy):
    def __init__(self, name: str = "broken"):
        self.name = name
        self.display_name = name

    def predict(self, history, config):
        raise RuntimeError("model exploded")
