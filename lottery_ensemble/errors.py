"""Exceptions raised by the lottery ensemble."""


class LotteryError(Exception):
    """Base exception for all lottery ensemble errors."""
    pass


class InvalidConfigurationError(LotteryError, ValueError):
    """Raised when a prediction request is structurally invalid."""
    pass


class LotteryDataError(LotteryError):
    """Raised when draw history cannot be loaded or parsed."""
    pass


class InsufficientHistoryError(LotteryError):
    """Raised by trainers when the history yields too few samples to fit a model."""
    pass
