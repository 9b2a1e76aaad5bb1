"""Lottery number prediction by weighted ensemble of scoring strategies."""

__version__ = "1.0.0"
