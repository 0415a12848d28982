"""Utility helpers for weightvec."""

from .logging_setup import JSONLinesFormatter, log_operation, setup_logging

__all__ = ["JSONLinesFormatter", "log_operation", "setup_logging"]
