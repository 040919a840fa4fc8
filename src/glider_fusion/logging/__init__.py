"""Logging helpers for glider_fusion."""

from glider_fusion.logging.config import JsonFormatter, setup_logging

__all__ = ["JsonFormatter", "setup_logging"]
