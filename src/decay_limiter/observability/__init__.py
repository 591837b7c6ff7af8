"""Logging and metrics for the decay limiter."""

from .logging import LogFormat, get_logger, setup_logging
from .metrics import AdmissionMetrics

__all__ = ["AdmissionMetrics", "LogFormat", "get_logger", "setup_logging"]
