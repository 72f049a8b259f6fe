"""
Shared utilities for the partition maintenance advisor.
"""

from .logger import setup_logging, get_logger, PerformanceLogger

__all__ = ['setup_logging', 'get_logger', 'PerformanceLogger']
