"""
Rendering and execution of maintenance directives.
"""

from .renderer import TsqlRenderer, quote_name
from .executor import DirectiveExecutor, LoggingExecutor, ExecutionResult, ExecutionStatus

__all__ = [
    'TsqlRenderer',
    'quote_name',
    'DirectiveExecutor',
    'LoggingExecutor',
    'ExecutionResult',
    'ExecutionStatus',
]
