"""
Directive execution collaborators.

The planner only produces directives; an executor renders and runs (or
merely logs) them. Each directive is attempted independently so one failed
statement does not stop the rest of the plan.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from ..maintenance.models import MaintenanceDirective
from ..utils.logger import get_logger
from .renderer import TsqlRenderer

logger = get_logger(__name__)


class ExecutionStatus(Enum):
    """Outcome of one directive."""
    COMPLETE = "complete"
    FAILED = "failed"
    DRY_RUN = "dry_run"


@dataclass
class ExecutionResult:
    """Per-directive execution record."""
    directive: MaintenanceDirective
    statement: str
    status: ExecutionStatus
    started_at: datetime
    finished_at: Optional[datetime] = None
    error_message: Optional[str] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()


class DirectiveExecutor(ABC):
    """Translates directives into engine statements and executes or logs them."""

    @abstractmethod
    def execute(self, directives: Sequence[MaintenanceDirective], dry_run: bool = True) -> List[ExecutionResult]:
        pass


class LoggingExecutor(DirectiveExecutor):
    """
    Logs every rendered statement and, outside dry-run, hands it to
    ``run_statement``.

    Args:
        run_statement: Callable that executes one statement against the engine
        renderer: Statement renderer (defaults to TsqlRenderer)
    """

    def __init__(self,
                 run_statement: Optional[Callable[[str], Any]] = None,
                 renderer: Optional[TsqlRenderer] = None):
        self.run_statement = run_statement
        self.renderer = renderer or TsqlRenderer()

    def execute(self, directives: Sequence[MaintenanceDirective], dry_run: bool = True) -> List[ExecutionResult]:
        if not dry_run and self.run_statement is None:
            raise ValueError("run_statement is required when dry_run is False")

        results = []
        for directive in directives:
            statement = self.renderer.render(directive)
            started = datetime.now()

            if dry_run:
                logger.info(f"[DRY RUN] {statement}")
                results.append(ExecutionResult(directive, statement, ExecutionStatus.DRY_RUN, started, started))
                continue

            logger.info(f"Executing: {statement}")
            try:
                self.run_statement(statement)
            except Exception as e:
                logger.error(f"Failed: {statement} - {e}")
                results.append(ExecutionResult(
                    directive, statement, ExecutionStatus.FAILED, started, datetime.now(), str(e)
                ))
                continue
            results.append(ExecutionResult(directive, statement, ExecutionStatus.COMPLETE, started, datetime.now()))

        failed = sum(1 for r in results if r.status == ExecutionStatus.FAILED)
        if failed:
            logger.warning(f"{failed} of {len(results)} directive(s) failed")
        return results
