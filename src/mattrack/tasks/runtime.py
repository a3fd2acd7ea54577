"""Stage runtime for scheduled sync jobs: context, results, registry, execution."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Literal

from mattrack.db.models import utc_now

logger = logging.getLogger(__name__)

StageStatus = Literal["success", "failed", "skipped"]


@dataclass(frozen=True)
class StageContext:
    """One stage's slice of a run: shared run id plus per-run options."""

    run_id: str
    stage_name: str
    started_at: datetime
    options: dict[str, Any] = field(default_factory=dict)


@dataclass
class StageResult:
    """Outcome of one sync stage, with the sync result's to_dict() as metrics."""

    stage_name: str
    status: StageStatus
    started_at: datetime
    ended_at: datetime
    metrics: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @classmethod
    def from_sync(
        cls,
        ctx: StageContext,
        metrics: dict[str, Any],
        error: str | None = None,
        skipped: bool = False,
    ) -> StageResult:
        """
        Build the result for a finished sync call.

        An error wins over skipped: a sync that reports both is failed.
        """
        if error:
            status: StageStatus = "failed"
        elif skipped:
            status = "skipped"
        else:
            status = "success"
        return cls(
            stage_name=ctx.stage_name,
            status=status,
            started_at=ctx.started_at,
            ended_at=utc_now(),
            metrics=metrics,
            error=error,
        )

    @property
    def duration_s(self) -> float:
        return (self.ended_at - self.started_at).total_seconds()


StageRunner = Callable[[StageContext], StageResult | Awaitable[StageResult]]


@dataclass(frozen=True)
class StageDefinition:
    """A named sync stage and the coroutine (or function) that runs it."""

    name: str
    runner: StageRunner
    enabled_by_default: bool = True


class StageRegistry:
    """Sync stages in registration order, which is also run order."""

    def __init__(self) -> None:
        self._stages: dict[str, StageDefinition] = {}

    def register(self, stage: StageDefinition) -> None:
        if stage.name in self._stages:
            raise ValueError(f"Stage already registered: {stage.name}")
        self._stages[stage.name] = stage

    def resolve(
        self,
        include: list[str] | None = None,
        skip: set[str] | None = None,
    ) -> list[StageDefinition]:
        """
        Pick the stages for one run.

        Without include, every stage enabled by default runs. Unknown
        names in include raise KeyError before anything runs.
        """
        names = include or [n for n, s in self._stages.items() if s.enabled_by_default]
        unknown = [n for n in names if n not in self._stages]
        if unknown:
            raise KeyError(f"Unknown stage(s): {', '.join(unknown)}")
        skipped = skip or set()
        return [self._stages[name] for name in names if name not in skipped]


async def execute_stage(stage: StageDefinition, ctx: StageContext) -> StageResult:
    """
    Run one stage, turning an escaped exception into a failed result.

    A result that carries an error is always reported as failed.
    """
    try:
        outcome = stage.runner(ctx)
        if inspect.isawaitable(outcome):
            outcome = await outcome
    except Exception as exc:
        logger.error("Stage %s raised: %s", stage.name, exc, exc_info=True)
        return StageResult(
            stage_name=stage.name,
            status="failed",
            started_at=ctx.started_at,
            ended_at=utc_now(),
            error=str(exc) or type(exc).__name__,
        )

    if outcome.error and outcome.status != "failed":
        outcome.status = "failed"
    return outcome
