"""
Scheduled sync jobs.

Each job is a registered stage wrapping one sync service:

- jjwl_gym_sync: JJWL gym sync + cross-federation matching
- ibjjf_gym_sync: IBJJF gym sync with change detection
- profile_roster_sync: rosters for users' home gyms (daily)
- wishlist_roster_sync: rosters for wishlisted tournaments (off by default)

The concrete federation clients are supplied by the caller, so a
scheduler (cron, a container entrypoint) builds its fetchers once and
hands them to build_registry().

Usage:
    configure_logging()
    registry = build_registry({"JJWL": jjwl_fetcher, "IBJJF": ibjjf_fetcher})
    results = await run_stages(registry, include=["ibjjf_gym_sync", "jjwl_gym_sync"])
"""

from __future__ import annotations

import logging
import uuid
from contextlib import AbstractContextManager
from typing import Any, Callable, Mapping

from sqlalchemy.orm import Session

from mattrack.config import settings
from mattrack.db.models import FEDERATION_IBJJF, FEDERATION_JJWL, utc_now
from mattrack.db.session import get_session
from mattrack.fetchers.base import BaseGymFetcher
from mattrack.services.gym_sync import sync_ibjjf_gyms, sync_jjwl_gyms
from mattrack.services.roster_sync import (
    RosterSyncBatchResult,
    sync_user_gym_rosters,
    sync_wishlisted_rosters,
)
from mattrack.tasks.runtime import (
    StageContext,
    StageDefinition,
    StageRegistry,
    StageResult,
    execute_stage,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractContextManager[Session]]


def configure_logging(level: str | None = None) -> None:
    """Set up root logging for a job process."""
    logging.basicConfig(
        level=level or settings.log_level,
        format=settings.log_format,
    )


def _roster_metrics(result: RosterSyncBatchResult) -> dict[str, Any]:
    return {
        "pairs": len(result.pairs),
        "success_count": result.success_count,
        "failure_count": result.failure_count,
    }


def build_registry(
    fetchers: Mapping[str, BaseGymFetcher],
    session_factory: SessionFactory = get_session,
) -> StageRegistry:
    """
    Register the sync stages against a set of federation fetchers.

    Args:
        fetchers: Fetcher per federation ('JJWL', 'IBJJF')
        session_factory: Context manager yielding a database session
    """

    async def _ibjjf_gym_sync(ctx: StageContext) -> StageResult:
        """Sync IBJJF gyms when the remote count changed."""
        with session_factory() as session:
            result = await sync_ibjjf_gyms(
                session,
                fetchers[FEDERATION_IBJJF],
                force_sync=bool(ctx.options.get("force_sync", False)),
            )
        return StageResult.from_sync(ctx, result.to_dict(), result.error, skipped=result.skipped)

    async def _jjwl_gym_sync(ctx: StageContext) -> StageResult:
        """Sync JJWL gyms and match them against US IBJJF gyms."""
        with session_factory() as session:
            result = await sync_jjwl_gyms(session, fetchers[FEDERATION_JJWL])
        logger.info(result.summary())
        return StageResult.from_sync(ctx, result.to_dict(), result.error)

    async def _profile_roster_sync(ctx: StageContext) -> StageResult:
        """Refresh rosters of users' home gyms for upcoming tournaments."""
        with session_factory() as session:
            result = await sync_user_gym_rosters(
                session, fetchers, days_ahead=ctx.options.get("profile_days_ahead")
            )
        logger.info(result.summary())
        return StageResult.from_sync(ctx, _roster_metrics(result))

    async def _wishlist_roster_sync(ctx: StageContext) -> StageResult:
        """Refresh rosters of athlete gyms for wishlisted JJWL tournaments."""
        with session_factory() as session:
            result = await sync_wishlisted_rosters(
                session, fetchers, days_ahead=ctx.options.get("wishlist_days_ahead")
            )
        logger.info(result.summary())
        return StageResult.from_sync(ctx, _roster_metrics(result))

    registry = StageRegistry()
    registry.register(StageDefinition("ibjjf_gym_sync", _ibjjf_gym_sync))
    registry.register(StageDefinition("jjwl_gym_sync", _jjwl_gym_sync))
    registry.register(StageDefinition("profile_roster_sync", _profile_roster_sync))
    registry.register(
        StageDefinition("wishlist_roster_sync", _wishlist_roster_sync, enabled_by_default=False)
    )
    return registry


async def run_stages(
    registry: StageRegistry,
    include: list[str] | None = None,
    skip: set[str] | None = None,
    options: dict[str, Any] | None = None,
    continue_on_error: bool = True,
) -> list[StageResult]:
    """
    Run stages in sequence.

    Args:
        registry: Registered stages
        include: Stage names to run (default: registry defaults)
        skip: Stage names to leave out
        options: Passed to every stage via StageContext.options
        continue_on_error: Keep going after a failed stage

    Returns:
        One StageResult per stage that ran
    """
    started_at = utc_now()
    run_id = started_at.strftime("%Y%m%dT%H%M%SZ") + "-" + uuid.uuid4().hex[:8]
    stages = registry.resolve(include=include, skip=skip)
    logger.info("Run %s starting stages: %s", run_id, [s.name for s in stages])

    results: list[StageResult] = []
    for stage in stages:
        ctx = StageContext(
            run_id=run_id,
            stage_name=stage.name,
            started_at=utc_now(),
            options=dict(options or {}),
        )
        result = await execute_stage(stage, ctx)
        results.append(result)
        logger.info(
            "Stage %s finished: status=%s duration=%.1fs",
            stage.name, result.status, result.duration_s,
        )

        if result.status == "failed" and not continue_on_error:
            logger.warning("Stopping run %s after failed stage %s", run_id, stage.name)
            break

    return results
