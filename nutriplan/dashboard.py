"""
Multi-service aggregation for the dashboard.

This module provides the aggregation entry points that:
- Launch one list read per source concurrently
- Wait for every source to settle; one failing source never cancels or blocks the others
- Record which sources failed (served fallback data, or raised)
- Compute each dashboard metric only from the sources it depends on, reporting 0
  for a failed source instead of a count of sample data
- Suppress the recent-activity feed entirely when any source failed

Each call is independent: load_all() keeps no memory of earlier failures, so
calling it twice against an unchanged backend yields the same statistics.

Cancelling the task that awaits load_all() cancels every in-flight source call.

Dashboard flow: api/main.py -> load_dashboard() -> load_all() -> Repository.list_result() -> ServiceClient.call()
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Set, Union

from nutriplan.config import PLANS, RECIPES, USERS, DashboardConfig
from nutriplan.models import MealPlan, Recipe, User, UserRole
from nutriplan.repositories import ListResult, MealPlanRepository, RecipeRepository, UserRepository
from nutriplan.stats import (
    ActivityItem,
    as_utc,
    build_recent_activity,
    count_active_plans,
    count_created_since,
    count_patients_with_active_plan,
    start_of_month,
    trailing_week_start,
)

logger = logging.getLogger(__name__)

SourceLoader = Callable[[], Awaitable[Union[ListResult, List[Any]]]]


@dataclass
class LoadResult:
    """
    Outcome of an all-settled multi-source load.

    Attributes:
        data: Records per source name (fallback records for failed sources that
            produced them, empty for sources that raised)
        failed: Names of sources that did not deliver live data
        errors: Failure reason per failed source
    """
    data: Dict[str, List[Any]] = field(default_factory=dict)
    failed: Set[str] = field(default_factory=set)
    errors: Dict[str, str] = field(default_factory=dict)

    def live(self, source: str) -> List[Any]:
        """Records of a source if it loaded live, otherwise an empty list."""
        if source in self.failed:
            return []
        return self.data.get(source, [])


async def load_all(sources: Mapping[str, SourceLoader]) -> LoadResult:
    """
    Load several sources concurrently with all-settle semantics.

    Args:
        sources: Mapping of source name -> zero-argument coroutine function returning
            a ListResult (or a plain list, taken as live data)

    Returns:
        LoadResult with data per source and the set of failed sources.
    """
    names = list(sources)
    logger.debug("Loading sources concurrently: %s", names)

    outcomes = await asyncio.gather(*(sources[name]() for name in names), return_exceptions=True)

    result = LoadResult()
    for name, outcome in zip(names, outcomes):
        if isinstance(outcome, BaseException):
            logger.error("Source %s raised during load: %r", name, outcome)
            result.data[name] = []
            result.failed.add(name)
            result.errors[name] = str(outcome) or outcome.__class__.__name__
        elif isinstance(outcome, ListResult):
            result.data[name] = list(outcome.items)
            if not outcome.live:
                result.failed.add(name)
                result.errors[name] = outcome.error or "fallback data served"
        else:
            result.data[name] = list(outcome or [])

    if result.failed:
        logger.warning("Sources degraded: %s", ", ".join(sorted(result.failed)))
    logger.info(
        "Loaded sources: %s",
        {name: len(items) for name, items in result.data.items()},
    )
    return result


@dataclass(frozen=True)
class DashboardStats:
    total_users: int = 0
    new_users_this_month: int = 0
    active_plans: int = 0
    new_plans_this_week: int = 0
    patients_with_active_plan: int = 0
    total_recipes: int = 0
    new_recipes_this_week: int = 0


@dataclass
class DashboardSummary:
    failed: List[str]
    stats: DashboardStats
    recent_activity: List[ActivityItem]
    data: Dict[str, List[Any]] = field(default_factory=dict)


def compute_dashboard_stats(load: LoadResult, now: Optional[datetime] = None) -> DashboardStats:
    """
    Compute dashboard metrics, each scoped to the source it depends on.

    A failed source contributes 0 to its metrics; the other metrics are unaffected.
    """
    now = as_utc(now)
    users: List[User] = load.live(USERS)
    plans: List[MealPlan] = load.live(PLANS)
    recipes: List[Recipe] = load.live(RECIPES)
    week_start = trailing_week_start(now)

    return DashboardStats(
        total_users=len(users),
        new_users_this_month=count_created_since((u.created_at for u in users), start_of_month(now)),
        active_plans=count_active_plans(plans, now),
        new_plans_this_week=count_created_since((p.start_date for p in plans), week_start),
        patients_with_active_plan=count_patients_with_active_plan(plans, now),
        total_recipes=len(recipes),
        new_recipes_this_week=count_created_since((r.created_at for r in recipes), week_start),
    )


async def load_dashboard(
    users: UserRepository,
    plans: MealPlanRepository,
    recipes: RecipeRepository,
    now: Optional[datetime] = None,
    user_role: Optional[UserRole] = UserRole.PATIENT,
    activity_limit: Optional[int] = None,
) -> DashboardSummary:
    """
    Load users, plans and recipes concurrently and build the dashboard summary.

    Args:
        users: Users repository (listed with `user_role`, patients by default)
        plans: Meal plans repository
        recipes: Recipes repository
        now: Reference time for "active" and "new" metrics (defaults to current UTC time)
        user_role: Role filter for the users source; None lists every user
        activity_limit: Length of the recent-activity feed (defaults to configuration)

    Returns:
        DashboardSummary with failed sources (sorted), stats, the recent-activity
        feed (empty if any source failed) and the loaded data.

    Examples:
        >>> summary = await load_dashboard(users_repo, plans_repo, recipes_repo)  # doctest: +SKIP
        >>> summary.failed
        ['plans']
    """
    now = as_utc(now)
    if activity_limit is None:
        activity_limit = DashboardConfig.get_recent_activity_limit()

    load = await load_all({
        USERS: lambda: users.list_result(role=user_role),
        PLANS: plans.list_result,
        RECIPES: recipes.list_result,
    })

    stats = compute_dashboard_stats(load, now)
    recent = build_recent_activity(
        load.live(USERS),
        load.live(PLANS),
        load.live(RECIPES),
        failed=load.failed,
        limit=activity_limit,
    )
    logger.info("Dashboard stats: %s (failed: %s)", stats, sorted(load.failed) or "none")

    return DashboardSummary(
        failed=sorted(load.failed),
        stats=stats,
        recent_activity=recent,
        data=load.data,
    )
