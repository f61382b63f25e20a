"""
Derived statistics for the dashboard and list screens.

Every function here is pure: it takes already-loaded records plus a reference
time `now` and returns counts or feeds. Nothing is stored; "active" and "new"
are re-evaluated on each call.

Conventions:
- Records with an unknown timestamp (None) are never counted as "new" and never
  appear in the recent-activity feed.
- A meal plan is active when it has no end date or its end date is >= now
  (inclusive). The plans list screen uses a strict > comparison for its own
  "active" card; plan_page_summary() keeps that behavior.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence, Set

from nutriplan.models import MealPlan, Recipe, User

QUICK_RECIPE_MAX_MINUTES = 30


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(now: Optional[datetime] = None) -> datetime:
    """Reference time as an aware UTC datetime; naive values are taken as UTC, None is the current time."""
    if now is None:
        return utc_now()
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def start_of_month(now: datetime) -> datetime:
    """First instant of now's calendar month."""
    return as_utc(now).replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def trailing_week_start(now: datetime) -> datetime:
    return as_utc(now) - timedelta(days=7)


def is_plan_active(plan: MealPlan, now: Optional[datetime] = None) -> bool:
    """
    Check whether a meal plan is active at `now`.

    Examples:
        >>> is_plan_active(MealPlan(id="1", patient_ref="p", practitioner_ref="n", title="t"))
        True
    """
    if plan.end_date is None:
        return True
    return plan.end_date >= as_utc(now)


def count_created_since(timestamps: Iterable[Optional[datetime]], since: datetime) -> int:
    """Count timestamps at or after `since`; unknown timestamps are excluded."""
    since = as_utc(since)
    return sum(1 for ts in timestamps if ts is not None and ts >= since)


def count_active_plans(plans: Iterable[MealPlan], now: Optional[datetime] = None) -> int:
    now = as_utc(now)
    return sum(1 for plan in plans if is_plan_active(plan, now))


def patients_with_active_plan(plans: Iterable[MealPlan], now: Optional[datetime] = None) -> Set[str]:
    """Distinct patient references that appear in at least one active plan."""
    now = as_utc(now)
    return {plan.patient_ref for plan in plans if is_plan_active(plan, now)}


def count_patients_with_active_plan(plans: Iterable[MealPlan], now: Optional[datetime] = None) -> int:
    return len(patients_with_active_plan(plans, now))


@dataclass(frozen=True)
class ActivityItem:
    """One "created" event in the recent-activity feed."""
    type: str  # "patient", "plan" or "recipe"
    text: str
    date: datetime


def build_recent_activity(
    users: Sequence[User],
    plans: Sequence[MealPlan],
    recipes: Sequence[Recipe],
    failed: Iterable[str] = (),
    limit: int = 3,
) -> List[ActivityItem]:
    """
    Build the merged "recently created" feed across users, plans and recipes.

    Users and recipes are dated by their creation timestamp, plans by their start
    date. Undated events are dropped before sorting and truncation.

    Args:
        users: Users to include (typically patients)
        plans: Meal plans
        recipes: Recipes
        failed: Names of sources that failed to load
        limit: Maximum number of events returned

    Returns:
        Events sorted newest first, at most `limit` long. Empty if any source
        failed: a ranked feed silently missing one category would mislead.
    """
    if set(failed) or limit <= 0:
        return []

    events: List[ActivityItem] = []
    events.extend(
        ActivityItem("patient", f"Patient registered: {user.name}", user.created_at)
        for user in users if user.created_at is not None
    )
    events.extend(
        ActivityItem("plan", f"Plan created: {plan.title}", plan.start_date)
        for plan in plans if plan.start_date is not None
    )
    events.extend(
        ActivityItem("recipe", f"Recipe created: {recipe.name}", recipe.created_at)
        for recipe in recipes if recipe.created_at is not None
    )

    # sorted() is stable, so equal timestamps keep user/plan/recipe order
    events = sorted(events, key=lambda event: event.date, reverse=True)
    return events[:limit]


# Per-screen summaries

@dataclass(frozen=True)
class PatientPageSummary:
    total: int
    new_this_month: int


@dataclass(frozen=True)
class PlanPageSummary:
    total: int
    active: int
    started_this_month: int


@dataclass(frozen=True)
class RecipePageSummary:
    total: int
    quick: int
    categories: int


def patient_page_summary(patients: Sequence[User], now: Optional[datetime] = None) -> PatientPageSummary:
    now = as_utc(now)
    return PatientPageSummary(
        total=len(patients),
        new_this_month=count_created_since((p.created_at for p in patients), start_of_month(now)),
    )


def plan_page_summary(plans: Sequence[MealPlan], now: Optional[datetime] = None) -> PlanPageSummary:
    """Cards of the plans screen: total, active (end date strictly after now), started this month."""
    now = as_utc(now)
    active = sum(1 for plan in plans if plan.end_date is None or plan.end_date > now)
    started = sum(
        1 for plan in plans
        if plan.start_date is not None
        and plan.start_date.year == now.year
        and plan.start_date.month == now.month
    )
    return PlanPageSummary(total=len(plans), active=active, started_this_month=started)


def recipe_page_summary(recipes: Sequence[Recipe]) -> RecipePageSummary:
    return RecipePageSummary(
        total=len(recipes),
        quick=sum(1 for recipe in recipes if recipe.prep_minutes <= QUICK_RECIPE_MAX_MINUTES),
        categories=len({recipe.category for recipe in recipes}),
    )
