"""
Client-side search used by the list screens.

Matching is a case-insensitive substring test. An empty or blank term keeps every
record. Missing fields never match but never raise either.
"""

from typing import Iterable, List, Optional, Sequence

from nutriplan.models import MealPlan, Recipe, User


def matches(term: Optional[str], *fields: Optional[str]) -> bool:
    """
    Check whether any field contains the search term (case-insensitive).

    Examples:
        >>> matches("sil", "Dr. Maria Silva", "maria@example.com")
        True
        >>> matches("", None)
        True
    """
    needle = (term or "").strip().lower()
    if not needle:
        return True
    return any(needle in (value or "").lower() for value in fields)


def search_users(users: Iterable[User], term: Optional[str]) -> List[User]:
    """Users whose name or email contains the term."""
    return [user for user in users if matches(term, user.name, user.email)]


def search_plans(plans: Iterable[MealPlan], term: Optional[str]) -> List[MealPlan]:
    return [plan for plan in plans if matches(term, plan.title)]


def search_recipes(recipes: Sequence[Recipe], term: Optional[str]) -> List[Recipe]:
    """Recipes whose name or category contains the term."""
    return [recipe for recipe in recipes if matches(term, recipe.name, recipe.category)]
