"""
Default fallback datasets shown when a service is unavailable.

Each function returns a fresh list so callers may filter or mutate it freely.
Repositories receive these through their `fallback` constructor argument; tests
pass their own fixtures instead.

All identifiers use the reserved "mock-" prefix and no record carries a creation
timestamp, so fallback data never counts as "new" and never enters the
recent-activity feed. Nothing here is ever written back to a service.
"""

from typing import List

from nutriplan.models import MealPlan, PlanItem, Recipe, User


def default_users() -> List[User]:
    return [
        User(id="mock-user-1", name="Dr. Maria Silva", email="maria@nutriplan.example", role="nutricionista"),
        User(
            id="mock-user-2",
            name="João Santos",
            email="joao@nutriplan.example",
            role="paciente",
            practitioner_ref="mock-user-1",
        ),
        User(
            id="mock-user-3",
            name="Ana Costa",
            email="ana@nutriplan.example",
            role="paciente",
            practitioner_ref="mock-user-1",
        ),
    ]


def default_plans() -> List[MealPlan]:
    return [
        MealPlan(
            id="mock-plan-1",
            patient_ref="mock-user-2",
            practitioner_ref="mock-user-1",
            title="Balanced weekly plan",
        ),
    ]


def default_plan_items() -> List[PlanItem]:
    return [
        PlanItem(
            id="mock-item-1",
            plan_ref="mock-plan-1",
            time="08:00",
            meal_name="Breakfast",
            description="Green smoothie with chia seeds",
        ),
        PlanItem(
            id="mock-item-2",
            plan_ref="mock-plan-1",
            time="12:30",
            meal_name="Lunch",
            description="Quinoa salad with vegetables",
        ),
    ]


def default_recipes() -> List[Recipe]:
    return [
        Recipe(
            id="mock-recipe-1",
            name="Quinoa Salad with Vegetables",
            category="Lunch",
            prep_minutes=20,
            ingredients=[
                "1 cup quinoa",
                "2 chopped tomatoes",
                "1 chopped cucumber",
                "1/2 red onion",
                "Extra virgin olive oil",
                "Lemon",
                "Salt and pepper",
            ],
            steps=[
                "Cook the quinoa following the package instructions",
                "Dice all the vegetables",
                "Mix the cooled quinoa with the vegetables",
                "Season with olive oil, lemon, salt and pepper",
                "Let it rest for 10 minutes before serving",
            ],
            practitioner_ref="mock-user-1",
            patient_ref="mock-user-2",
        ),
        Recipe(
            id="mock-recipe-2",
            name="Green Detox Smoothie",
            category="Breakfast",
            prep_minutes=5,
            ingredients=[
                "1 banana",
                "1 cup spinach",
                "1/2 avocado",
                "1 cup coconut water",
                "1 tablespoon chia seeds",
                "Ginger to taste",
            ],
            steps=[
                "Put all ingredients in the blender",
                "Blend until smooth",
                "Serve immediately",
            ],
            practitioner_ref="mock-user-1",
            patient_ref="mock-user-2",
        ),
        Recipe(
            id="mock-recipe-3",
            name="Grilled Salmon with Asparagus",
            category="Dinner",
            prep_minutes=25,
            ingredients=[
                "200g salmon fillet",
                "200g asparagus",
                "2 tablespoons olive oil",
                "1 lemon",
                "Chopped garlic",
                "Fine herbs",
                "Salt and pepper",
            ],
            steps=[
                "Season the salmon with salt, pepper and herbs",
                "Heat a non-stick pan",
                "Grill the salmon for 4-5 minutes on each side",
                "Saute the asparagus with garlic and olive oil",
                "Serve with lemon",
            ],
            practitioner_ref="mock-user-1",
            patient_ref="mock-user-3",
        ),
    ]
