"""Small shared helpers for the NutriPlan core."""
