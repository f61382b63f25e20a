"""API routers for the NutriPlan dashboard."""
