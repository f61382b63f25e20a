"""HTTP API over the NutriPlan dashboard core."""
