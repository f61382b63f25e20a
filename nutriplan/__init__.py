"""
NutriPlan dashboard core.

This package contains:
- client: HTTP access to the users, plans and recipes services
- repositories: per-entity CRUD with fallback data
- dashboard: concurrent multi-service loading and dashboard statistics
- stats, filters: derived metrics and client-side search
"""
