"""
Configuration management for the NutriPlan dashboard core.

This module centralizes environment variable loading from the .env file at the
project root. It is imported by the client module and by api/main.py so that .env
is loaded before anything reads the environment.

In deployments without a .env file load_dotenv() is a no-op and platform
environment variables are used instead.

Environment Variables:
- USERS_API_URL: Optional, users service base URL (defaults to http://localhost:3001)
- PLANS_API_URL: Optional, meal plans service base URL
- RECIPES_API_URL: Optional, recipes service base URL
- NUTRIPLAN_REQUEST_TIMEOUT_SECONDS: Optional, timeout for CRUD calls (default: 10)
- NUTRIPLAN_HEALTH_TIMEOUT_SECONDS: Optional, timeout for /health checks (default: 5)
- NUTRIPLAN_FAILURE_COOLDOWN_SECONDS: Optional, how long reads skip a failed service (default: 0, disabled)
- NUTRIPLAN_RECENT_ACTIVITY_LIMIT: Optional, size of the dashboard activity feed (default: 3)
"""

import logging
import os
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Service names used throughout the core
USERS = "users"
PLANS = "plans"
RECIPES = "recipes"

SERVICES = (USERS, PLANS, RECIPES)

DEFAULT_BASE_URLS: Dict[str, str] = {
    USERS: "http://localhost:3001",
    PLANS: "https://python-microservice-production-33dc.up.railway.app",
    RECIPES: "https://receitamicroservice.onrender.com",
}

_ENV_VARS: Dict[str, str] = {
    USERS: "USERS_API_URL",
    PLANS: "PLANS_API_URL",
    RECIPES: "RECIPES_API_URL",
}


def load_env_file() -> None:
    """
    Load environment variables from .env file at project root.

    Safe to call multiple times. Existing environment variables take precedence
    (override=False).
    """
    # nutriplan/config.py -> nutriplan/ -> project root
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env", override=False)


load_env_file()


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid value %r for %s, using %s", raw, name, default)
        return default


class ServiceConfig:
    """Configuration for the upstream microservices."""

    @staticmethod
    def get_base_url(service: str) -> str:
        """
        Get the base URL for a service.

        Args:
            service: Service name ("users", "plans" or "recipes")

        Returns:
            Base URL with trailing slash removed. Unset variables fall back to
            the hard-coded defaults.

        Raises:
            KeyError: If the service name is unknown
        """
        url = os.getenv(_ENV_VARS[service]) or DEFAULT_BASE_URLS[service]
        return url.rstrip("/")

    @staticmethod
    def get_base_urls() -> Dict[str, str]:
        """Get the full service -> base URL table."""
        return {service: ServiceConfig.get_base_url(service) for service in SERVICES}

    @staticmethod
    def get_request_timeout() -> float:
        return _float_env("NUTRIPLAN_REQUEST_TIMEOUT_SECONDS", 10.0)

    @staticmethod
    def get_health_timeout() -> float:
        return _float_env("NUTRIPLAN_HEALTH_TIMEOUT_SECONDS", 5.0)

    @staticmethod
    def get_failure_cooldown() -> float:
        """
        Seconds during which reads skip a service after it failed.

        Returns:
            Cooldown in seconds; 0 disables the failure cache.
        """
        return max(0.0, _float_env("NUTRIPLAN_FAILURE_COOLDOWN_SECONDS", 0.0))


class DashboardConfig:
    """Configuration for the aggregated dashboard view."""

    @staticmethod
    def get_recent_activity_limit() -> int:
        return max(0, int(_float_env("NUTRIPLAN_RECENT_ACTIVITY_LIMIT", 3)))
