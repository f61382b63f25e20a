"""
In-process failure cache for upstream services.

This module provides a small circuit-breaker style policy object: after a read
against a service fails with an outage (transport error, timeout or 5xx), further
reads within the cooldown window skip the network and go straight to fallback
data. A successful call clears the mark.

The cache is process-local and in-memory, with automatic expiration based on the
cooldown. A cooldown of 0 disables it, so every call re-attempts the service.
"""

import time
from typing import Callable, Dict, Optional


class ServiceFailureCache:
    """
    Remember recent failures per service name.

    Args:
        cooldown_seconds: How long a failure suppresses live reads (0 disables)
        clock: Monotonic time source, injectable for tests
    """

    def __init__(self, cooldown_seconds: float = 0.0, clock: Optional[Callable[[], float]] = None) -> None:
        self.cooldown_seconds = max(0.0, cooldown_seconds)
        self._clock = clock or time.monotonic
        # service -> (failure timestamp, reason)
        self._failures: Dict[str, tuple] = {}

    @property
    def enabled(self) -> bool:
        return self.cooldown_seconds > 0

    def record_failure(self, service: str, reason: str) -> None:
        if self.enabled:
            self._failures[service] = (self._clock(), reason)

    def record_success(self, service: str) -> None:
        self._failures.pop(service, None)

    def recent_failure(self, service: str) -> Optional[str]:
        """
        Get the reason of a failure still inside the cooldown window.

        Args:
            service: Service name

        Returns:
            The recorded failure reason, or None if the service may be called
        """
        entry = self._failures.get(service)
        if not entry:
            return None

        timestamp, reason = entry
        if self._clock() - timestamp > self.cooldown_seconds:
            # Expired - forget it
            self._failures.pop(service, None)
            return None
        return reason

    def clear(self) -> None:
        """Forget all recorded failures (useful for testing)."""
        self._failures.clear()
