"""Policy resolution: window kind + optional override -> concrete Policy."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

from ratelimiter.core.config import LimiterSettings, settings
from ratelimiter.core.errors import UnknownPolicyKindError


class WindowKind(str, Enum):
    """Supported fixed-window sizes."""

    SECOND = "second"
    DAY = "day"
    WEEK = "week"

    @property
    def duration(self) -> timedelta:
        return WINDOW_DURATIONS[self]

    @classmethod
    def parse(cls, value: WindowKind | str) -> WindowKind:
        """Parse a window kind, accepting enum members or case-insensitive names.

        Raises:
            UnknownPolicyKindError: If the value is not a supported kind.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnknownPolicyKindError(
            code="unknown_policy_kind",
            message=f"Unknown rate limit window kind: {value!r}",
            details={"supported": [kind.value for kind in cls]},
        )


WINDOW_DURATIONS: dict[WindowKind, timedelta] = {
    WindowKind.SECOND: timedelta(seconds=1),
    WindowKind.DAY: timedelta(days=1),
    WindowKind.WEEK: timedelta(days=7),
}


@dataclass(frozen=True)
class Policy:
    """Limit and window length applied to one check.

    Attributes:
        window_kind: Window bucket the policy belongs to.
        limit: Max allowed requests per window (inclusive).
        window: Window length; also the counter TTL.
    """

    window_kind: WindowKind
    limit: int
    window: timedelta

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError("limit must be >= 1")
        if self.window <= timedelta(0):
            raise ValueError("window must be positive")


class PolicyResolver:
    """Resolve the policy for a check from static per-kind defaults.

    Window durations are fixed per kind. Callers may override the limit for a
    single call but never the duration.
    """

    def __init__(self, defaults: Mapping[WindowKind, int]) -> None:
        missing = [kind.value for kind in WindowKind if kind not in defaults]
        if missing:
            raise ValueError(f"missing default limits for: {', '.join(missing)}")
        for kind, limit in defaults.items():
            if limit < 1:
                raise ValueError(f"default limit for {kind.value} must be >= 1")
        self._defaults = dict(defaults)

    @classmethod
    def from_settings(cls, limiter_settings: LimiterSettings | None = None) -> PolicyResolver:
        cfg = limiter_settings or settings.limiter
        return cls(
            {
                WindowKind.SECOND: cfg.max_requests_per_second,
                WindowKind.DAY: cfg.max_requests_per_day,
                WindowKind.WEEK: cfg.max_requests_per_week,
            }
        )

    def default_limit(self, window_kind: WindowKind | str) -> int:
        return self._defaults[WindowKind.parse(window_kind)]

    def resolve(self, window_kind: WindowKind | str, override_limit: int | None = None) -> Policy:
        """Build the policy for a window kind.

        Args:
            window_kind: Requested window kind.
            override_limit: Positive value replaces the default limit; None or
                non-positive values keep the configured default.

        Returns:
            Policy for this call.

        Raises:
            UnknownPolicyKindError: If window_kind is not supported.
        """
        kind = WindowKind.parse(window_kind)
        limit = override_limit if override_limit and override_limit > 0 else self._defaults[kind]
        return Policy(window_kind=kind, limit=limit, window=kind.duration)
