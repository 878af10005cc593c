"""Ordered fallback over interchangeable backends.

Created: 2026-02-10

Every data path in Mission Control follows the same shape: try the
freshest backend first (gateway, hosted table), then the local filesystem,
then an in-memory or mock tier. ``FallbackChain`` runs one operation
against an ordered list of tiers and returns the first successful answer,
tagged with the tier that produced it.

A tier signals "skip me" by raising ``BackendNotConfigured`` (logged at
debug level). Any other recoverable error is logged as a warning and the
next tier is tried. When every tier fails the caller's default is returned.
Validation errors and programming errors are not tier failures and propagate.
"""

import json
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

import httpx

from fleetdeck.errors import BackendNotConfigured, StorageError

logger = logging.getLogger(__name__)

P = TypeVar("P")
T = TypeVar("T")

# Errors that mean "this tier is down". Bugs and bad input propagate; tiers
# deal with malformed rows themselves (see ``fleetdeck.tables.parse_rows``).
RECOVERABLE_ERRORS: tuple[type[BaseException], ...] = (
    StorageError,
    httpx.HTTPError,
    OSError,
    json.JSONDecodeError,
)


def tier_name(tier: object) -> str:
    """Return the display name of a tier."""
    return getattr(tier, "name", type(tier).__name__)


@dataclass
class TierResult(Generic[T]):
    """Value produced by a chain run plus the tier that produced it."""

    value: T
    source: str | None
    skipped: list[str]

    @property
    def degraded(self) -> bool:
        """True when no tier answered and the default was returned."""
        return self.source is None


class FallbackChain(Generic[P]):
    """Run an operation against tiers in priority order."""

    def __init__(self, tiers: Sequence[P], label: str = "fallback"):
        self.tiers = list(tiers)
        self.label = label

    async def run(self, op: Callable[[P], Awaitable[T]], default: T) -> TierResult[T]:
        skipped: list[str] = []
        for tier in self.tiers:
            name = tier_name(tier)
            try:
                value = await op(tier)
            except BackendNotConfigured as e:
                logger.debug(f"[{self.label}] {name} not configured: {e}")
                skipped.append(name)
                continue
            except RECOVERABLE_ERRORS as e:
                logger.warning(f"[{self.label}] {name} failed ({type(e).__name__}): {e}")
                skipped.append(name)
                continue
            if skipped:
                logger.info(f"[{self.label}] served by {name} after skipping {', '.join(skipped)}")
            return TierResult(value=value, source=name, skipped=skipped)

        logger.error(f"[{self.label}] all tiers failed ({', '.join(skipped) or 'none configured'})")
        return TierResult(value=default, source=None, skipped=skipped)
