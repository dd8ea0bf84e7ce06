"""Best-effort side effects with explicit outcomes."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SideEffectOutcome:
    """Result of one side effect triggered by a committed mutation."""

    name: str
    ok: bool
    error: str | None = None


@dataclass(slots=True)
class SideEffects:
    """Runs side effects one by one and keeps every outcome.

    A failing side effect is logged and recorded; it never raises into the
    primary operation.
    """

    context: dict[str, Any] = field(default_factory=dict)
    outcomes: list[SideEffectOutcome] = field(default_factory=list)

    async def run(self, name: str, effect: Callable[[], Awaitable[Any]]) -> SideEffectOutcome:
        try:
            await effect()
        except Exception as exc:
            logger.warning(
                "Side effect failed",
                extra={**self.context, "side_effect": name, "error": str(exc)},
            )
            outcome = SideEffectOutcome(name=name, ok=False, error=str(exc) or type(exc).__name__)
        else:
            outcome = SideEffectOutcome(name=name, ok=True)
        self.outcomes.append(outcome)
        return outcome

    @property
    def failed(self) -> list[SideEffectOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]
