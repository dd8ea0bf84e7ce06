"""Content tiers and the per-key draft value model."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any, Generic, TypeVar

from app.core.exceptions import InvalidInputError

T = TypeVar("T")


class Tier(StrEnum):
    """Layer of content for a post or module, ordered from live to most provisional."""

    SOURCE = "source"
    REVIEW = "review"
    AI_REVIEW = "ai-review"

    @classmethod
    def parse(cls, value: str | None, *, default: Tier | None = None) -> Tier:
        """Parse a tier name, accepting ``ai_review`` as an alias."""
        raw = (value or "").strip().lower().replace("_", "-")
        if not raw:
            if default is None:
                raise InvalidInputError("Tier is required")
            return default
        try:
            return cls(raw)
        except ValueError as exc:
            raise InvalidInputError(f"Unknown tier: {value}", {"tier": value}) from exc

    @property
    def is_draft(self) -> bool:
        return self is not Tier.SOURCE

    @property
    def chain(self) -> tuple[Tier, ...]:
        """Tiers consulted when resolving this tier, source first."""
        ordered = (Tier.SOURCE, Tier.REVIEW, Tier.AI_REVIEW)
        return ordered[: ordered.index(self) + 1]

    def column(self, base: str) -> str:
        """Column holding ``base`` for this tier (``props`` -> ``review_props``)."""
        if self is Tier.SOURCE:
            return base
        return f"{self.value.replace('-', '_')}_{base}"

    @property
    def draft_column(self) -> str:
        """Post column holding this tier's sparse draft."""
        if self is Tier.SOURCE:
            raise InvalidInputError("Source tier has no draft column")
        return self.column("draft")

    @property
    def added_flag(self) -> str:
        return self.column("added")

    @property
    def deleted_flag(self) -> str:
        return self.column("deleted")


DRAFT_TIERS = (Tier.REVIEW, Tier.AI_REVIEW)


# Per-key draft value: a key is absent (Inherit), explicitly null (Clear) or set.
class Inherit:
    __slots__ = ()

    def __repr__(self) -> str:
        return "Inherit"


class Clear:
    __slots__ = ()

    def __repr__(self) -> str:
        return "Clear"


@dataclass(frozen=True, slots=True)
class Set(Generic[T]):
    value: T


INHERIT = Inherit()
CLEAR = Clear()

DraftValue = Inherit | Clear | Set[Any]


def draft_value(draft: Mapping[str, Any] | None, key: str) -> DraftValue:
    """Classify one key of a sparse draft object."""
    if not draft or key not in draft:
        return INHERIT
    value = draft[key]
    if value is None:
        return CLEAR
    return Set(value)


def encode_draft(values: Mapping[str, DraftValue]) -> dict[str, Any]:
    """Turn per-key draft values back into the stored sparse JSON object."""
    encoded: dict[str, Any] = {}
    for key, item in values.items():
        if isinstance(item, Set):
            encoded[key] = item.value
        elif isinstance(item, Clear):
            encoded[key] = None
    return encoded


def is_empty(value: Any) -> bool:
    """A tier value is empty when missing, or an object/list without entries."""
    if value is None:
        return True
    if isinstance(value, (Mapping, list, tuple)):
        return len(value) == 0
    return False


@dataclass(frozen=True, slots=True)
class TieredValue(Generic[T]):
    """Values of one field across the three tiers."""

    source: T | None
    review: T | None = None
    ai_review: T | None = None

    @classmethod
    def from_columns(cls, row: Any, base: str) -> TieredValue[Any]:
        """Read ``base``, ``review_<base>`` and ``ai_review_<base>`` from a row."""
        return cls(
            source=getattr(row, Tier.SOURCE.column(base)),
            review=getattr(row, Tier.REVIEW.column(base)),
            ai_review=getattr(row, Tier.AI_REVIEW.column(base)),
        )

    def get(self, tier: Tier) -> T | None:
        if tier is Tier.SOURCE:
            return self.source
        if tier is Tier.REVIEW:
            return self.review
        return self.ai_review

    def with_value(self, tier: Tier, value: T | None) -> TieredValue[T]:
        field_name = "ai_review" if tier is Tier.AI_REVIEW else tier.value
        return replace(self, **{field_name: value})

    def is_staged(self, tier: Tier) -> bool:
        """Whether ``tier`` carries its own (non-empty) value."""
        return tier.is_draft and not is_empty(self.get(tier))

    def layers(self, tier: Tier) -> list[tuple[Tier, T | None]]:
        return [(layer, self.get(layer)) for layer in tier.chain]
