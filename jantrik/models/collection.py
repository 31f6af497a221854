"""
Core Data Models for Jantrik

These models define the schemas for everything flowing through the system:
1. Which collections exist and what range each one covers
2. The snapshot of accumulated amounts for one collection
3. The results handed back to the UI (add, view, export)

DESIGN DECISION: Snapshots are immutable. Every change produces a new
snapshot, so a failed operation can never leave a half-applied update.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from jantrik.numbers import format_amount, format_number, generate_numbers


XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class CollectionType(str, Enum):
    """
    Supported collections.

    Each collection is an independent ledger with its own range and
    its own storage key.
    """
    THREE_UP = "3up"
    DOWN = "down"


class AmountTier(str, Enum):
    """Display tier of an amount, used to colour list badges."""
    LOW = "low"        # < 500
    MEDIUM = "medium"  # 500 - 999.99
    HIGH = "high"      # >= 1000

    @classmethod
    def for_amount(cls, amount: float) -> "AmountTier":
        if amount >= 1000:
            return cls.HIGH
        if amount >= 500:
            return cls.MEDIUM
        return cls.LOW


class OperationKind(str, Enum):
    """User-triggered operations that get an in-flight guard."""
    SUBMIT = "submit"
    EXPORT = "export"
    RESET = "reset"


class OperationState(str, Enum):
    """
    Per-operation state.

    idle -> pending -> idle (success) or error (failure).
    A new attempt may start from idle or error, never from pending.
    """
    IDLE = "idle"
    PENDING = "pending"
    ERROR = "error"


# =============================================================================
# COLLECTION CONFIGURATION
# =============================================================================

class CollectionConfig(BaseModel):
    """
    Fixed range and key width of one collection.

    min_number/max_number are inclusive. Keys are the numbers rendered
    with `number_length` digits.
    """
    model_config = ConfigDict(frozen=True)

    collection_type: CollectionType
    title: str = Field(
        ...,
        min_length=1,
        description="Display title, e.g. '3up Collection'"
    )
    min_number: int = Field(..., ge=0)
    max_number: int = Field(..., ge=0)
    number_length: int = Field(..., ge=1, le=9)

    @property
    def available_count(self) -> int:
        """How many numbers the collection covers."""
        return max(self.max_number - self.min_number + 1, 0)

    @property
    def min_label(self) -> str:
        return format_number(self.min_number, self.number_length)

    @property
    def max_label(self) -> str:
        return format_number(self.max_number, self.number_length)

    @property
    def subtitle(self) -> str:
        """Padded range label, e.g. '000 - 999'."""
        return f"{self.min_label} - {self.max_label}"

    def contains(self, number: int) -> bool:
        return self.min_number <= number <= self.max_number

    def key_for(self, number: int) -> str:
        return format_number(number, self.number_length)

    def keys(self) -> list[str]:
        """All keys in range, in numeric order."""
        return [self.key_for(n) for n in range(self.min_number, self.max_number + 1)]


COLLECTIONS: dict[CollectionType, CollectionConfig] = {
    CollectionType.THREE_UP: CollectionConfig(
        collection_type=CollectionType.THREE_UP,
        title="3up Collection",
        min_number=0,
        max_number=999,
        number_length=3,
    ),
    CollectionType.DOWN: CollectionConfig(
        collection_type=CollectionType.DOWN,
        title="Down Collection",
        min_number=0,
        max_number=99,
        number_length=2,
    ),
}


def get_collection_config(collection_type: CollectionType | str) -> CollectionConfig:
    """Look up a collection by type ('3up' or 'down')."""
    return COLLECTIONS[CollectionType(collection_type)]


# =============================================================================
# SNAPSHOT
# =============================================================================

class CollectionSnapshot(BaseModel):
    """
    The full mapping of key -> accumulated amount at a point in time.

    Created zero-filled from the collection range or restored from storage.
    Never modified in place; use `with_amount_added` to derive a new one.
    """
    model_config = ConfigDict(frozen=True)

    entries: dict[str, float] = Field(default_factory=dict)

    @field_validator('entries')
    @classmethod
    def validate_amounts(cls, v: dict[str, float]) -> dict[str, float]:
        for key, amount in v.items():
            if not math.isfinite(amount) or amount < 0:
                raise ValueError(
                    f"Amount for {key!r} must be a non-negative number, got {amount}"
                )
        return v

    @classmethod
    def initial(cls, config: CollectionConfig) -> "CollectionSnapshot":
        """Zero-filled snapshot covering the whole range of `config`."""
        return cls(entries=generate_numbers(
            config.min_number, config.max_number, config.number_length
        ))

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: str, default: float = 0.0) -> float:
        return self.entries.get(key, default)

    def items(self) -> list[tuple[str, float]]:
        return list(self.entries.items())

    def to_dict(self) -> dict[str, float]:
        """Plain copy of the entries, safe to hand to serializers."""
        return dict(self.entries)

    def active_entries(self) -> dict[str, float]:
        """Entries with an amount strictly greater than zero."""
        return {key: amount for key, amount in self.entries.items() if amount > 0}

    @property
    def active_count(self) -> int:
        return sum(1 for amount in self.entries.values() if amount > 0)

    @property
    def total_amount(self) -> float:
        return sum(self.entries.values())

    def with_amount_added(self, key: str, amount: float) -> "CollectionSnapshot":
        """New snapshot with `amount` added to `key` (absent keys start at 0)."""
        entries = dict(self.entries)
        entries[key] = entries.get(key, 0.0) + amount
        return CollectionSnapshot(entries=entries)


# =============================================================================
# OPERATION RESULTS
# =============================================================================

class AddAmountResult(BaseModel):
    """Outcome of a successful add: the new snapshot and the new total."""

    number: str = Field(..., description="Padded key the amount was added to")
    amount_added: float = Field(..., gt=0)
    new_total: float = Field(..., ge=0)
    snapshot: CollectionSnapshot

    @property
    def success_message(self) -> str:
        return f"Successfully added {format_amount(self.amount_added)} to number {self.number}"

    @property
    def detail_message(self) -> str:
        return f"New total: {format_amount(self.new_total)}"


class ViewEntry(BaseModel):
    """One row of the collection list."""
    number: str
    amount: float
    tier: AmountTier


class CollectionView(BaseModel):
    """
    Presentation-ready projection of a snapshot.

    `entries` honours the search term; the counts and total do not.
    """

    collection_type: CollectionType
    search_term: str = ""
    entries: list[ViewEntry] = Field(default_factory=list)
    active_count: int = Field(..., ge=0)
    total_amount: float = Field(..., ge=0)
    available_count: int = Field(..., ge=0)

    @property
    def shown_count(self) -> int:
        return len(self.entries)

    def as_pairs(self) -> list[tuple[str, float]]:
        return [(entry.number, entry.amount) for entry in self.entries]


class ExportDocument(BaseModel):
    """A rendered spreadsheet, ready to be offered as a download."""

    filename: str
    content: bytes = Field(..., repr=False)
    number_count: int = Field(..., ge=0)
    total_amount: float = Field(..., ge=0)
    exported_at: datetime
    mime_type: str = XLSX_MIME_TYPE
    collection_type: Optional[CollectionType] = None
