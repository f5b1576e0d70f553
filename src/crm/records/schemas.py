"""Pydantic schemas for CRM records -- leads, accounts, contacts, deals.

Defines the four record types the CRM tracks plus the DealStage pipeline
enum and the CRMSnapshot bundle handed to the pure engines (recommendations,
search, assistant analytics).

Numeric deal fields follow a default-to-zero policy: missing, None, or
unparseable values become 0 rather than raising, so a half-filled deal can
still be scored. Currency display strings ("$125,000", "$2.5M") are parsed
with parse_money().
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


# ── Money Parsing ───────────────────────────────────────────────────────────

_MONEY_PATTERN = re.compile(r"(-?\d+(?:\.\d+)?)\s*(?:([kmb])\b)?", re.IGNORECASE)

_MONEY_SUFFIXES: dict[str, float] = {
    "k": 1_000.0,
    "m": 1_000_000.0,
    "b": 1_000_000_000.0,
}


def _finite(number: Any) -> float:
    """float(number), or 0.0 when it overflows or is not finite."""
    try:
        result = float(number)
    except OverflowError:
        return 0.0
    return result if math.isfinite(result) else 0.0


def parse_money(value: Any) -> float:
    """Parse a currency amount from a number or display string.

    Strips currency symbols and thousands separators and honours K/M/B
    suffixes: "$125,000" -> 125000.0, "$2.5M" -> 2500000.0, "$5M+" ->
    5000000.0. Anything unparseable (None, "", "TBD", NaN) or too large to
    represent as a finite float returns 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return _finite(value)

    text = str(value).replace(",", "")
    match = _MONEY_PATTERN.search(text)
    if match is None:
        return 0.0

    amount = _finite(match.group(1))
    suffix = match.group(2)
    if suffix:
        amount = _finite(amount * _MONEY_SUFFIXES[suffix.lower()])
    return amount


def format_money(value: float) -> str:
    """Format a currency amount for display: 200000 -> "$200,000"."""
    if float(value).is_integer():
        return f"${int(value):,}"
    return f"${value:,.2f}"


def _as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes so comparisons against `now` are valid."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ── Enums ───────────────────────────────────────────────────────────────────


class DealStage(str, Enum):
    """Sales pipeline stage for a deal.

    Values are the display labels used throughout the CRM.
    """

    OPPORTUNITY_IDENTIFIED = "Opportunity Identified"
    NEGOTIATING = "Negotiating"
    PROPOSAL_SUBMITTED = "Proposal Submitted"
    CLOSING = "Closing"
    ORDER_WON = "Order Won"
    ORDER_LOST = "Order Lost"

    @property
    def is_terminal(self) -> bool:
        """True for stages after which no sales action applies."""
        return self in (DealStage.ORDER_WON, DealStage.ORDER_LOST)

    @classmethod
    def parse(cls, value: Any) -> DealStage | None:
        """Parse a stage from its label, name, CamelCase or snake_case form.

        Matching ignores case, spaces, underscores and punctuation, so
        "Proposal Submitted", "PROPOSAL_SUBMITTED", "ProposalSubmitted" and
        "proposal_submitted" all resolve. The legacy abbreviation
        "Opportunity Ident." is accepted. Returns None when unrecognised.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        return _STAGE_LOOKUP.get(_stage_key(value))


def _stage_key(text: str) -> str:
    return re.sub(r"[^a-z]", "", text.lower())


_STAGE_LOOKUP: dict[str, DealStage] = {
    **{_stage_key(stage.value): stage for stage in DealStage},
    "opportunityident": DealStage.OPPORTUNITY_IDENTIFIED,
}

TERMINAL_STAGES: frozenset[DealStage] = frozenset(
    {DealStage.ORDER_WON, DealStage.ORDER_LOST}
)


class LeadStatus(str, Enum):
    """Lead qualification status."""

    NEW = "New"
    QUALIFIED = "Qualified"
    WORKING = "Working"
    NURTURING = "Nurturing"
    CONVERTED = "Converted"
    UNQUALIFIED = "Unqualified"


class AccountType(str, Enum):
    """Relationship type of an account."""

    CUSTOMER = "Customer"
    PROSPECT = "Prospect"
    PARTNER = "Partner"


class ContactStatus(str, Enum):
    """Engagement status of a contact."""

    SUSPECT = "Suspect"
    PROSPECT = "Prospect"
    ACTIVE_DEAL = "Active Deal"
    DO_NOT_CALL = "Do Not Call"


# ── Lead ────────────────────────────────────────────────────────────────────


class LeadCreate(BaseModel):
    """Schema for creating a lead."""

    name: str
    company: str = ""
    title: str = ""
    email: str = ""
    phone: str = ""
    status: LeadStatus = LeadStatus.NEW
    source: str = ""
    score: int = Field(default=0, ge=0, le=100)
    value: str = ""
    last_activity: str = ""
    last_activity_at: datetime | None = None

    @field_validator("last_activity_at")
    @classmethod
    def _utc_last_activity(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @property
    def estimated_value(self) -> float:
        """Numeric potential value parsed from the display string."""
        return parse_money(self.value)


class Lead(LeadCreate):
    """A prospective customer."""

    id: str


# ── Account ─────────────────────────────────────────────────────────────────


class AccountCreate(BaseModel):
    """Schema for creating an account."""

    name: str
    industry: str = ""
    type: AccountType = AccountType.PROSPECT
    revenue: str = ""
    employees: str = ""
    location: str = ""
    phone: str = ""
    website: str = ""
    owner: str = ""
    rating: str = ""
    account_rating: str | None = None
    status: str | None = None
    last_activity: str = ""
    last_activity_at: datetime | None = None
    active_deals: int = Field(default=0, ge=0)
    contacts: int = Field(default=0, ge=0)

    @field_validator("last_activity_at")
    @classmethod
    def _utc_last_activity(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @property
    def revenue_value(self) -> float:
        """Numeric annual revenue parsed from the display string."""
        return parse_money(self.revenue)


class Account(AccountCreate):
    """A company the sales team works with."""

    id: str


# ── Contact ─────────────────────────────────────────────────────────────────


class ContactCreate(BaseModel):
    """Schema for creating a contact."""

    first_name: str
    last_name: str = ""
    title: str | None = None
    associated_account: str | None = None
    email_address: str | None = None
    desk_phone: str | None = None
    mobile_phone: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    time_zone: str | None = None
    source: str | None = None
    owner: str | None = None
    owner_id: str | None = None
    status: ContactStatus | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc_timestamps(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Contact(ContactCreate):
    """A person at an account."""

    id: str


# ── Deal ────────────────────────────────────────────────────────────────────


class DealCreate(BaseModel):
    """Schema for creating a deal.

    value and probability never fail validation for missing or malformed
    input: they fall back to 0 (probability is also clamped to 0-100).
    """

    name: str
    value: float = 0.0
    probability: int = 0
    stage: DealStage = DealStage.OPPORTUNITY_IDENTIFIED
    business_line: str = ""
    associated_account: str = ""
    associated_contact: str = ""
    closing_date: date | None = None
    next_step: str = ""
    description: str = ""
    geo: str = ""
    entity: str = ""
    owner: str = ""
    owner_id: str = ""
    approved_by: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _default_value(cls, value: Any) -> float:
        return max(parse_money(value), 0.0)

    @field_validator("probability", mode="before")
    @classmethod
    def _default_probability(cls, value: Any) -> int:
        number = parse_money(value)
        return int(min(max(round(number), 0), 100))

    @field_validator("stage", mode="before")
    @classmethod
    def _parse_stage(cls, value: Any) -> DealStage:
        if value is None or value == "":
            return DealStage.OPPORTUNITY_IDENTIFIED
        stage = DealStage.parse(value)
        if stage is None:
            raise ValueError(f"Unknown deal stage: {value!r}")
        return stage

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc_timestamps(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @property
    def is_open(self) -> bool:
        """True while the deal is still in the active pipeline."""
        return not self.stage.is_terminal


class Deal(DealCreate):
    """A sales opportunity moving through the pipeline."""

    id: str


# ── Snapshot ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CRMSnapshot:
    """Read-only view of all four record collections at one point in time.

    The engines only read from a snapshot; collections are tuples so a
    computation cannot mutate the caller's state.
    """

    leads: tuple[Lead, ...] = field(default_factory=tuple)
    accounts: tuple[Account, ...] = field(default_factory=tuple)
    contacts: tuple[Contact, ...] = field(default_factory=tuple)
    deals: tuple[Deal, ...] = field(default_factory=tuple)

    @property
    def open_deals(self) -> list[Deal]:
        return [deal for deal in self.deals if deal.is_open]

    @property
    def won_deals(self) -> list[Deal]:
        return [deal for deal in self.deals if deal.stage == DealStage.ORDER_WON]
