"""Token-overlap relevance search across leads, accounts, contacts and deals.

Deterministic bag-of-tokens ranker. For each lower-cased query token:

    +1    the record's haystack (its searchable fields joined) contains it
    +2    the record's primary name field also contains it
    +1.5  the record's associated company/account field also contains it

Matching is plain substring containment: no stemming, no IDF weighting,
no fuzzy matching. Zero-score records are dropped. Each corpus is sorted
by score descending, the four result lists are merged in the order leads,
accounts, contacts, deals, re-sorted, and truncated. Python's sort is
stable, so ties keep corpus order and then original record order.

Exports:
    RelevanceSearchEngine: Per-corpus and global search.
    SearchProfile: Field layout of one record kind.
    extract_search_query: Pull the search phrase out of a chat message.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

import structlog
from pydantic import BaseModel

from src.crm.records.schemas import Account, Contact, CRMSnapshot, Deal, Lead

logger = structlog.get_logger(__name__)

DEFAULT_SEARCH_LIMIT = 10

HAYSTACK_WEIGHT = 1.0
PRIMARY_WEIGHT = 2.0
COMPANY_WEIGHT = 1.5

CRMRecord = Union[Lead, Account, Contact, Deal]


class RecordType(str, Enum):
    """Record kind of a search hit."""

    LEAD = "lead"
    ACCOUNT = "account"
    CONTACT = "contact"
    DEAL = "deal"


class SearchResult(BaseModel):
    """One ranked hit."""

    record_type: RecordType
    record: CRMRecord
    relevance_score: float


# ── Profiles ────────────────────────────────────────────────────────────────


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@dataclass(frozen=True)
class SearchProfile:
    """Which fields of a record kind feed each scoring component.

    Attributes:
        record_type: Kind tag reported on results.
        haystack: Extractors for every searchable field, in order.
        primary: Extractor for the name field (person, company or deal name).
        company: Extractor for the associated company/account field, or None
            when the kind has no such field.
    """

    record_type: RecordType
    haystack: tuple[Callable[[Any], Any], ...]
    primary: Callable[[Any], Any]
    company: Callable[[Any], Any] | None = None

    def haystack_text(self, record: Any) -> str:
        return " ".join(_text(extract(record)) for extract in self.haystack).lower()

    def primary_text(self, record: Any) -> str:
        return _text(self.primary(record)).lower()

    def company_text(self, record: Any) -> str:
        if self.company is None:
            return ""
        return _text(self.company(record)).lower()


LEAD_PROFILE = SearchProfile(
    record_type=RecordType.LEAD,
    haystack=(
        lambda r: r.name,
        lambda r: r.company,
        lambda r: r.title,
        lambda r: r.email,
        lambda r: r.source,
    ),
    primary=lambda r: r.name,
    company=lambda r: r.company,
)

ACCOUNT_PROFILE = SearchProfile(
    record_type=RecordType.ACCOUNT,
    haystack=(
        lambda r: r.name,
        lambda r: r.industry,
        lambda r: r.type,
        lambda r: r.location,
    ),
    primary=lambda r: r.name,
)

CONTACT_PROFILE = SearchProfile(
    record_type=RecordType.CONTACT,
    haystack=(
        lambda r: r.full_name,
        lambda r: r.email_address,
        lambda r: r.associated_account,
        lambda r: r.title,
    ),
    primary=lambda r: r.full_name,
    company=lambda r: r.associated_account,
)

DEAL_PROFILE = SearchProfile(
    record_type=RecordType.DEAL,
    haystack=(
        lambda r: r.name,
        lambda r: r.associated_account,
        lambda r: r.associated_contact,
        lambda r: r.business_line,
        lambda r: r.stage,
    ),
    primary=lambda r: r.name,
    company=lambda r: r.associated_account,
)


def tokenize(query: str | None) -> list[str]:
    """Lower-case and split on whitespace. Blank input yields no tokens."""
    if not query:
        return []
    return query.lower().split()


def score_record(profile: SearchProfile, record: Any, tokens: Sequence[str]) -> float:
    """Sum the per-token relevance of one record."""
    haystack = profile.haystack_text(record)
    primary = profile.primary_text(record)
    company = profile.company_text(record)

    score = 0.0
    for token in tokens:
        if token not in haystack:
            continue
        score += HAYSTACK_WEIGHT
        if token in primary:
            score += PRIMARY_WEIGHT
        if company and token in company:
            score += COMPANY_WEIGHT
    return score


# ── Engine ──────────────────────────────────────────────────────────────────


class RelevanceSearchEngine:
    """Ranks CRM records against a free-text query.

    Args:
        limit: Maximum number of results returned by search().
    """

    def __init__(self, limit: int = DEFAULT_SEARCH_LIMIT) -> None:
        self._limit = limit

    @property
    def limit(self) -> int:
        return self._limit

    def search_corpus(
        self,
        profile: SearchProfile,
        records: Iterable[Any],
        query: str | None,
    ) -> list[SearchResult]:
        """Score one corpus; drop zero scores; sort descending (stable)."""
        tokens = tokenize(query)
        if not tokens:
            return []

        results = []
        for record in records:
            score = score_record(profile, record, tokens)
            if score > 0:
                results.append(
                    SearchResult(
                        record_type=profile.record_type,
                        record=record,
                        relevance_score=score,
                    )
                )
        results.sort(key=lambda result: -result.relevance_score)
        return results

    def search_leads(self, leads: Iterable[Lead], query: str | None) -> list[SearchResult]:
        return self.search_corpus(LEAD_PROFILE, leads, query)

    def search_accounts(
        self, accounts: Iterable[Account], query: str | None
    ) -> list[SearchResult]:
        return self.search_corpus(ACCOUNT_PROFILE, accounts, query)

    def search_contacts(
        self, contacts: Iterable[Contact], query: str | None
    ) -> list[SearchResult]:
        return self.search_corpus(CONTACT_PROFILE, contacts, query)

    def search_deals(self, deals: Iterable[Deal], query: str | None) -> list[SearchResult]:
        return self.search_corpus(DEAL_PROFILE, deals, query)

    def search(self, query: str | None, snapshot: CRMSnapshot) -> list[SearchResult]:
        """Global search over all four corpora, best first, truncated to limit.

        An empty or whitespace-only query returns an empty list.
        """
        if not tokenize(query):
            return []

        merged = [
            *self.search_leads(snapshot.leads, query),
            *self.search_accounts(snapshot.accounts, query),
            *self.search_contacts(snapshot.contacts, query),
            *self.search_deals(snapshot.deals, query),
        ]
        merged.sort(key=lambda result: -result.relevance_score)
        results = merged[: self._limit]

        logger.debug(
            "search_completed",
            query=query,
            matched=len(merged),
            returned=len(results),
        )
        return results


# ── Query Extraction ────────────────────────────────────────────────────────

_SEARCH_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bfind\s+(.+)", re.IGNORECASE),
    re.compile(r"\bsearch\s+(?:for\s+)?(.+)", re.IGNORECASE),
    re.compile(r"\blook\s+for\s+(.+)", re.IGNORECASE),
    re.compile(r"\bget\s+(.+)", re.IGNORECASE),
)

_SHOW_ME_PATTERN = re.compile(r"\bshow\s+me\s+(.+)", re.IGNORECASE)


def extract_search_query(text: str | None, *, include_show_me: bool = False) -> str | None:
    """Return the search phrase of a "find X" style message, or None.

    Recognised forms: "find X", "search X", "search for X", "look for X",
    "get X". "show me X" is only recognised with include_show_me=True, since
    it also prefixes topical questions ("show me top leads").
    """
    if not text:
        return None

    patterns = _SEARCH_PATTERNS + ((_SHOW_ME_PATTERN,) if include_show_me else ())
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            phrase = match.group(1).strip()
            if phrase:
                return phrase
    return None
