"""Account 360 view -- an account with its related contacts, deals and health.

Contacts and deals are linked to an account by name (associated_account),
compared case-insensitively. The health score is a deterministic 0-100
number:

    base                               50
    account tier Platinum/Gold/Silver  +25 / +15 / +5
    status Active Deal / Prospect      +20 / +10
    at least one related deal          +15
    capped at 100
"""

from __future__ import annotations

from pydantic import BaseModel

from src.crm.recommendations.engine import RecommendationEngine
from src.crm.recommendations.schemas import Recommendation
from src.crm.records.schemas import Account, Contact, CRMSnapshot, Deal

BASE_HEALTH_SCORE = 50
MAX_HEALTH_SCORE = 100

TIER_BONUS: dict[str, int] = {
    "platinum": 25,
    "gold": 15,
    "silver": 5,
}

STATUS_BONUS: dict[str, int] = {
    "active deal": 20,
    "prospect": 10,
}

HAS_DEALS_BONUS = 15


class Account360(BaseModel):
    """Aggregated view of one account."""

    account: Account
    contacts: list[Contact]
    deals: list[Deal]
    health_score: int
    total_deal_value: float
    open_pipeline_value: float
    pipeline_status: str  # "Active" | "No Deals"
    contact_coverage: str  # "Good" | "Limited" | "None"
    recommendations: list[Recommendation]


def _same_account(name: str | None, account: Account) -> bool:
    return bool(name) and name.strip().lower() == account.name.strip().lower()


def _tier_bonus(account_rating: str | None) -> int:
    if not account_rating:
        return 0
    tier = account_rating.strip().lower()
    for prefix, bonus in TIER_BONUS.items():
        if tier.startswith(prefix):
            return bonus
    return 0


def compute_health_score(account: Account, deal_count: int) -> int:
    """Score account health from its tier, status and whether it has deals."""
    score = BASE_HEALTH_SCORE
    score += _tier_bonus(account.account_rating)
    score += STATUS_BONUS.get((account.status or "").strip().lower(), 0)
    if deal_count > 0:
        score += HAS_DEALS_BONUS
    return min(score, MAX_HEALTH_SCORE)


def _contact_coverage(count: int) -> str:
    if count > 2:
        return "Good"
    if count > 0:
        return "Limited"
    return "None"


def build_account_360(
    account: Account,
    snapshot: CRMSnapshot,
    engine: RecommendationEngine,
) -> Account360:
    """Assemble the 360 view of `account` from a CRM snapshot.

    Args:
        account: The account to describe.
        snapshot: Current records; contacts and deals are matched by name.
        engine: Produces recommendations for the account's open deals.

    Returns:
        Account360 with related records, health score, deal totals and
        recommendations (best first).
    """
    contacts = [c for c in snapshot.contacts if _same_account(c.associated_account, account)]
    deals = [d for d in snapshot.deals if _same_account(d.associated_account, account)]

    return Account360(
        account=account,
        contacts=contacts,
        deals=deals,
        health_score=compute_health_score(account, len(deals)),
        total_deal_value=sum(deal.value for deal in deals),
        open_pipeline_value=sum(deal.value for deal in deals if deal.is_open),
        pipeline_status="Active" if deals else "No Deals",
        contact_coverage=_contact_coverage(len(contacts)),
        recommendations=engine.generate_recommendations(deals),
    )
