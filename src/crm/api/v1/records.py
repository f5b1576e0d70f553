"""REST API endpoints for CRM records.

CRUD for leads, accounts, contacts and deals plus the Account 360 view.
PATCH bodies are partial: only fields present in the request are applied,
and the merged record is re-validated (so an unknown deal stage is a 422).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, ValidationError

from src.crm.api.deps import get_crm_repository, get_recommendation_engine, http_error
from src.crm.errors import CRMError
from src.crm.recommendations.engine import RecommendationEngine
from src.crm.records.account360 import Account360, build_account_360
from src.crm.records.repository import CRMRepository
from src.crm.records.schemas import (
    Account,
    AccountCreate,
    AccountType,
    Contact,
    ContactCreate,
    ContactStatus,
    Deal,
    DealCreate,
    Lead,
    LeadCreate,
    LeadStatus,
)

router = APIRouter(prefix="/records", tags=["records"])


# ── Request Schemas ──────────────────────────────────────────────────────────


class LeadUpdate(BaseModel):
    """Partial lead update."""

    name: str | None = None
    company: str | None = None
    title: str | None = None
    email: str | None = None
    phone: str | None = None
    status: LeadStatus | None = None
    source: str | None = None
    score: int | None = None
    value: str | None = None
    last_activity: str | None = None
    last_activity_at: datetime | None = None


class AccountUpdate(BaseModel):
    """Partial account update."""

    name: str | None = None
    industry: str | None = None
    type: AccountType | None = None
    revenue: str | None = None
    employees: str | None = None
    location: str | None = None
    phone: str | None = None
    website: str | None = None
    owner: str | None = None
    rating: str | None = None
    account_rating: str | None = None
    status: str | None = None
    last_activity: str | None = None
    last_activity_at: datetime | None = None
    active_deals: int | None = None
    contacts: int | None = None


class ContactUpdate(BaseModel):
    """Partial contact update."""

    first_name: str | None = None
    last_name: str | None = None
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


class DealUpdate(BaseModel):
    """Partial deal update. value/probability/stage are validated on merge."""

    name: str | None = None
    value: Any = None
    probability: Any = None
    stage: str | None = None
    business_line: str | None = None
    associated_account: str | None = None
    associated_contact: str | None = None
    closing_date: date | None = None
    next_step: str | None = None
    description: str | None = None
    geo: str | None = None
    entity: str | None = None
    owner: str | None = None
    owner_id: str | None = None
    approved_by: str | None = None


def _changes(body: BaseModel) -> dict[str, Any]:
    return body.model_dump(exclude_unset=True)


def _unprocessable(exc: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail=exc.errors(include_url=False, include_context=False, include_input=False),
    )


# ── Leads ────────────────────────────────────────────────────────────────────


@router.get("/leads", response_model=list[Lead])
async def list_leads(repo: CRMRepository = Depends(get_crm_repository)) -> list[Lead]:
    return await repo.list_leads()


@router.post("/leads", response_model=Lead, status_code=201)
async def create_lead(
    body: LeadCreate,
    repo: CRMRepository = Depends(get_crm_repository),
) -> Lead:
    return await repo.create_lead(body)


@router.get("/leads/{lead_id}", response_model=Lead)
async def get_lead(lead_id: str, repo: CRMRepository = Depends(get_crm_repository)) -> Lead:
    try:
        return await repo.get_lead(lead_id)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.patch("/leads/{lead_id}", response_model=Lead)
async def update_lead(
    lead_id: str,
    body: LeadUpdate,
    repo: CRMRepository = Depends(get_crm_repository),
) -> Lead:
    try:
        return await repo.update_lead(lead_id, _changes(body))
    except CRMError as exc:
        raise http_error(exc) from exc
    except ValidationError as exc:
        raise _unprocessable(exc) from exc


@router.delete("/leads/{lead_id}", status_code=204)
async def delete_lead(lead_id: str, repo: CRMRepository = Depends(get_crm_repository)) -> Response:
    try:
        await repo.delete_lead(lead_id)
    except CRMError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Accounts ─────────────────────────────────────────────────────────────────


@router.get("/accounts", response_model=list[Account])
async def list_accounts(repo: CRMRepository = Depends(get_crm_repository)) -> list[Account]:
    return await repo.list_accounts()


@router.post("/accounts", response_model=Account, status_code=201)
async def create_account(
    body: AccountCreate,
    repo: CRMRepository = Depends(get_crm_repository),
) -> Account:
    return await repo.create_account(body)


@router.get("/accounts/{account_id}", response_model=Account)
async def get_account(
    account_id: str,
    repo: CRMRepository = Depends(get_crm_repository),
) -> Account:
    try:
        return await repo.get_account(account_id)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.get("/accounts/{account_id}/360", response_model=Account360)
async def get_account_360(
    account_id: str,
    repo: CRMRepository = Depends(get_crm_repository),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
) -> Account360:
    """Account with related contacts and deals, health score and recommendations."""
    try:
        account = await repo.get_account(account_id)
    except CRMError as exc:
        raise http_error(exc) from exc
    return build_account_360(account, await repo.snapshot(), engine)


@router.patch("/accounts/{account_id}", response_model=Account)
async def update_account(
    account_id: str,
    body: AccountUpdate,
    repo: CRMRepository = Depends(get_crm_repository),
) -> Account:
    try:
        return await repo.update_account(account_id, _changes(body))
    except CRMError as exc:
        raise http_error(exc) from exc
    except ValidationError as exc:
        raise _unprocessable(exc) from exc


@router.delete("/accounts/{account_id}", status_code=204)
async def delete_account(
    account_id: str,
    repo: CRMRepository = Depends(get_crm_repository),
) -> Response:
    try:
        await repo.delete_account(account_id)
    except CRMError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Contacts ─────────────────────────────────────────────────────────────────


@router.get("/contacts", response_model=list[Contact])
async def list_contacts(repo: CRMRepository = Depends(get_crm_repository)) -> list[Contact]:
    return await repo.list_contacts()


@router.post("/contacts", response_model=Contact, status_code=201)
async def create_contact(
    body: ContactCreate,
    repo: CRMRepository = Depends(get_crm_repository),
) -> Contact:
    return await repo.create_contact(body)


@router.get("/contacts/{contact_id}", response_model=Contact)
async def get_contact(
    contact_id: str,
    repo: CRMRepository = Depends(get_crm_repository),
) -> Contact:
    try:
        return await repo.get_contact(contact_id)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.patch("/contacts/{contact_id}", response_model=Contact)
async def update_contact(
    contact_id: str,
    body: ContactUpdate,
    repo: CRMRepository = Depends(get_crm_repository),
) -> Contact:
    try:
        return await repo.update_contact(contact_id, _changes(body))
    except CRMError as exc:
        raise http_error(exc) from exc
    except ValidationError as exc:
        raise _unprocessable(exc) from exc


@router.delete("/contacts/{contact_id}", status_code=204)
async def delete_contact(
    contact_id: str,
    repo: CRMRepository = Depends(get_crm_repository),
) -> Response:
    try:
        await repo.delete_contact(contact_id)
    except CRMError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Deals ────────────────────────────────────────────────────────────────────


@router.get("/deals", response_model=list[Deal])
async def list_deals(repo: CRMRepository = Depends(get_crm_repository)) -> list[Deal]:
    return await repo.list_deals()


@router.post("/deals", response_model=Deal, status_code=201)
async def create_deal(
    body: DealCreate,
    repo: CRMRepository = Depends(get_crm_repository),
) -> Deal:
    return await repo.create_deal(body)


@router.get("/deals/{deal_id}", response_model=Deal)
async def get_deal(deal_id: str, repo: CRMRepository = Depends(get_crm_repository)) -> Deal:
    try:
        return await repo.get_deal(deal_id)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.patch("/deals/{deal_id}", response_model=Deal)
async def update_deal(
    deal_id: str,
    body: DealUpdate,
    repo: CRMRepository = Depends(get_crm_repository),
) -> Deal:
    try:
        return await repo.update_deal(deal_id, _changes(body))
    except CRMError as exc:
        raise http_error(exc) from exc
    except ValidationError as exc:
        raise _unprocessable(exc) from exc


@router.delete("/deals/{deal_id}", status_code=204)
async def delete_deal(deal_id: str, repo: CRMRepository = Depends(get_crm_repository)) -> Response:
    try:
        await repo.delete_deal(deal_id)
    except CRMError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
