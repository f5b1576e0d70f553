"""CRM record repository -- async CRUD for leads, accounts, contacts, deals.

CRMRepository is the explicit storage interface the rest of the service
depends on. It is constructed once at startup and passed by reference (via
app.state) to every consumer; nothing reaches for module-level state.

InMemoryCRMRepository is the default backend. Records are kept in insertion
order so list_* and snapshot() return a stable ordering, which the search
engine relies on for tie-breaking.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel

from src.crm.errors import RecordNotFoundError
from src.crm.records.schemas import (
    Account,
    AccountCreate,
    Contact,
    ContactCreate,
    CRMSnapshot,
    Deal,
    DealCreate,
    Lead,
    LeadCreate,
)

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


def _new_id(kind: str) -> str:
    return f"{kind}-{uuid.uuid4().hex[:8]}"


# ── Repository Interface ────────────────────────────────────────────────────


class CRMRepository(ABC):
    """Abstract interface for CRM record storage.

    Every method is async so a database-backed implementation can be
    swapped in without touching callers. Lookups of unknown ids raise
    RecordNotFoundError.
    """

    # Leads
    @abstractmethod
    async def list_leads(self) -> list[Lead]: ...

    @abstractmethod
    async def get_lead(self, lead_id: str) -> Lead: ...

    @abstractmethod
    async def create_lead(self, data: LeadCreate) -> Lead: ...

    @abstractmethod
    async def update_lead(self, lead_id: str, changes: dict[str, Any]) -> Lead: ...

    @abstractmethod
    async def delete_lead(self, lead_id: str) -> None: ...

    # Accounts
    @abstractmethod
    async def list_accounts(self) -> list[Account]: ...

    @abstractmethod
    async def get_account(self, account_id: str) -> Account: ...

    @abstractmethod
    async def create_account(self, data: AccountCreate) -> Account: ...

    @abstractmethod
    async def update_account(self, account_id: str, changes: dict[str, Any]) -> Account: ...

    @abstractmethod
    async def delete_account(self, account_id: str) -> None: ...

    # Contacts
    @abstractmethod
    async def list_contacts(self) -> list[Contact]: ...

    @abstractmethod
    async def get_contact(self, contact_id: str) -> Contact: ...

    @abstractmethod
    async def create_contact(self, data: ContactCreate) -> Contact: ...

    @abstractmethod
    async def update_contact(self, contact_id: str, changes: dict[str, Any]) -> Contact: ...

    @abstractmethod
    async def delete_contact(self, contact_id: str) -> None: ...

    # Deals
    @abstractmethod
    async def list_deals(self) -> list[Deal]: ...

    @abstractmethod
    async def get_deal(self, deal_id: str) -> Deal: ...

    @abstractmethod
    async def create_deal(self, data: DealCreate) -> Deal: ...

    @abstractmethod
    async def update_deal(self, deal_id: str, changes: dict[str, Any]) -> Deal: ...

    @abstractmethod
    async def delete_deal(self, deal_id: str) -> None: ...

    async def snapshot(self) -> CRMSnapshot:
        """Read all four collections into an immutable CRMSnapshot."""
        return CRMSnapshot(
            leads=tuple(await self.list_leads()),
            accounts=tuple(await self.list_accounts()),
            contacts=tuple(await self.list_contacts()),
            deals=tuple(await self.list_deals()),
        )


# ── In-Memory Implementation ────────────────────────────────────────────────


class _RecordTable(Generic[RecordT]):
    """Insertion-ordered id -> record map for one record kind."""

    def __init__(self, kind: str, model: type[RecordT]) -> None:
        self.kind = kind
        self._model = model
        self._rows: dict[str, RecordT] = {}

    def all(self) -> list[RecordT]:
        return list(self._rows.values())

    def get(self, record_id: str) -> RecordT:
        record = self._rows.get(record_id)
        if record is None:
            raise RecordNotFoundError(self.kind, record_id)
        return record

    def insert(self, data: BaseModel, record_id: str | None = None) -> RecordT:
        payload = data.model_dump()
        payload["id"] = record_id or _new_id(self.kind)
        record = self._model.model_validate(payload)
        self._rows[payload["id"]] = record
        return record

    def update(self, record_id: str, changes: dict[str, Any]) -> RecordT:
        current = self.get(record_id)
        payload = {**current.model_dump(), **changes, "id": record_id}
        record = self._model.model_validate(payload)
        self._rows[record_id] = record
        return record

    def delete(self, record_id: str) -> None:
        self.get(record_id)
        del self._rows[record_id]


class InMemoryCRMRepository(CRMRepository):
    """Dict-backed CRMRepository.

    Contacts and deals get created_at/updated_at stamped on write when the
    caller does not supply them.

    Args:
        leads, accounts, contacts, deals: Optional initial records (e.g. the
            demo seed data). Records keep their existing ids.
    """

    def __init__(
        self,
        leads: Iterable[Lead] = (),
        accounts: Iterable[Account] = (),
        contacts: Iterable[Contact] = (),
        deals: Iterable[Deal] = (),
    ) -> None:
        self._leads: _RecordTable[Lead] = _RecordTable("lead", Lead)
        self._accounts: _RecordTable[Account] = _RecordTable("account", Account)
        self._contacts: _RecordTable[Contact] = _RecordTable("contact", Contact)
        self._deals: _RecordTable[Deal] = _RecordTable("deal", Deal)

        for table, records in (
            (self._leads, leads),
            (self._accounts, accounts),
            (self._contacts, contacts),
            (self._deals, deals),
        ):
            for record in records:
                table.insert(record, record_id=record.id)

    # ── Leads ───────────────────────────────────────────────────────────

    async def list_leads(self) -> list[Lead]:
        return self._leads.all()

    async def get_lead(self, lead_id: str) -> Lead:
        return self._leads.get(lead_id)

    async def create_lead(self, data: LeadCreate) -> Lead:
        lead = self._leads.insert(data)
        logger.info("lead_created", lead_id=lead.id, company=lead.company)
        return lead

    async def update_lead(self, lead_id: str, changes: dict[str, Any]) -> Lead:
        lead = self._leads.update(lead_id, changes)
        logger.info("lead_updated", lead_id=lead_id, fields=sorted(changes))
        return lead

    async def delete_lead(self, lead_id: str) -> None:
        self._leads.delete(lead_id)
        logger.info("lead_deleted", lead_id=lead_id)

    # ── Accounts ────────────────────────────────────────────────────────

    async def list_accounts(self) -> list[Account]:
        return self._accounts.all()

    async def get_account(self, account_id: str) -> Account:
        return self._accounts.get(account_id)

    async def create_account(self, data: AccountCreate) -> Account:
        account = self._accounts.insert(data)
        logger.info("account_created", account_id=account.id, account_name=account.name)
        return account

    async def update_account(self, account_id: str, changes: dict[str, Any]) -> Account:
        account = self._accounts.update(account_id, changes)
        logger.info("account_updated", account_id=account_id, fields=sorted(changes))
        return account

    async def delete_account(self, account_id: str) -> None:
        self._accounts.delete(account_id)
        logger.info("account_deleted", account_id=account_id)

    # ── Contacts ────────────────────────────────────────────────────────

    async def list_contacts(self) -> list[Contact]:
        return self._contacts.all()

    async def get_contact(self, contact_id: str) -> Contact:
        return self._contacts.get(contact_id)

    async def create_contact(self, data: ContactCreate) -> Contact:
        now = datetime.now(timezone.utc)
        stamped = data.model_copy(
            update={
                "created_at": data.created_at or now,
                "updated_at": data.updated_at or now,
            }
        )
        contact = self._contacts.insert(stamped)
        logger.info("contact_created", contact_id=contact.id)
        return contact

    async def update_contact(self, contact_id: str, changes: dict[str, Any]) -> Contact:
        changes = {"updated_at": datetime.now(timezone.utc), **changes}
        contact = self._contacts.update(contact_id, changes)
        logger.info("contact_updated", contact_id=contact_id, fields=sorted(changes))
        return contact

    async def delete_contact(self, contact_id: str) -> None:
        self._contacts.delete(contact_id)
        logger.info("contact_deleted", contact_id=contact_id)

    # ── Deals ───────────────────────────────────────────────────────────

    async def list_deals(self) -> list[Deal]:
        return self._deals.all()

    async def get_deal(self, deal_id: str) -> Deal:
        return self._deals.get(deal_id)

    async def create_deal(self, data: DealCreate) -> Deal:
        now = datetime.now(timezone.utc)
        stamped = data.model_copy(
            update={
                "created_at": data.created_at or now,
                "updated_at": data.updated_at or now,
            }
        )
        deal = self._deals.insert(stamped)
        logger.info(
            "deal_created",
            deal_id=deal.id,
            stage=deal.stage.value,
            value=deal.value,
        )
        return deal

    async def update_deal(self, deal_id: str, changes: dict[str, Any]) -> Deal:
        changes = {"updated_at": datetime.now(timezone.utc), **changes}
        deal = self._deals.update(deal_id, changes)
        logger.info("deal_updated", deal_id=deal_id, fields=sorted(changes))
        return deal

    async def delete_deal(self, deal_id: str) -> None:
        self._deals.delete(deal_id)
        logger.info("deal_deleted", deal_id=deal_id)
