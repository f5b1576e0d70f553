"""Render search hits as the assistant's markdown reply text."""

from __future__ import annotations

from collections.abc import Sequence

from src.crm.records.schemas import format_money
from src.crm.search.engine import RecordType, SearchResult

NO_RESULTS_MESSAGE = (
    "No results found. Try searching with different terms or check your spelling."
)


def _format_result(index: int, result: SearchResult) -> list[str]:
    record = result.record

    if result.record_type == RecordType.CONTACT:
        return [
            f"{index}. **{record.full_name}** (contact)",
            f"   Email: {record.email_address or 'No email'}",
            f"   Account: {record.associated_account or 'No account'}",
            f"   Title: {record.title or 'No title'}",
            f"   Phone: {record.mobile_phone or record.desk_phone or 'No phone'}",
        ]

    if result.record_type == RecordType.ACCOUNT:
        return [
            f"{index}. **{record.name}** (account)",
            f"   Industry: {record.industry}",
            f"   Revenue: {record.revenue}",
            f"   Location: {record.location}",
            f"   Type: {record.type.value}",
        ]

    if result.record_type == RecordType.LEAD:
        return [
            f"{index}. **{record.name}** from {record.company} (lead)",
            f"   Score: {record.score}/100",
            f"   Value: {record.value}",
            f"   Email: {record.email}",
            f"   Status: {record.status.value}",
        ]

    closing = record.closing_date.isoformat() if record.closing_date else "Not set"
    return [
        f"{index}. **{record.name}** (deal)",
        f"   Account: {record.associated_account}",
        f"   Value: {format_money(record.value)}",
        f"   Closing: {closing}",
        f"   Stage: {record.stage.value}",
    ]


def format_search_results(results: Sequence[SearchResult]) -> str:
    """Numbered text block per hit, or a hint when nothing matched."""
    if not results:
        return NO_RESULTS_MESSAGE

    blocks = [f"**Search Results ({len(results)} found):**"]
    for index, result in enumerate(results, start=1):
        blocks.append("\n".join(_format_result(index, result)))
    return "\n\n".join(blocks)
