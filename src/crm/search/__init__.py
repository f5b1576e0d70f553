"""Relevance search over CRM records.

Exports:
    RelevanceSearchEngine: Token-overlap ranker over the four record kinds.
    SearchResult, RecordType: Ranked hit model.
    extract_search_query: Pull the search phrase from a chat message.
    format_search_results: Render hits as reply text.
"""

from src.crm.search.engine import (
    RecordType,
    RelevanceSearchEngine,
    SearchProfile,
    SearchResult,
    extract_search_query,
)
from src.crm.search.formatting import format_search_results

__all__ = [
    "RecordType",
    "RelevanceSearchEngine",
    "SearchProfile",
    "SearchResult",
    "extract_search_query",
    "format_search_results",
]
