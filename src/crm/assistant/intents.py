"""Intent table for the CRM assistant.

A message is lower-cased and tested against INTENTS in order; the first
intent that matches produces the reply. Each Intent pairs a keyword set
(substring match, or whole-word for short words like "hi") with a handler
that renders markdown text from the current CRM snapshot.

Order matters. Explicit search ("find X") comes first, topical intents
(leads, accounts, deals, contacts) come before small talk, and the loose
"show me X" search form is tried only after every topical intent so that
"show me top leads" still reaches the leads handler.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from src.crm.assistant.analytics import HIGH_PROBABILITY_UPCOMING, CRMAnalytics
from src.crm.records.schemas import CRMSnapshot, format_money
from src.crm.search.engine import RelevanceSearchEngine, SearchResult, extract_search_query
from src.crm.search.formatting import format_search_results

if TYPE_CHECKING:
    from src.crm.admin.schemas import User
    from src.crm.assistant.assistant import AssistantSession


JOKES: tuple[str, ...] = (
    "Why don't sales reps ever get lost? Because they always follow the pipeline!",
    "What do you call a lead that never converts? A cold call forever!",
    "Why did the CRM break up with the spreadsheet? Too many cells, not enough chemistry!",
)


@dataclass
class Turn:
    """Everything a handler may read while answering one message."""

    message: str
    snapshot: CRMSnapshot
    analytics: CRMAnalytics
    search_engine: RelevanceSearchEngine
    session: AssistantSession
    today: date
    context: tuple[str, ...] = ()  # previous queries, oldest first
    actor: User | None = None

    @property
    def query(self) -> str:
        return self.message.strip().lower()


@dataclass(frozen=True)
class Answer:
    """Handler output: reply text plus any search hits behind it."""

    content: str
    results: tuple[SearchResult, ...] = ()


Handler = Callable[[Turn], Answer]


@dataclass(frozen=True)
class Intent:
    """One row of the intent table.

    Attributes:
        name: Intent identifier reported on the reply.
        handler: Renders the reply.
        keywords: Any one of these must occur in the query. Empty means the
            keyword test always passes.
        requires: If set, one of these must also occur.
        whole_word: Match keywords on word boundaries instead of substrings.
        exact: Queries that match outright when equal to one of these.
        predicate: Extra condition evaluated before the keyword test.
    """

    name: str
    handler: Handler
    keywords: tuple[str, ...] = ()
    requires: tuple[str, ...] = ()
    whole_word: bool = False
    exact: tuple[str, ...] = ()
    predicate: Callable[[Turn], bool] | None = field(default=None)

    def _contains(self, query: str, words: tuple[str, ...]) -> bool:
        if self.whole_word:
            return any(re.search(rf"\b{re.escape(word)}\b", query) for word in words)
        return any(word in query for word in words)

    def matches(self, turn: Turn) -> bool:
        query = turn.query
        if self.predicate is not None and not self.predicate(turn):
            return False
        if query in self.exact:
            return True
        if self.keywords and not self._contains(query, self.keywords):
            return False
        return not self.requires or self._contains(query, self.requires)


# ── Formatting Helpers ──────────────────────────────────────────────────────


def _bullets(lines: list[str]) -> str:
    return "\n".join(f"- {line}" for line in lines)


def _money(value: float) -> str:
    return format_money(round(value))


# ── Search ──────────────────────────────────────────────────────────────────


def _search_phrase(turn: Turn) -> str | None:
    return extract_search_query(turn.message)


def _show_me_phrase(turn: Turn) -> str | None:
    return extract_search_query(turn.message, include_show_me=True)


def _run_search(turn: Turn, phrase: str | None) -> Answer:
    results = turn.search_engine.search(phrase, turn.snapshot)
    return Answer(format_search_results(results), tuple(results))


def handle_search(turn: Turn) -> Answer:
    return _run_search(turn, _search_phrase(turn))


def handle_show_me_search(turn: Turn) -> Answer:
    return _run_search(turn, _show_me_phrase(turn))


# ── Leads ───────────────────────────────────────────────────────────────────


def handle_weekly_leads(turn: Turn) -> Answer:
    leads = turn.analytics.weekly_leads()
    if not leads:
        return Answer(
            "**Top Leads This Week:**\n\n"
            "No new leads this week. Consider increasing marketing efforts or "
            "lead generation activities."
        )

    blocks = ["**Top Leads This Week:**"]
    for index, lead in enumerate(leads, start=1):
        blocks.append(
            f"{index}. **{lead.name}** from {lead.company}\n"
            + _bullets(
                [
                    f"Lead Score: {lead.score}/100",
                    f"Potential Value: {lead.value}",
                    f"Contact: {lead.phone}",
                    f"Email: {lead.email}",
                    f"Status: {lead.status.value}",
                ]
            )
        )
    top = leads[0]
    blocks.append(
        "**Recommendation:** Focus on the highest scoring leads first. "
        f"{top.name} has the highest score ({top.score}) and should be your priority!"
    )
    return Answer("\n\n".join(blocks))


def handle_leads(turn: Turn) -> Answer:
    blocks = ["Here are your top leads by score:"]
    for index, lead in enumerate(turn.analytics.top_leads(), start=1):
        blocks.append(
            f"{index}. **{lead.name}** from {lead.company}\n"
            + _bullets(
                [
                    f"Score: {lead.score}/100",
                    f"Value: {lead.value}",
                    f"Status: {lead.status.value}",
                    f"Last Activity: {lead.last_activity}",
                ]
            )
        )
    metrics = turn.analytics.lead_metrics()
    blocks.append(
        "**Lead Summary:**\n"
        + _bullets(
            [
                f"Total Leads: {metrics.total}",
                f"New Leads: {metrics.new}",
                f"Qualified Leads: {metrics.qualified}",
                f"Working Leads: {metrics.working}",
            ]
        )
    )
    return Answer("\n\n".join(blocks))


# ── Accounts ────────────────────────────────────────────────────────────────


def handle_accounts(turn: Turn) -> Answer:
    blocks = ["Here are your top accounts:"]
    for index, account in enumerate(turn.analytics.top_accounts(), start=1):
        blocks.append(
            f"{index}. **{account.name}**\n"
            + _bullets(
                [
                    f"Industry: {account.industry}",
                    f"Revenue: {account.revenue}",
                    f"Active Deals: {account.active_deals}",
                    f"Contacts: {account.contacts}",
                    f"Rating: {account.rating}",
                ]
            )
        )
    metrics = turn.analytics.account_metrics()
    blocks.append(
        "**Account Summary:**\n"
        + _bullets(
            [
                f"Total Accounts: {metrics.total}",
                f"Customers: {metrics.customers}",
                f"Prospects: {metrics.prospects}",
                f"Partners: {metrics.partners}",
            ]
        )
    )
    return Answer("\n\n".join(blocks))


# ── Deals ───────────────────────────────────────────────────────────────────


def _urgency_label(probability: int) -> str:
    if probability > 75:
        return "HIGH PRIORITY"
    if probability > 50:
        return "MEDIUM PRIORITY"
    return "LOW PRIORITY"


def handle_deals(turn: Turn) -> Answer:
    upcoming = turn.analytics.upcoming_deals(turn.today)
    blocks: list[str] = []

    if upcoming:
        blocks.append("**Deals Closing This Week:**")
        for index, deal in enumerate(upcoming, start=1):
            blocks.append(
                f"{_urgency_label(deal.probability)} {index}. **{deal.name}**\n"
                + _bullets(
                    [
                        f"Account: {deal.associated_account}",
                        f"Value: {_money(deal.value)}",
                        f"Closing: {deal.closing_date.isoformat()}",
                        f"Probability: {deal.probability}%",
                        f"Stage: {deal.stage.value}",
                        f"Next Step: {deal.next_step}",
                    ]
                )
            )
        likely = [deal for deal in upcoming if deal.probability > HIGH_PROBABILITY_UPCOMING]
        if likely:
            blocks.append(
                f"**Action Required:** You have {len(likely)} high-probability "
                f'deal(s) closing soon. Focus on "{likely[0].name}" - it\'s your '
                "most likely to close!"
            )
    else:
        blocks.append("No deals are closing this week.")
        blocks.append(
            "**Suggestion:** Focus on moving deals in your pipeline to the closing stage."
        )

    metrics = turn.analytics.deal_metrics()
    blocks.append(
        "**Pipeline Summary:**\n"
        + _bullets(
            [
                f"Active Deals: {metrics.active}",
                f"Pipeline Value: {_money(metrics.pipeline_value)}",
                f"Won Deals: {metrics.won}",
                f"Total Revenue: {_money(metrics.revenue)}",
                f"Average Deal Size: {_money(metrics.average_active_size)}",
            ]
        )
    )
    blocks.append(f"**Win Rate:** {round(metrics.win_rate)}%")
    return Answer("\n\n".join(blocks))


# ── Contacts / Overview / Profile ───────────────────────────────────────────


def handle_contacts(turn: Turn) -> Answer:
    metrics = turn.analytics.contact_metrics()
    return Answer(
        "Here's your contact summary:\n\n"
        "**Contact Summary:**\n"
        + _bullets(
            [
                f"Total Contacts: {metrics.total}",
                f"Active Deals: {metrics.active_deal}",
                f"Prospects: {metrics.prospects}",
                f"Suspects: {metrics.suspects}",
            ]
        )
        + "\n\nRecent contacts include key decision makers from your top accounts. "
        "Would you like me to show you specific contact details for any account?"
    )


def handle_overview(turn: Turn) -> Answer:
    snapshot = turn.snapshot
    stages = [
        f"{stage.value}: {count}"
        for stage, count in turn.analytics.stage_counts().items()
        if count
    ]
    blocks = [
        "Here's your CRM overview:",
        "**Quick Stats:**\n"
        + _bullets(
            [
                f"Total Leads: {len(snapshot.leads)}",
                f"Total Accounts: {len(snapshot.accounts)}",
                f"Total Contacts: {len(snapshot.contacts)}",
                f"Active Deals: {len(snapshot.open_deals)}",
            ]
        ),
    ]
    if stages:
        blocks.append("**Deals by Stage:**\n" + _bullets(stages))
    blocks.append(
        "Your CRM is looking healthy! Would you like me to dive deeper into any "
        "specific area?"
    )
    return Answer("\n\n".join(blocks))


def handle_profile(turn: Turn) -> Answer:
    actor = turn.actor
    snapshot = turn.snapshot
    metrics = turn.analytics.deal_metrics()

    role = actor.role.value if actor else "user"
    profile = _bullets(
        [
            f"Name: {actor.display_name if actor else 'Not set'}",
            f"Email: {actor.email if actor else 'Not set'}",
            f"Role: {role}",
            f"Account Type: {'Administrator' if role == 'admin' else 'CRM User'}",
        ]
    )
    activity = _bullets(
        [
            f"Managing {len(snapshot.leads)} leads",
            f"Overseeing {len(snapshot.accounts)} accounts",
            f"Tracking {len(snapshot.deals)} deals",
            f"Connected to {len(snapshot.contacts)} contacts",
        ]
    )
    performance = _bullets(
        [
            f"Active Deals: {metrics.active}",
            f"Pipeline Value: {_money(metrics.pipeline_value)}",
            f"Closed Deals: {metrics.won}",
        ]
    )
    return Answer(
        f"**Your Profile Information:**\n{profile}\n\n"
        f"**Your CRM Activity:**\n{activity}\n\n"
        f"**Your Performance:**\n{performance}"
    )


# ── Small Talk ──────────────────────────────────────────────────────────────


def handle_search_help(turn: Turn) -> Answer:
    return Answer(
        "**Search Help:**\n\n"
        "I can help you find specific information. Try asking:\n\n"
        + _bullets(
            [
                '"Find contact John Smith"',
                '"Search for TechCorp account"',
                '"Show me deals over $100k"',
                '"Find leads from StartupCorp"',
            ]
        )
        + "\n\nWhat specifically are you looking for?"
    )


def handle_greeting(turn: Turn) -> Answer:
    return Answer(
        "Hi there! I'm your CRM assistant. I've got all your latest data ready. "
        "What would you like to know about your sales pipeline today?"
    )


def handle_thanks(turn: Turn) -> Answer:
    return Answer(
        "You're welcome! I'm always here to help with your CRM data. "
        "Is there anything else you'd like to know?"
    )


HELP_TEXT = """**I can help you with:**

**Lead Management:** "Top leads this week", "New leads", "Lead status"
**Account Insights:** "Best accounts", "Account summary", "Customer analysis"
**Deal Tracking:** "Closing deals", "Pipeline status", "Deal performance"
**Contact Info:** "Recent contacts", "Find contact [name]"
**Analytics:** "Performance metrics", "Revenue analysis", "My statistics"
**Search:** "Find [anything]", "Search for [company/person]"
**Profile:** "My profile", "My performance", "Account info"

**Pro Tips:**
- I remember our conversation context
- Try "tell me more" for deeper insights
- Use "clear" to reset our conversation

Just ask me naturally - I understand context!"""


def handle_help(turn: Turn) -> Answer:
    return Answer(HELP_TEXT)


def handle_clear(turn: Turn) -> Answer:
    turn.session.clear()
    return Answer("Conversation cleared! How can I help you with your CRM data?")


def handle_joke(turn: Turn) -> Answer:
    return Answer(turn.session.next_joke(JOKES))


def handle_coffee(turn: Turn) -> Answer:
    return Answer(
        "I don't drink coffee, but I can definitely energize you with some exciting "
        "sales insights! How about checking your top performing leads?"
    )


def handle_performance(turn: Turn) -> Answer:
    perf = turn.analytics.performance()
    advice = turn.analytics.performance_advice()

    blocks = [
        "**Performance Analytics:**",
        "**Revenue Metrics:**\n"
        + _bullets(
            [
                f"Total Revenue: {_money(perf.revenue)}",
                f"Pipeline Value: {_money(perf.pipeline_value)}",
                f"Average Deal Size: {_money(perf.average_won_size)}",
                f"Lead-to-Deal Conversion: {round(perf.conversion_rate)}%",
            ]
        ),
        "**Activity Summary:**\n"
        + _bullets(
            [
                f"Leads in Pipeline: {perf.lead_count}",
                f"Active Accounts: {perf.customer_count}",
                f"Deals in Progress: {perf.active_deals}",
                f"Won Deals: {perf.won_deals}",
            ]
        ),
    ]
    if advice:
        blocks.append("**Smart Recommendations:**\n" + _bullets(advice))
    else:
        blocks.append("**Great job!** Your pipeline looks healthy and well-balanced!")
    return Answer("\n\n".join(blocks))


def handle_fallback(turn: Turn) -> Answer:
    return Answer(
        f'I understand you\'re asking about "{turn.message.strip()}". '
        "I can help you with information about:\n\n"
        + _bullets(
            [
                '**Leads** - "Show me top leads this week" or "lead status"',
                '**Accounts** - "Show me best accounts" or "account summary"',
                '**Deals** - "What deals are closing?" or "pipeline status"',
                '**Contacts** - "Contact summary" or "recent contacts"',
                '**Overview** - "Dashboard summary" or "CRM overview"',
                '**Profile** - "My profile" or "my performance"',
                '**Analytics** - "Show performance metrics" or "analytics"',
            ]
        )
        + "\n\nWhat would you like to know more about?"
    )


# ── Follow-ups ──────────────────────────────────────────────────────────────

FOLLOW_UP_TOPICS: tuple[tuple[str, Handler], ...] = (
    ("lead", handle_leads),
    ("deal", handle_deals),
    ("account", handle_accounts),
)


def _follow_up_handler(turn: Turn) -> Handler | None:
    if not turn.context:
        return None
    previous = turn.context[-1]
    for topic, handler in FOLLOW_UP_TOPICS:
        if topic in previous:
            return handler
    return None


def handle_follow_up(turn: Turn) -> Answer:
    handler = _follow_up_handler(turn)
    if handler is None:
        return handle_fallback(turn)
    return handler(turn)


# ── Table ───────────────────────────────────────────────────────────────────

INTENTS: tuple[Intent, ...] = (
    Intent("search", handle_search, predicate=lambda t: _search_phrase(t) is not None),
    Intent(
        "follow_up",
        handle_follow_up,
        keywords=("more", "details"),
        predicate=lambda t: _follow_up_handler(t) is not None,
    ),
    Intent("weekly_leads", handle_weekly_leads, keywords=("lead",), requires=("week",)),
    Intent("leads", handle_leads, keywords=("lead",)),
    Intent("accounts", handle_accounts, keywords=("account", "client")),
    Intent("deals", handle_deals, keywords=("deal", "closing", "pipeline")),
    Intent("contacts", handle_contacts, keywords=("contact",)),
    Intent("overview", handle_overview, keywords=("summary", "overview", "dashboard")),
    Intent("profile", handle_profile, keywords=("my profile", "about me", "my info")),
    Intent("search_help", handle_search_help, keywords=("search", "find")),
    Intent("greeting", handle_greeting, keywords=("hello", "hi", "hey"), whole_word=True),
    Intent("thanks", handle_thanks, keywords=("thank",)),
    Intent("help", handle_help, keywords=("help",), exact=("?",)),
    Intent("clear", handle_clear, keywords=("clear", "reset")),
    Intent("joke", handle_joke, keywords=("joke", "funny")),
    Intent("coffee", handle_coffee, keywords=("coffee", "tired")),
    Intent("performance", handle_performance, keywords=("performance", "analytics", "metrics")),
    Intent(
        "show_me_search",
        handle_show_me_search,
        predicate=lambda t: _show_me_phrase(t) is not None,
    ),
)

FALLBACK_INTENT = Intent("fallback", handle_fallback)


def classify(turn: Turn, intents: tuple[Intent, ...] = INTENTS) -> Intent:
    """First intent matching the turn, or the fallback."""
    for intent in intents:
        if intent.matches(turn):
            return intent
    return FALLBACK_INTENT


# ── Quick Actions ───────────────────────────────────────────────────────────

WELCOME_QUICK_ACTIONS = [
    "Top leads this week",
    "Deals closing soon",
    "My performance",
    "Account summary",
]


def suggest_quick_actions(message: str) -> list[str]:
    """Follow-up prompts offered under a reply, keyed on the question topic."""
    query = message.lower()
    if "lead" in query:
        return ["Account summary", "Pipeline status", "My performance"]
    if "deal" in query or "closing" in query:
        return ["Top leads this week", "Account summary", "Revenue analysis"]
    if "account" in query:
        return ["Contact summary", "Deals closing soon", "Lead status"]
    if "performance" in query or "analytics" in query:
        return ["Top leads this week", "Deals closing soon", "Account summary"]
    if "search" in query or "find" in query:
        return ["Dashboard summary", "My performance", "Account summary"]
    return ["My performance", "Deals closing soon", "Top leads this week"]
