"""Demo record set loaded into the in-memory repository on startup.

Mirrors the sample pipeline the CRM ships with so the assistant, search and
recommendation endpoints have data to work on in development. Controlled by
Settings.SEED_DEMO_DATA.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from src.crm.records.repository import InMemoryCRMRepository
from src.crm.records.schemas import Account, Contact, Deal, Lead


def _at(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


DEMO_LEADS: list[Lead] = [
    Lead(
        id="lead-001",
        name="Alice Johnson",
        company="StartupCorp",
        title="CEO",
        email="alice@startupcorp.com",
        phone="+1 (555) 123-4567",
        status="New",
        source="Website",
        score=85,
        value="$50,000",
        last_activity="2 hours ago",
    ),
    Lead(
        id="lead-002",
        name="Bob Wilson",
        company="Enterprise Ltd",
        title="CTO",
        email="bob@enterprise.com",
        phone="+1 (555) 987-6543",
        status="Qualified",
        source="Referral",
        score=92,
        value="$125,000",
        last_activity="1 day ago",
    ),
    Lead(
        id="lead-003",
        name="Carol Davis",
        company="Tech Innovations",
        title="VP Sales",
        email="carol@techinnovations.com",
        phone="+1 (555) 456-7890",
        status="Working",
        source="Cold Call",
        score=78,
        value="$75,000",
        last_activity="3 hours ago",
    ),
    Lead(
        id="lead-004",
        name="David Brown",
        company="Future Systems",
        title="Director",
        email="david@futuresystems.com",
        phone="+1 (555) 321-0987",
        status="Nurturing",
        source="LinkedIn",
        score=65,
        value="$30,000",
        last_activity="5 days ago",
    ),
]

DEMO_ACCOUNTS: list[Account] = [
    Account(
        id="account-001",
        name="TechCorp Solutions",
        industry="Technology",
        type="Customer",
        revenue="$2.5M",
        employees="100-500",
        location="New York, NY",
        phone="+1 (555) 123-4567",
        website="techcorp.com",
        owner="John Smith",
        rating="Hot",
        account_rating="Platinum (Must Have)",
        status="Active Deal",
        last_activity="2 days ago",
        active_deals=3,
        contacts=8,
    ),
    Account(
        id="account-002",
        name="Innovate Inc",
        industry="Software",
        type="Prospect",
        revenue="$5M+",
        employees="500+",
        location="San Francisco, CA",
        phone="+1 (555) 987-6543",
        website="innovate.com",
        owner="Jane Doe",
        rating="Warm",
        account_rating="Gold (High Priority)",
        status="Prospect",
        last_activity="1 week ago",
        active_deals=1,
        contacts=5,
    ),
    Account(
        id="account-003",
        name="StartupTech",
        industry="Fintech",
        type="Customer",
        revenue="$500K",
        employees="10-50",
        location="Austin, TX",
        phone="+1 (555) 456-7890",
        website="startuptech.io",
        owner="Mike Johnson",
        rating="Cold",
        account_rating="Silver (Medium Priority)",
        last_activity="3 days ago",
        active_deals=2,
        contacts=3,
    ),
    Account(
        id="account-004",
        name="Global Industries",
        industry="Manufacturing",
        type="Partner",
        revenue="$50M+",
        employees="1000+",
        location="Chicago, IL",
        phone="+1 (555) 321-0987",
        website="globalind.com",
        owner="Sarah Wilson",
        rating="Hot",
        last_activity="Yesterday",
        active_deals=5,
        contacts=12,
    ),
]

DEMO_CONTACTS: list[Contact] = [
    Contact(
        id="contact-001",
        first_name="John",
        last_name="Smith",
        title="CTO",
        associated_account="TechCorp Solutions",
        email_address="john.smith@techcorp.com",
        desk_phone="+1 (555) 123-4567",
        mobile_phone="+1 (555) 123-4568",
        city="New York",
        state="NY",
        country="United States",
        time_zone="EST",
        source="Data Research",
        owner="Jane Doe",
        owner_id="user-001",
        status="Active Deal",
        created_at=_at(2024, 1, 10),
        updated_at=_at(2024, 2, 15),
    ),
    Contact(
        id="contact-002",
        first_name="Sarah",
        last_name="Wilson",
        title="VP of Operations",
        associated_account="Innovate Inc",
        email_address="sarah.wilson@innovate.com",
        desk_phone="+1 (555) 987-6543",
        mobile_phone="+1 (555) 987-6544",
        city="San Francisco",
        state="CA",
        country="United States",
        time_zone="PST",
        source="Referral",
        owner="Mike Johnson",
        owner_id="user-002",
        status="Prospect",
        created_at=_at(2024, 1, 15),
        updated_at=_at(2024, 2, 10),
    ),
    Contact(
        id="contact-003",
        first_name="Michael",
        last_name="Chen",
        title="Director of IT",
        associated_account="StartupTech",
        email_address="michael.chen@startuptech.io",
        desk_phone="+1 (555) 456-7890",
        mobile_phone="+1 (555) 456-7891",
        city="Austin",
        state="TX",
        country="United States",
        time_zone="CST",
        source="Event",
        owner="Sarah Wilson",
        owner_id="user-003",
        status="Prospect",
        created_at=_at(2024, 1, 20),
        updated_at=_at(2024, 2, 12),
    ),
    Contact(
        id="contact-004",
        first_name="Lisa",
        last_name="Garcia",
        title="CEO",
        associated_account="Global Industries",
        email_address="lisa.garcia@globalind.com",
        desk_phone="+1 (555) 321-0987",
        mobile_phone="+1 (555) 321-0988",
        city="Chicago",
        state="IL",
        country="United States",
        time_zone="CST",
        source="Data Research",
        owner="Alex Chen",
        owner_id="user-004",
        status="Active Deal",
        created_at=_at(2024, 1, 25),
        updated_at=_at(2024, 2, 18),
    ),
    Contact(
        id="contact-005",
        first_name="David",
        last_name="Brown",
        title="Product Manager",
        associated_account="MegaCorp International",
        email_address="david.brown@megacorp.com",
        desk_phone="+1 (555) 654-3210",
        mobile_phone="+1 (555) 654-3211",
        city="Boston",
        state="MA",
        country="United States",
        time_zone="EST",
        source="Referral",
        owner="Dr. Patel",
        owner_id="user-005",
        status="Suspect",
        created_at=_at(2024, 2, 1),
        updated_at=_at(2024, 2, 20),
    ),
]

DEMO_DEALS: list[Deal] = [
    Deal(
        id="deal-001",
        name="Enterprise Software Package",
        business_line="Human Capital",
        associated_account="TechCorp Solutions",
        associated_contact="John Smith",
        closing_date=date(2024, 3, 15),
        probability=75,
        value=125000,
        approved_by="Sarah Wilson",
        description="Comprehensive HR management solution",
        next_step="Final contract review",
        geo="Americas",
        entity="Yitro Global",
        stage="Negotiating",
        owner="Jane Doe",
        owner_id="user-001",
        created_at=_at(2024, 1, 10),
        updated_at=_at(2024, 2, 20),
    ),
    Deal(
        id="deal-002",
        name="Cloud Migration Services",
        business_line="Managed Services",
        associated_account="Innovate Inc",
        associated_contact="Mike Johnson",
        closing_date=date(2024, 2, 28),
        probability=60,
        value=85000,
        approved_by="David Brown",
        description="Complete cloud infrastructure migration",
        next_step="Technical proposal submission",
        geo="Americas",
        entity="Yitro Tech",
        stage="Proposal Submitted",
        owner="John Smith",
        owner_id="user-002",
        created_at=_at(2024, 1, 15),
        updated_at=_at(2024, 2, 18),
    ),
    Deal(
        id="deal-003",
        name="GCC Automation Platform",
        business_line="Automation",
        associated_account="Global Industries",
        associated_contact="Sarah Wilson",
        closing_date=date(2024, 4, 20),
        probability=90,
        value=250000,
        approved_by="Jennifer Lee",
        description="Advanced process automation solution",
        next_step="Implementation planning",
        geo="EMEA",
        entity="Yitro Global",
        stage="Closing",
        owner="Mike Johnson",
        owner_id="user-003",
        created_at=_at(2024, 1, 5),
        updated_at=_at(2024, 2, 22),
    ),
    Deal(
        id="deal-004",
        name="Support Package Renewal",
        business_line="Support",
        associated_account="StartupTech",
        associated_contact="Alex Chen",
        closing_date=date(2024, 3, 30),
        probability=95,
        value=45000,
        approved_by="Robert Kim",
        description="Annual support and maintenance renewal",
        next_step="Contract signing",
        geo="India",
        entity="Yitro Support",
        stage="Order Won",
        owner="Sarah Wilson",
        owner_id="user-004",
        created_at=_at(2024, 2, 1),
        updated_at=_at(2024, 3, 30),
    ),
    Deal(
        id="deal-005",
        name="Product Solution Implementation",
        business_line="Product",
        associated_account="MegaCorp International",
        associated_contact="Lisa Garcia",
        closing_date=date(2024, 5, 15),
        probability=45,
        value=180000,
        approved_by="Tom Anderson",
        description="Custom product development and implementation",
        next_step="Requirements gathering",
        geo="Philippines",
        entity="Yitro Global",
        stage="Opportunity Identified",
        owner="Alex Chen",
        owner_id="user-005",
        created_at=_at(2024, 2, 10),
        updated_at=_at(2024, 2, 10),
    ),
    Deal(
        id="deal-006",
        name="RCM Platform Integration",
        business_line="RCM",
        associated_account="HealthSystem Plus",
        associated_contact="Dr. Maria Rodriguez",
        closing_date=date(2024, 4, 5),
        probability=70,
        value=95000,
        approved_by="Chris Taylor",
        description="Revenue cycle management platform integration",
        next_step="Demo presentation",
        geo="ANZ",
        entity="Yitro Health",
        stage="Negotiating",
        owner="Dr. Patel",
        owner_id="user-006",
        created_at=_at(2024, 1, 20),
        updated_at=_at(2024, 2, 14),
    ),
]


def build_demo_repository() -> InMemoryCRMRepository:
    """Return an InMemoryCRMRepository pre-loaded with the demo records."""
    return InMemoryCRMRepository(
        leads=DEMO_LEADS,
        accounts=DEMO_ACCOUNTS,
        contacts=DEMO_CONTACTS,
        deals=DEMO_DEALS,
    )
