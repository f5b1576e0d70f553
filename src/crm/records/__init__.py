"""CRM record module -- schemas, repository, demo seed data, account 360 view.

Provides Pydantic record schemas (Lead, Account, Contact, Deal, DealStage),
the CRMRepository interface with its in-memory backend, and the Account 360
aggregate used by the records API.
"""
