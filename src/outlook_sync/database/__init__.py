"""Database models, sessions and repositories."""

from outlook_sync.database.models import Base, CalendarBindingModel, CredentialModel
from outlook_sync.database.repositories import CalendarBindingRepository, CredentialRepository
from outlook_sync.database.unit_of_work import SqlAlchemyUnitOfWork

__all__ = [
    "Base",
    "CalendarBindingModel",
    "CredentialModel",
    "CalendarBindingRepository",
    "CredentialRepository",
    "SqlAlchemyUnitOfWork",
]
