"""Relational store adapter: engine/pool ownership, ORM model, error mapping."""

from app.adapters.db.database import Database
from app.adapters.db.errors import IntegrityViolation, classify_integrity_error
from app.adapters.db.models import Account, Base

__all__ = [
    "Account",
    "Base",
    "Database",
    "IntegrityViolation",
    "classify_integrity_error",
]
