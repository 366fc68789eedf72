"""Dependency injection singletons for ScholarFund."""

from scholarfund.common.config import get_settings
from scholarfund.common.database import DatabaseManager
from scholarfund.audit.service import AuditService
from scholarfund.identity.service import UserService
from scholarfund.registry.service import RegistryService
from scholarfund.ledger.service import LedgerService
from scholarfund.scholarships.service import ScholarshipService

_db: DatabaseManager | None = None
_audit: AuditService | None = None
_users: UserService | None = None
_registry: RegistryService | None = None
_ledger: LedgerService | None = None
_scholarships: ScholarshipService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_audit_service() -> AuditService:
    global _audit
    if _audit is None:
        _audit = AuditService(get_settings())
    return _audit


def get_user_service() -> UserService:
    global _users
    if _users is None:
        _users = UserService(get_settings(), audit_service=get_audit_service())
    return _users


def get_registry_service() -> RegistryService:
    global _registry
    if _registry is None:
        _registry = RegistryService(get_settings(), audit_service=get_audit_service())
    return _registry


def get_ledger_service() -> LedgerService:
    global _ledger
    if _ledger is None:
        _ledger = LedgerService(get_settings(), audit_service=get_audit_service())
    return _ledger


def get_scholarship_service() -> ScholarshipService:
    global _scholarships
    if _scholarships is None:
        _scholarships = ScholarshipService(
            get_settings(), get_registry_service(),
            audit_service=get_audit_service(),
        )
    return _scholarships


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _audit, _users, _registry, _ledger, _scholarships
    _db = None
    _audit = None
    _users = None
    _registry = None
    _ledger = None
    _scholarships = None
