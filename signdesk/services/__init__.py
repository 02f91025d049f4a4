from signdesk.services.analytics import AnalyticsService
from signdesk.services.audit import AuditService
from signdesk.services.auth import AuthService
from signdesk.services.contact import ContactService
from signdesk.services.document_store import DocumentStore
from signdesk.services.signing import SigningSession, SigningSessionRegistry

__all__ = [
    "AnalyticsService",
    "AuditService",
    "AuthService",
    "ContactService",
    "DocumentStore",
    "SigningSession",
    "SigningSessionRegistry",
]
