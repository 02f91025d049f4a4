# noqa: F401 to ensure models are imported for metadata
from signdesk.models.audit import AuditLog
from signdesk.models.contact import Contact
from signdesk.models.user import User

__all__ = [
    "AuditLog",
    "Contact",
    "User",
]
