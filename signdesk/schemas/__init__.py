from signdesk.schemas import audit, auth, common, contact, dashboard, document, user

__all__ = [
    "audit",
    "auth",
    "common",
    "contact",
    "dashboard",
    "document",
    "user",
]
