from . import audit, auth, contacts, dashboard, documents, health, signing, users

__all__ = [
    "audit",
    "auth",
    "contacts",
    "dashboard",
    "documents",
    "health",
    "signing",
    "users",
]
