from signdesk.utils.security import (
    create_access_token,
    decode_token,
    get_password_hash,
    verify_password,
)

__all__ = [
    "create_access_token",
    "decode_token",
    "get_password_hash",
    "verify_password",
]
