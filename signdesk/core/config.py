from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global SignDesk settings.
    Values are read from the environment and from the .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Project
    project_name: str = "SignDesk API"
    api_v1_str: str = "/api/v1"
    debug: bool = False

    # Security / JWT
    secret_key: str = "changeme"
    access_token_expire_minutes: int = 60
    refresh_token_expire_minutes: int = 10080
    algorithm: str = "HS256"

    # Database (principals, contacts, audit trail)
    database_url: str = "sqlite:///./signdesk.db"

    # CORS
    allowed_origins: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Document collection slot
    storage_backend: str = "local"
    signdesk_storage: str = "_storage"
    documents_slot_key: str = "documents"
    write_behind: bool = True

    # S3 / MinIO
    s3_endpoint_url: Optional[str] = None
    s3_access_key: Optional[str] = None
    s3_secret_key: Optional[str] = None
    s3_bucket_documents: str = "signdesk-documents"

    # Uploads
    max_upload_bytes: int = 25 * 1024 * 1024
    allowed_extensions: List[str] = [".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".txt"]

    # Identity-bound signing (simulated Aadhaar / DSC)
    identity_reference_length: int = 12
    challenge_code_length: int = 6
    signing_session_idle_seconds: int = 1800

    # Logging
    log_dir: str = "log"
    log_level: str = "INFO"

    def is_allowed_filename(self, filename: str) -> bool:
        if not self.allowed_extensions:
            return True
        lowered = filename.lower()
        return any(lowered.endswith(ext.lower()) for ext in self.allowed_extensions)


@lru_cache
def get_settings() -> Settings:
    """Returns the cached global settings instance."""
    return Settings()


settings = get_settings()
