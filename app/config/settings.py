from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for auth.admin calls and RLS bypass

    # Media storage
    media_storage_backend: str = "supabase"  # supabase | s3
    media_bucket: str = "media"
    max_upload_bytes: int = 50 * 1024 * 1024

    # AWS S3 (only used when media_storage_backend == "s3")
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: Optional[str] = None

    # Email (Resend-compatible HTTP API)
    email_api_url: str = "https://api.resend.com/emails"
    email_api_key: Optional[str] = None
    email_from: str = "noreply@weddingshare.com"
    email_dev_recipient: Optional[str] = None  # When set, every email is delivered here instead
    email_timeout_seconds: float = 10.0

    # Sessions
    session_cookie_name: str = "session-token"
    session_max_age_seconds: int = 60 * 60 * 24 * 7
    allow_inline_sessions: Optional[bool] = None  # None -> enabled outside production

    # Invitations
    invitation_ttl_hours: int = 24 * 7

    # Downstream calls
    collaborator_timeout_seconds: float = 10.0

    # App
    app_name: str = "wedding-share-backend"
    app_url: str = "http://localhost:3000"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    rate_limit_enabled: bool = True

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def inline_sessions_enabled(self) -> bool:
        if self.allow_inline_sessions is None:
            return not self.is_production
        return self.allow_inline_sessions

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
