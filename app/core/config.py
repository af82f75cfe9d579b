"""
Application configuration.
All settings are loaded from environment variables.
Use env.example as a reference for required variables.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    IMPORTANT: Credentials have no defaults - they MUST be set in .env file.
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "local"
    # CORS: comma separated (e.g. http://localhost:5173,https://library.example.com). Empty = default list in main.py.
    cors_origins: str = ""
    # Trusted proxy IPs (comma-separated). Used for X-Forwarded-For in production.
    trusted_proxy_ips: str = ""

    # ===========================================
    # DATABASE (PostgreSQL)
    # ===========================================
    database_url: str  # Required, no default
    # Create missing tables on startup (documents, entitlements, payment_claims, users, audit_logs)
    db_auto_create: bool = True

    # ===========================================
    # REDIS (rate limits, circuit breaker state)
    # ===========================================
    redis_url: str  # Required, no default

    # ===========================================
    # AUTH (server-issued session token)
    # ===========================================
    jwt_secret_key: str  # Required, no default
    jwt_algorithm: str = "HS256"
    access_token_ttl_seconds: int = 86400  # 24 hours
    # Emails that receive the admin role on first sign-in. Roles live in the users table afterwards.
    bootstrap_admin_emails: str = ""

    # ===========================================
    # IDENTITY PROVIDER
    # ===========================================
    identity_provider: str = "google"  # google, dev (dev is only allowed when app_env=local)
    google_client_id: str = ""  # required by the google provider (token audience)
    google_tokeninfo_url: str = "https://oauth2.googleapis.com/tokeninfo"

    # ===========================================
    # DOCUMENT STORAGE
    # ===========================================
    storage_base_path: str = "/data/documents"
    # Base URL used to build signed file links (empty = relative links)
    public_base_url: str = ""
    signed_url_ttl_seconds: int = 3600  # 1 hour
    max_file_size_mb: int = 50
    allowed_document_extensions: str = ".pdf"

    # ===========================================
    # PAYMENT CLAIMS
    # ===========================================
    claim_rate_limit: int = 5  # max submissions per window per user
    claim_rate_window_seconds: int = 600
    currency: str = "INR"
    # UPI payee shown with "payment required" answers. Empty = not shown.
    upi_payee_id: str = ""
    upi_payee_name: str = ""
    # Free text shown to the payer (e.g. "Put your email in the payment note")
    payment_note: str = ""

    # ===========================================
    # LOGIN RATE LIMIT
    # ===========================================
    login_rate_limit_attempts: int = 10
    login_rate_limit_window_seconds: int = 900  # 15 min

    # ===========================================
    # INTERNAL SERVICES
    # ===========================================
    http_client_timeout: float = 10.0

    # ===========================================
    # CIRCUIT BREAKER
    # ===========================================
    cb_failure_threshold: int = 5
    cb_open_seconds: int = 30

    # ===========================================
    # LOGGING
    # ===========================================
    request_id_header: str = "X-Request-Id"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("allowed_document_extensions")
    @classmethod
    def parse_extensions(cls, v: str) -> str:
        """Validate extensions format."""
        # Store as comma-separated string, parse when needed
        return v.lower().strip()

    @property
    def allowed_extensions_set(self) -> set[str]:
        """Get allowed extensions as a set."""
        return {ext.strip() for ext in self.allowed_document_extensions.split(",") if ext.strip()}

    @property
    def trusted_proxy_ips_set(self) -> set[str]:
        """Get trusted proxy IPs as a set."""
        return {ip.strip() for ip in self.trusted_proxy_ips.split(",") if ip.strip()}

    @property
    def bootstrap_admin_emails_set(self) -> set[str]:
        return {e.strip().lower() for e in self.bootstrap_admin_emails.split(",") if e.strip()}

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        """Ensure token secret is reasonably secure."""
        if len(v) < 16:
            raise ValueError("jwt_secret_key must be at least 16 characters")
        if v in ("changeme", "secret", "password", "admin"):
            raise ValueError("jwt_secret_key is too weak, please change it")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
