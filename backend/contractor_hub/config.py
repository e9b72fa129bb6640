# backend/contractor_hub/config.py
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    app_version: str = "2026-10.v1"
    database_url: str = "sqlite:///./contractor_hub.db"

    # ---- Logging ----
    log_level: str = "INFO"
    sql_log_level: str = "WARNING"
    httpx_log_level: str = "WARNING"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Auth / tenancy ----
    auth_mode: str = "dev"  # dev|jwt
    dev_auto_provision: bool = True

    # Dev header names
    dev_header_tenant_slug: str = "X-Tenant-Slug"
    dev_header_user_email: str = "X-User-Email"
    dev_header_user_role: str = "X-User-Role"

    jwt_secret: str = "dev-change-me"
    jwt_exp_minutes: int = 60 * 24  # 1 day
    pbkdf2_iterations: int = 210_000

    password_reset_expiry_minutes: int = 60
    two_factor_issuer: str = "Contractor Hub"

    # ---- Frontend links (password reset, customer portal) ----
    frontend_base_url: str = "http://localhost:3000"

    # ---- Documents ----
    document_storage_dir: str = "./storage/documents"

    # ---- Stripe ----
    stripe_secret_key: str | None = None
    stripe_base_url: str = "https://api.stripe.com/v1"

    # ---- Celery ----
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"
    portal_lock_interval_seconds: int = 60 * 60

    # ---- Tenant settings defaults ----
    default_markup_percentage: float = 30.0
    default_tax_rate_percentage: float = 8.25
    default_deposit_percentage: float = 50.0
    default_quote_validity_days: int = 30
    default_portal_duration_days: int = 14
    default_portal_link_expiry_days: int = 7
    default_portal_link_max_expiry_days: int = 30
    default_portal_auto_cleanup_days: int = 30

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        if is_prod:
            if (self.auth_mode or "").strip().lower() == "dev":
                raise ValueError("SECURITY: auth_mode=dev is not allowed in prod")
            if self.jwt_secret == "dev-change-me":
                raise ValueError("SECURITY: jwt_secret must be set in prod")

            origins = self.cors_allow_origins
            if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
                raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")


settings = Settings()
