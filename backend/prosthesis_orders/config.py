"""
Prosthesis Orders Backend — Application Configuration
======================================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
       Missing required values stop the process before it serves traffic.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the app factory, the store lifecycle and the mail factory.
When:  Loaded once at module import time; `validate_required()` runs in the
       application lifespan before any resource is opened.

Design Decision:
    There is no fallback delete PIN. A service that deletes patient orders
    must not start with a guessable default secret, so DELETE_PIN is
    mandatory and checked together with the credentials of the selected
    mail provider.
"""

from typing import List

from fastapi import Request
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from prosthesis_orders.exceptions import ConfigurationError


EMAILJS_DEFAULT_API_URL = "https://api.emailjs.com/api/v1.0/email/send"

MAIL_PROVIDERS = {"emailjs", "smtp"}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern for readability. Required values have
    empty defaults so that importing this module never fails; they are
    enforced by `validate_required()` at startup.
    """

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)

    # What: Controls verbosity of application logging
    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs, or "*" for any origin
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Delete Authorization ──────────────────────────────────────────────
    # What: Shared secret every DELETE request must present in its body
    # Required: YES, checked by validate_required()
    delete_pin: str = Field(default="", description="Shared secret for DELETE requests")

    # ── Document Store (Firestore) ────────────────────────────────────────
    # What: Service-account JSON downloaded from the Firebase console
    firebase_credentials_path: str = Field(default="serviceAccountKey.json")

    # What: Firestore collection holding the orders; also the route segment
    store_collection: str = Field(default="protesis", min_length=1)

    # What: Field used for the default (descending) ordering of the list
    store_order_field: str = Field(default="fecha_pedido", min_length=1)

    # What: Attempts for the startup connectivity probe before giving up
    store_connect_attempts: int = Field(default=3, ge=1, le=10)
    store_connect_max_wait: int = Field(default=8, ge=1, le=60)

    # ── Mail ──────────────────────────────────────────────────────────────
    # What: Which delivery strategy sends the creation notification
    # Options: emailjs (relay service), smtp (direct SMTP relay)
    mail_provider: str = Field(default="emailjs")

    @field_validator("mail_provider")
    @classmethod
    def validate_mail_provider(cls, v: str) -> str:
        lower = v.strip().lower()
        if lower not in MAIL_PROVIDERS:
            raise ValueError(f"Invalid mail_provider '{v}'. Must be one of: {MAIL_PROVIDERS}")
        return lower

    mail_timeout: float = Field(default=10.0, gt=0, le=120)
    mail_subject: str = Field(default="Nuevo pedido de prótesis")

    # EmailJS relay: https://www.emailjs.com/docs/rest-api/send/
    emailjs_service_id: str = Field(default="")
    emailjs_template_id: str = Field(default="")
    emailjs_public_key: str = Field(default="")
    emailjs_private_key: str = Field(default="")
    emailjs_api_url: str = Field(default=EMAILJS_DEFAULT_API_URL)

    # SMTP relay
    smtp_host: str = Field(default="")
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_user: str = Field(default="")
    smtp_password: str = Field(default="")
    smtp_use_tls: bool = Field(default=True)
    mail_from: str = Field(default="")
    mail_to: str = Field(default="")

    @property
    def mail_sender(self) -> str:
        """Explicit MAIL_FROM, falling back to the SMTP login."""
        return self.mail_from or self.smtp_user

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # DELETE_PIN and delete_pin both work
        "extra": "ignore",
    }

    def validate_required(self) -> None:
        """
        What:  Validates that every mandatory setting is configured.
        When:  Called first thing in the application lifespan.
        How:   Collects all problems and raises a single ConfigurationError,
               so one restart is enough to see everything that is missing.
        """
        errors = []
        if not self.delete_pin:
            errors.append("DELETE_PIN is not set. Deletions require a shared secret.")

        if self.mail_provider == "emailjs":
            for name in ("emailjs_service_id", "emailjs_template_id", "emailjs_public_key"):
                if not getattr(self, name):
                    errors.append(f"{name.upper()} is required when MAIL_PROVIDER=emailjs")
        elif self.mail_provider == "smtp":
            if not self.smtp_host:
                errors.append("SMTP_HOST is required when MAIL_PROVIDER=smtp")
            if not self.mail_to:
                errors.append("MAIL_TO is required when MAIL_PROVIDER=smtp")
            if not self.mail_sender:
                errors.append("MAIL_FROM (or SMTP_USER) is required when MAIL_PROVIDER=smtp")

        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors),
                context={"missing": len(errors)},
            )


# Singleton instance, imported throughout the application
settings = Settings()


def get_settings(request: Request) -> Settings:
    """FastAPI dependency returning the settings the app was created with."""
    return request.app.state.settings
