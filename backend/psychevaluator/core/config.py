"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "PsycheValuator API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:9002",
    ]

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Security
    # IMPORTANT: These MUST be set in .env file - no defaults for security
    SECRET_KEY: str = Field(..., description="Application secret key (required)")
    JWT_SECRET_KEY: str = Field(..., description="JWT signing secret key (required)")
    JWT_ALGORITHM: str = "HS256"
    ADMIN_SESSION_EXPIRE_MINUTES: int = Field(
        default=240,
        gt=0,
        description="Lifetime of an admin session token in minutes",
    )

    # Admin
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD_HASH: str = Field(
        default="",
        description="Bcrypt-hashed admin password. Admin login is refused while empty. "
        "Generate with: python -c \"import bcrypt; print(bcrypt.hashpw(b'your_password', bcrypt.gensalt()).decode())\"",
    )
    ADMIN_UI_ENABLED: bool = False  # Mount the read-only sqladmin browser at /admin

    # Analysis collaborator (Google Generative AI)
    GOOGLE_API_KEY: str = Field(
        default="",
        repr=False,
        description="Google Generative AI API key (leave empty to disable AI analysis)",
    )
    ANALYSIS_MODEL: str = "gemini-1.5-flash"
    ANALYSIS_TEMPERATURE: float = Field(default=0.7, ge=0.0, le=2.0)
    ANALYSIS_MAX_TOKENS: int = Field(default=2048, gt=0)
    ANALYSIS_TIMEOUT_SECONDS: float = Field(
        default=60.0,
        gt=0,
        description="Upper bound on a single analysis call",
    )
    ANALYSIS_CLAIM_TIMEOUT_SECONDS: int = Field(
        default=300,
        gt=0,
        description="Seconds after which an unfinished analysis claim may be re-taken",
    )

    # Test player countdown
    DEFAULT_QUESTION_SECONDS: int = Field(default=15, gt=0)
    OPEN_ENDED_QUESTION_SECONDS: int = Field(default=30, gt=0)

    # Notifications
    # "log" keeps delivery simulated (message is logged and returned),
    # "smtp" sends the same message through the SMTP settings below.
    NOTIFICATION_CHANNEL: Literal["log", "smtp"] = "log"
    SMTP_HOST: str = Field(
        default="smtp.gmail.com",
        description="SMTP server hostname",
    )
    SMTP_PORT: int = Field(
        default=587,
        description="SMTP server port (587 for TLS, 465 for SSL)",
    )
    SMTP_USERNAME: str = Field(
        default="",
        description="SMTP authentication username",
    )
    SMTP_PASSWORD: str = Field(
        default="",
        repr=False,
        description="SMTP authentication password",
    )
    SMTP_FROM_EMAIL: str = Field(
        default="noreply@psychevaluator.app",
        description="Email address to send from",
    )
    SMTP_FROM_NAME: str = Field(
        default="PsycheValuator",
        description="Display name for sent emails",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_admin_config(self) -> Self:
        """Production deployments must be able to authenticate an admin."""
        if self.ENV == "production" and not self.ADMIN_PASSWORD_HASH:
            raise ValueError(
                "ADMIN_PASSWORD_HASH must be set in production. "
                'Generate with: python -c "import bcrypt; '
                "print(bcrypt.hashpw(b'your_password', bcrypt.gensalt()).decode())\""
            )
        return self

    @model_validator(mode="after")
    def validate_notification_channel(self) -> Self:
        """SMTP delivery needs a complete SMTP configuration."""
        if self.NOTIFICATION_CHANNEL == "smtp":
            missing = [
                name
                for name in ("SMTP_HOST", "SMTP_USERNAME", "SMTP_PASSWORD")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(
                    f"NOTIFICATION_CHANNEL=smtp requires {', '.join(missing)} to be set"
                )
        return self


# mypy doesn't understand that pydantic_settings loads required fields from env vars
settings = Settings()  # type: ignore[call-arg]
