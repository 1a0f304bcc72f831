"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        database_url: SQLAlchemy connection string
        secret_key: Symmetric key used to sign session tokens
        algorithm: Signing algorithm for session tokens (HS256)
        access_token_expire_minutes: Session token lifetime in minutes
        single_use_token_expire_hours: Lifetime of verification and reset tokens

        # Email settings
        mail_enabled: Send real emails; when False links are only logged
        mail_username: SMTP server username
        mail_password: SMTP server password
        mail_from: Sender email address
        mail_port: SMTP server port
        mail_server: SMTP server hostname
        mail_starttls: Whether to use STARTTLS
        mail_ssl_tls: Whether to use SSL/TLS
        use_credentials: Whether to use credentials for SMTP
        validate_certs: Whether to validate certificates

        # Frontend settings
        patient_frontend_url: Base URL of the patient portal
        doctor_frontend_url: Base URL of the doctor portal
        cors_origins: Origins allowed by the CORS middleware

        # Bootstrap admin settings (optional)
        bootstrap_admin_email: Optional admin email for first admin creation
        bootstrap_admin_password: Optional admin password for first admin creation
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database settings
    database_url: str = "sqlite:///./healthapp.db"

    # Session token settings
    secret_key: str = "change-this-in-production-minimum-32-characters-long"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24 hours

    # Verification / reset token settings
    single_use_token_expire_hours: int = 24

    # Email settings
    mail_enabled: bool = False
    mail_username: str = ""
    mail_password: str = ""
    mail_from: str = "noreply@healthapp.com"
    mail_port: int = 587
    mail_server: str = ""
    mail_starttls: bool = True
    mail_ssl_tls: bool = False
    use_credentials: bool = True
    validate_certs: bool = True

    # Frontend settings
    patient_frontend_url: str = "http://localhost:3000"
    doctor_frontend_url: str = "http://localhost:3001"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:3001"]

    # Bootstrap admin settings (optional - only used for first admin creation)
    bootstrap_admin_email: Optional[str] = None
    bootstrap_admin_password: Optional[str] = None

    # Logging
    log_level: str = "INFO"


# Create settings instance
settings = Settings()
