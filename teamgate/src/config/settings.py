"""
Application settings configuration for teamgate.

Centralized settings loaded from environment variables.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variables:
        URL: Public base URL of the product; Teams without a subdomain live here
        SECRET_KEY: Secret key for signing access tokens (JWT)
        ACCESS_TOKEN_EXPIRY_DAYS: Access token lifetime in days (default: 30)
        LOGO_SERVICE_URL: Logo lookup service, queried as {LOGO_SERVICE_URL}/{domain}
        AVATAR_SERVICE_URL: Generated avatar service
        LOGO_LOOKUP_TIMEOUT: Seconds allowed for the logo lookup (default: 3)
        AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY / AWS_REGION: S3 credentials
        AWS_S3_UPLOAD_BUCKET_URL: S3 (or compatible) endpoint URL
        AWS_S3_UPLOAD_BUCKET_NAME: Bucket that re-hosted avatars are written to
    """

    base_url: str = Field(default="http://localhost:3000", validation_alias="URL")

    secret_key: str = Field(
        default="",
        validation_alias="SECRET_KEY",
        description="Secret key for signing access tokens. Must be at least 32 bytes."
    )

    access_token_expiry_days: int = Field(
        default=30,
        validation_alias="ACCESS_TOKEN_EXPIRY_DAYS",
        ge=1,
        le=365,
    )

    # Avatar services
    logo_service_url: str = Field(
        default="https://logo.clearbit.com",
        validation_alias="LOGO_SERVICE_URL",
    )
    avatar_service_url: str = Field(
        default="https://tiley.herokuapp.com",
        validation_alias="AVATAR_SERVICE_URL",
    )
    logo_lookup_timeout: float = Field(
        default=3.0,
        validation_alias="LOGO_LOOKUP_TIMEOUT",
        gt=0,
    )

    # Durable storage for re-hosted avatars
    aws_access_key_id: Optional[str] = Field(default=None, validation_alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: Optional[str] = Field(default=None, validation_alias="AWS_SECRET_ACCESS_KEY")
    aws_region: str = Field(default="us-east-1", validation_alias="AWS_REGION")
    aws_s3_upload_bucket_url: str = Field(default="", validation_alias="AWS_S3_UPLOAD_BUCKET_URL")
    aws_s3_upload_bucket_name: str = Field(default="", validation_alias="AWS_S3_UPLOAD_BUCKET_NAME")

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Validate that the secret key is sufficiently long."""
        if v and len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters")
        return v

    @property
    def jwt_configured(self) -> bool:
        """Check if access tokens can be signed."""
        return bool(self.secret_key)

    @property
    def storage_configured(self) -> bool:
        """Check if avatar re-hosting to S3 is possible."""
        return bool(
            self.aws_access_key_id
            and self.aws_secret_access_key
            and self.aws_s3_upload_bucket_url
            and self.aws_s3_upload_bucket_name
        )

    @property
    def public_storage_endpoint(self) -> str:
        """
        Public URL prefix of uploaded objects.

        Avatars whose URL already starts with this prefix are not re-hosted.
        """
        return f"{self.aws_s3_upload_bucket_url.rstrip('/')}/{self.aws_s3_upload_bucket_name}"


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings instance.

    Returns:
        AppSettings: Configured application settings from environment
    """
    return AppSettings()
