"""
Pydantic settings for environment configuration.

Both the TRITON_* names and the legacy SDC_* names are accepted;
the TRITON_* name wins when both are set.
"""

from typing import Optional, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..config import DEFAULT_CLOUDAPI_URL, DEFAULT_HTTP_RETRIES, DEFAULT_HTTP_TIMEOUT


class TritonSettings(BaseSettings):
    """
    CloudAPI client configuration from environment variables.

    Reads from:
    1. Environment variables
    2. .env file
    3. Defaults

    Example .env file:
        TRITON_URL=https://us-east-1.api.joyent.com
        TRITON_ACCOUNT=alice
        TRITON_KEY_ID=aa:bb:cc:dd:ee:ff:00:11:22:33:44:55:66:77:88:99
        TRITON_KEY_PATH=~/.ssh/id_rsa
        TRITON_TIMEOUT=20
        TRITON_HTTP_RETRIES=3
        TRITON_LOG_LEVEL=INFO

    Usage:
        >>> settings = TritonSettings()
        >>> settings.url
        'https://us-east-1.api.joyent.com'
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    url: str = Field(
        default=DEFAULT_CLOUDAPI_URL,
        validation_alias=AliasChoices('TRITON_URL', 'SDC_URL'),
    )
    account: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('TRITON_ACCOUNT', 'TRITON_USER', 'SDC_ACCOUNT', 'SDC_USER'),
    )
    key_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('TRITON_KEY_ID', 'SDC_KEY_ID'),
    )
    key_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('TRITON_KEY_PATH', 'SDC_KEY_PATH'),
    )
    key_content: Optional[str] = Field(default=None, validation_alias='TRITON_KEY_CONTENT')
    password: Optional[str] = Field(default=None, validation_alias='TRITON_PASSWORD')

    timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0, validation_alias='TRITON_TIMEOUT')
    http_retries: int = Field(default=DEFAULT_HTTP_RETRIES, ge=0, validation_alias='TRITON_HTTP_RETRIES')

    no_auth: bool = Field(default=False, validation_alias='TRITON_NO_AUTH')
    verify_ssl: bool = Field(default=True, validation_alias='TRITON_VERIFY_SSL')

    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = Field(
        default=None, validation_alias='TRITON_LOG_LEVEL'
    )
    log_format: Literal["json", "text"] = Field(default="text", validation_alias='TRITON_LOG_FORMAT')

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v: Optional[str]) -> Optional[str]:
        """Accept lower-case level names."""
        if isinstance(v, str):
            v = v.strip().upper()
            return v or None
        return v

    @field_validator('log_format', mode='before')
    @classmethod
    def normalize_log_format(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """URL must be http(s)."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError(f"CloudAPI URL must start with http:// or https://, got: {v}")
        return v.rstrip('/')
