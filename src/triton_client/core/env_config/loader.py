"""
Configuration loader from environment variables and .env files.

Main entry point for loading configuration.
"""

from typing import Any, Dict, Optional

from ..config import CloudApiConfig, RetryConfig, TimeoutConfig
from ..logging.config import LoggingConfig
from ...utils.sanitizer import mask_secret
from .validator import TritonSettings

# Поля CloudApiConfig, которые можно переопределить напрямую
_DIRECT_FIELDS = (
    'url', 'account', 'key_id', 'key_path', 'key_content',
    'password', 'no_auth', 'verify_ssl',
)


def load_from_env(env_file: Optional[str] = None, **overrides: Any) -> CloudApiConfig:
    """
    Load CloudApiConfig from environment variables.

    Priority (highest to lowest):
    1. **overrides - explicit parameters
    2. Environment variables (TRITON_* / SDC_*)
    3. .env file
    4. Defaults

    Args:
        env_file: Custom .env file path (default: ./.env if present)
        **overrides: Explicit config overrides. Accepts CloudApiConfig field
            names plus `timeout`, `http_retries`, `log_level`, `log_format`

    Returns:
        CloudApiConfig instance

    Example:
        >>> config = load_from_env()
        >>> config = load_from_env(account="alice", no_auth=True)
    """
    if env_file is not None:
        settings = TritonSettings(_env_file=env_file)
    else:
        settings = TritonSettings()

    values: Dict[str, Any] = {name: overrides.get(name, getattr(settings, name)) for name in _DIRECT_FIELDS}

    read_timeout = overrides.get('timeout', settings.timeout)
    retries = overrides.get('http_retries', settings.http_retries)

    logging_config = None
    log_level = overrides.get('log_level', settings.log_level)
    if log_level:
        logging_config = LoggingConfig.create(
            level=log_level,
            format=overrides.get('log_format', settings.log_format),
        )

    return CloudApiConfig(
        timeout=TimeoutConfig(read=float(read_timeout)),
        retry=RetryConfig(max_retries=int(retries)),
        logging=logging_config,
        **values
    )


def config_summary(config: CloudApiConfig, mask_secrets: bool = True) -> Dict[str, Any]:
    """
    Configuration summary for debugging, with secrets masked.

    Example:
        >>> config_summary(load_from_env())['password']
        '<not set>'
    """
    def secret(value: Optional[str]) -> Optional[str]:
        if not mask_secrets:
            return value
        return mask_secret(value)

    summary: Dict[str, Any] = {
        'url': config.url,
        'account': config.account,
        'key_id': config.key_id,
        'key_path': config.key_path,
        'key_content': secret(config.key_content),
        'password': secret(config.password),
        'no_auth': config.no_auth,
        'verify_ssl': config.verify_ssl,
        'timeout': f"connect={config.timeout.connect}s, read={config.timeout.read}s",
        'max_retries': config.retry.max_retries,
    }

    if config.logging:
        summary['logging'] = f"level={config.logging.level.value}, format={config.logging.format.value}"

    return summary


def print_config_summary(config: CloudApiConfig, mask_secrets: bool = True):
    """
    Print configuration summary.

    Example:
        >>> print_config_summary(load_from_env())
        CloudApiConfig:
          url: https://us-east-1.api.joyent.com
          ...
    """
    print("CloudApiConfig:")
    for key, value in config_summary(config, mask_secrets=mask_secrets).items():
        print(f"  {key}: {value}")
