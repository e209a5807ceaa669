"""
Environment configuration for the CloudAPI client.

Example:
    >>> from triton_client.core.env_config import load_from_env
    >>>
    >>> config = load_from_env()
    >>> config = load_from_env(env_file="triton.env", account="alice")
"""

from .loader import load_from_env, config_summary, print_config_summary
from .validator import TritonSettings
from ...utils.sanitizer import mask_secret

__all__ = [
    "load_from_env",
    "config_summary",
    "print_config_summary",
    "TritonSettings",
    "mask_secret",
]
