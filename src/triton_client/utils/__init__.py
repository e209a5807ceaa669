"""Utility modules for the CloudAPI client."""

from .sanitizer import (
    mask_sensitive_data,
    sanitize_headers,
    mask_secret,
)

__all__ = [
    'mask_sensitive_data',
    'sanitize_headers',
    'mask_secret',
]
