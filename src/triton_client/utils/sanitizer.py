# src/triton_client/utils/sanitizer.py
"""
Утилита для маскирования чувствительных данных в логах и контексте ошибок.

Защищает подписи HTTP Signature, пароли к ключам и содержимое
приватных ключей от попадания в логи.
"""

import re
from typing import Any, Dict, Mapping, Optional

DEFAULT_MASK = "***REDACTED***"

# Список чувствительных полей (case-insensitive, частичное совпадение)
SENSITIVE_KEYS = {
    'password', 'passwd', 'passphrase',
    'key_content', 'private_key', 'secret',
    'token', 'authorization', 'signature',
    'cookie', 'credentials',
}

# Заголовки, значения которых маскируются целиком
SENSITIVE_HEADERS = {
    'authorization',
    'proxy-authorization',
    'cookie',
    'set-cookie',
    'x-auth-token',
}

SENSITIVE_PATTERNS = [
    # signature="..." внутри заголовка Authorization
    (re.compile(r'(signature=")([^"]+)(")', re.IGNORECASE), r'\1***REDACTED***\3'),
    # PEM блоки приватных ключей
    (re.compile(r'-----BEGIN [A-Z ]*PRIVATE KEY-----.*?-----END [A-Z ]*PRIVATE KEY-----', re.DOTALL),
     DEFAULT_MASK),
    # password=value
    (re.compile(r'(password[\s:=]+)([^\s&,;]+)', re.IGNORECASE), r'\1***REDACTED***'),
]


def _is_sensitive_key(key: str) -> bool:
    key = key.lower()
    return any(sensitive in key for sensitive in SENSITIVE_KEYS)


def _mask_string(text: str) -> str:
    result = text
    for pattern, replacement in SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def mask_sensitive_data(data: Any, mask: str = DEFAULT_MASK) -> Any:
    """
    Рекурсивно маскирует чувствительные данные в словарях, списках, строках.

    Args:
        data: Данные для маскирования
        mask: Строка-заменитель

    Returns:
        Копия данных с замаскированными чувствительными полями

    Examples:
        >>> mask_sensitive_data({"account": "alice", "password": "secret"})
        {'account': 'alice', 'password': '***REDACTED***'}
    """
    if data is None or isinstance(data, (bool, int, float)):
        return data

    if isinstance(data, str):
        return _mask_string(data)

    if isinstance(data, Mapping):
        result = {}
        for key, value in data.items():
            if _is_sensitive_key(str(key)):
                result[key] = mask
            else:
                result[key] = mask_sensitive_data(value, mask)
        return result

    if isinstance(data, (list, tuple)):
        return type(data)(mask_sensitive_data(item, mask) for item in data)

    return data


def sanitize_headers(
    headers: Optional[Mapping[str, str]],
    mask: str = DEFAULT_MASK
) -> Dict[str, str]:
    """
    Mask sensitive headers for safe logging.

    Examples:
        >>> sanitize_headers({'Authorization': 'Signature keyId="/a/keys/b"'})
        {'Authorization': '***REDACTED***'}
    """
    if not headers:
        return {}

    return {
        key: mask if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


def mask_secret(value: Optional[str], visible_chars: int = 4) -> str:
    """
    Замаскировать секрет, оставив последние символы.

    Examples:
        >>> mask_secret("supersecretpassword")
        '***word'
        >>> mask_secret(None)
        '<not set>'
    """
    if not value:
        return "<not set>"
    if len(value) <= visible_chars:
        return "***"
    return "***" + value[-visible_chars:]
