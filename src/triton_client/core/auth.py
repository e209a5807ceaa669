"""
HTTP Signature authentication for CloudAPI.

Every request is signed up front: the `Date` header is added and
signed with the account's private key, so the server never has to
send a 401 challenge first.

    Authorization: Signature keyId="/<account>/keys/<key id>",
                   algorithm="rsa-sha256",headers="date",signature="<base64>"
"""

import base64
import logging
from email.utils import formatdate
from pathlib import Path
from typing import Optional, Union

import requests
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PrivateKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey]

_EC_HASHES = {
    256: (hashes.SHA256, "ecdsa-sha256"),
    384: (hashes.SHA384, "ecdsa-sha384"),
    521: (hashes.SHA512, "ecdsa-sha512"),
}


def load_private_key(
    key_content: Optional[Union[str, bytes]] = None,
    key_path: Optional[str] = None,
    password: Optional[str] = None
) -> PrivateKey:
    """
    Load an RSA or EC private key from PEM/OpenSSH content or a file.

    `key_content` wins over `key_path` when both are given.

    Raises:
        ConfigurationError: no key given, unreadable file, bad password or
            unsupported key type
    """
    if key_content:
        data = key_content.encode('utf-8') if isinstance(key_content, str) else key_content
        source = "key content"
    elif key_path:
        path = Path(key_path).expanduser()
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ConfigurationError(f"Unable to read private key from {path}", cause=e) from e
        source = str(path)
    else:
        raise ConfigurationError("Either key content or key path must be configured")

    passphrase = password.encode('utf-8') if password else None

    try:
        if b"OPENSSH PRIVATE KEY" in data:
            key = serialization.load_ssh_private_key(data, password=passphrase)
        else:
            key = serialization.load_pem_private_key(data, password=passphrase)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Unable to load private key from {source}", cause=e) from e

    if not isinstance(key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        raise ConfigurationError(
            f"Unsupported private key type: {type(key).__name__}. Use an RSA or ECDSA key"
        )

    return key


class HttpSignatureAuth(requests.auth.AuthBase):
    """
    Signs outgoing requests with the HTTP Signature scheme.

    Args:
        account: Account name (first path segment)
        key_id: Key fingerprint registered in CloudAPI
        private_key: Loaded RSA or EC private key

    Examples:
        >>> key = load_private_key(key_path="~/.ssh/id_rsa")
        >>> session.auth = HttpSignatureAuth("alice", "aa:bb:cc", key)
    """

    def __init__(self, account: str, key_id: str, private_key: PrivateKey):
        if not account:
            raise ConfigurationError("Account must be present for request signing")
        if not key_id:
            raise ConfigurationError("Key id must be present for request signing")

        self.account = account
        self.key_id = key_id
        self._private_key = private_key

        if isinstance(private_key, rsa.RSAPrivateKey):
            self.algorithm = "rsa-sha256"
        else:
            curve_size = private_key.curve.key_size
            if curve_size not in _EC_HASHES:
                raise ConfigurationError(f"Unsupported EC curve: {private_key.curve.name}")
            self.algorithm = _EC_HASHES[curve_size][1]

    @property
    def key_path(self) -> str:
        """Value of the keyId signature parameter."""
        return f"/{self.account}/keys/{self.key_id}"

    def sign(self, data: bytes) -> bytes:
        if isinstance(self._private_key, rsa.RSAPrivateKey):
            return self._private_key.sign(data, padding.PKCS1v15(), hashes.SHA256())

        hash_cls = _EC_HASHES[self._private_key.curve.key_size][0]
        return self._private_key.sign(data, ec.ECDSA(hash_cls()))

    def authorization_header(self, date: str) -> str:
        """Build the Authorization header value for a given Date header."""
        signing_string = f"date: {date}".encode('utf-8')
        signature = base64.b64encode(self.sign(signing_string)).decode('ascii')
        return (
            f'Signature keyId="{self.key_path}",'
            f'algorithm="{self.algorithm}",'
            f'headers="date",'
            f'signature="{signature}"'
        )

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        date = request.headers.get('Date')
        if not date:
            date = formatdate(usegmt=True)
            request.headers['Date'] = date

        request.headers['Authorization'] = self.authorization_header(date)
        return request

    def __repr__(self) -> str:
        return f"HttpSignatureAuth(key_id={self.key_path!r}, algorithm={self.algorithm!r})"
