"""Encryption primitives for the local device protocol.

The handshake sends an RSA public key to the device, which answers with
32 random bytes encrypted to that key: the first 16 bytes are the AES key
and the next 16 the IV for the session.  Every later request and response
is compact json, AES-128-CBC encrypted with PKCS7 padding and base64
encoded.  The IV is fixed for the lifetime of a session so encryption is
deterministic.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import padding, serialization
from cryptography.hazmat.primitives.asymmetric import padding as asymmetric_padding
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .exceptions import (
    DecryptionError,
    KeyGenerationError,
    MalformedKeyMaterial,
    MalformedResponse,
)
from .json import dumps as json_dumps
from .json import loads as json_loads

_LOGGER = logging.getLogger(__name__)

SESSION_KEY_LENGTH = 16
SESSION_IV_LENGTH = 16


def encode_base64(data: bytes | str) -> str:
    """Return the base64 text for data, encoding str as utf-8."""
    if isinstance(data, str):
        data = data.encode()
    return base64.b64encode(data).decode()


def decode_base64(data: str | bytes) -> str:
    """Decode base64 data to utf-8 text."""
    return base64.b64decode(data).decode()


def hash_credential_identity(identity: str) -> bytes:
    """Return the sha1 hex digest of the login identity as ascii bytes."""
    return hashlib.sha1(identity.encode()).hexdigest().encode()  # noqa: S324


class KeyPair:
    """RSA key pair used for a single handshake."""

    @staticmethod
    def create_key_pair(key_size: int = 1024) -> KeyPair:
        """Create a key pair."""
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
        return KeyPair(private_key)

    def __init__(self, private_key: rsa.RSAPrivateKey) -> None:
        self.private_key = private_key
        self.public_key = private_key.public_key()
        self.public_key_der_b64 = encode_base64(
            self.public_key.public_bytes(
                encoding=serialization.Encoding.DER,
                format=serialization.PublicFormat.SubjectPublicKeyInfo,
            )
        )

    @property
    def public_key_pem(self) -> str:
        """Public key in the PEM layout expected by the device."""
        return (
            "-----BEGIN PUBLIC KEY-----\n"
            + self.public_key_der_b64
            + "\n-----END PUBLIC KEY-----\n"
        )

    def decrypt_handshake_key(self, encrypted_key: bytes) -> bytes:
        """Decrypt the handshake key blob."""
        return self.private_key.decrypt(encrypted_key, asymmetric_padding.PKCS1v15())


def generate_key_pair(key_size: int = 1024) -> KeyPair:
    """Generate a fresh key pair."""
    _LOGGER.debug("Generating %s bit keypair", key_size)
    try:
        return KeyPair.create_key_pair(key_size)
    except (UnsupportedAlgorithm, ValueError) as ex:
        raise KeyGenerationError(f"Unable to generate key pair: {ex}") from ex


@dataclass(frozen=True)
class SessionKey:
    """AES key and IV for one device session."""

    key: bytes = field(repr=False)
    iv: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if len(self.key) != SESSION_KEY_LENGTH or len(self.iv) != SESSION_IV_LENGTH:
            raise MalformedKeyMaterial(
                f"Session key and iv must be {SESSION_KEY_LENGTH} and "
                f"{SESSION_IV_LENGTH} bytes, got {len(self.key)} and {len(self.iv)}"
            )

    @classmethod
    def from_bytes(cls, key_and_iv: bytes) -> SessionKey:
        """Split 32 bytes into key and iv."""
        expected = SESSION_KEY_LENGTH + SESSION_IV_LENGTH
        if len(key_and_iv) != expected:
            raise MalformedKeyMaterial(
                f"Expected {expected} bytes of key material, got {len(key_and_iv)}"
            )
        return cls(key_and_iv[:SESSION_KEY_LENGTH], key_and_iv[SESSION_KEY_LENGTH:])

    def _cipher(self) -> Cipher:
        return Cipher(algorithms.AES(self.key), modes.CBC(self.iv))

    def encrypt(self, data: bytes) -> bytes:
        """Encrypt the message and return it base64 encoded."""
        encryptor = self._cipher().encryptor()
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded_data = padder.update(data) + padder.finalize()
        encrypted = encryptor.update(padded_data) + encryptor.finalize()
        return base64.b64encode(encrypted)

    def decrypt(self, data: str | bytes) -> bytes:
        """Decrypt a base64 encoded message."""
        try:
            raw = base64.b64decode(data, validate=True)
            decryptor = self._cipher().decryptor()
            decrypted = decryptor.update(raw) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            return unpadder.update(decrypted) + unpadder.finalize()
        except (binascii.Error, TypeError, ValueError) as ex:
            raise DecryptionError(f"Unable to decrypt envelope: {ex}") from ex


def derive_session_key(server_blob: str | bytes, key_pair: KeyPair) -> SessionKey:
    """Decrypt the handshake blob with the private key into a session key.

    ``server_blob`` is the base64 text returned by the device, or the raw
    encrypted bytes.
    """
    if not isinstance(server_blob, str | bytes):
        raise MalformedKeyMaterial(
            "Handshake key must be base64 text or bytes, "
            f"got {type(server_blob).__name__}"
        )
    try:
        if isinstance(server_blob, str):
            server_blob = base64.b64decode(server_blob, validate=True)
        key_and_iv = key_pair.decrypt_handshake_key(server_blob)
    except (binascii.Error, ValueError) as ex:
        raise MalformedKeyMaterial(f"Unable to decrypt handshake key: {ex}") from ex
    return SessionKey.from_bytes(key_and_iv)


def encrypt_envelope(payload: Any, session_key: SessionKey) -> str:
    """Serialize payload to json and encrypt it."""
    return session_key.encrypt(json_dumps(payload).encode()).decode()


def decrypt_envelope(ciphertext_b64: str | bytes, session_key: SessionKey) -> Any:
    """Decrypt an envelope and parse the json inside."""
    plaintext = session_key.decrypt(ciphertext_b64)
    try:
        return json_loads(plaintext)
    except ValueError as ex:
        raise MalformedResponse(f"Envelope did not contain valid json: {ex}") from ex
