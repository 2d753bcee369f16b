"""
Secret Store Crypto — key derivation and authenticated encryption of entries.

Each stored secret is sealed with a key derived from a versioned master key:
    HKDF(MASTER_KEY_vN, "tenant-session-vN") → AES-GCM → [key_id|nonce|payload]

The entry name is bound as associated data, so a ciphertext copied under
another name fails to decrypt.

Security Note:
    Never log plaintext or ciphertext values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import os
import struct
import logging

from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger("tenant_session.storage")

NONCE_SIZE = 12  # 96-bit nonce
KEY_ID_SIZE = 2  # uint16 big-endian
KEY_LENGTH = 32  # AES-256
TAG_SIZE = 16


def derive_key(seed: bytes, context: str) -> bytes:
    """Derive a 32-byte encryption key using HKDF-SHA256.

    Args:
        seed: Input key material (master key bytes).
        context: Context string for domain separation.

    Returns:
        32-byte derived key.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=None,  # deterministic per key version
        info=context.encode("utf-8"),
    )
    return hkdf.derive(seed)


def _context(key_id: int) -> str:
    return f"tenant-session-v{key_id}"


def key_version(ciphertext: bytes) -> int:
    """Return the master key version embedded in ``ciphertext``."""
    if len(ciphertext) < KEY_ID_SIZE:
        raise ValueError("ciphertext too short to carry a key version")
    return struct.unpack("!H", ciphertext[:KEY_ID_SIZE])[0]


def encrypt(plaintext: bytes, key_id: int, master_key: bytes, name: str) -> bytes:
    """Encrypt a secret entry with an embedded key version.

    Format: [key_id 2B uint16 BE][nonce 12B][encrypted_payload + tag]

    Args:
        plaintext: Data to encrypt.
        key_id: Master key version identifier.
        master_key: Raw 32-byte master key for this version.
        name: Entry name, bound as associated data.

    Returns:
        Ciphertext bytes with key_id prefix.
    """
    derived = derive_key(master_key, _context(key_id))
    cipher = AESGCM(derived)
    nonce = os.urandom(NONCE_SIZE)
    ct = cipher.encrypt(nonce, plaintext, name.encode("utf-8"))
    return struct.pack("!H", key_id) + nonce + ct


def decrypt(ciphertext: bytes, master_keys: dict[int, bytes], name: str) -> bytes:
    """Decrypt a secret entry using its embedded key version.

    Args:
        ciphertext: Ciphertext in format [key_id 2B][nonce 12B][payload+tag].
        master_keys: Mapping of key_id → raw 32-byte master key.
        name: Entry name the ciphertext was sealed under.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        ValueError: If the ciphertext is truncated.
        KeyError: If the key_id extracted from ciphertext is not in master_keys.
        cryptography.exceptions.InvalidTag: If authentication fails.
    """
    _min = KEY_ID_SIZE + NONCE_SIZE + TAG_SIZE
    if len(ciphertext) < _min:
        raise ValueError(
            f"ciphertext too short: {len(ciphertext)} bytes (minimum {_min})"
        )
    key_id = key_version(ciphertext)
    if key_id not in master_keys:
        raise KeyError(
            f"Master key version {key_id} not found in provided keys"
        )
    derived = derive_key(master_keys[key_id], _context(key_id))
    cipher = AESGCM(derived)
    nonce = ciphertext[KEY_ID_SIZE:KEY_ID_SIZE + NONCE_SIZE]
    ct = ciphertext[KEY_ID_SIZE + NONCE_SIZE:]
    return cipher.decrypt(nonce, ct, name.encode("utf-8"))
