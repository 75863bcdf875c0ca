import base64
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

# Wire contract: changing any of these makes stored envelopes unreadable
KDF_ITERATIONS = 100_000
KEY_LENGTH = 32
SALT_LENGTH = 64
NONCE_LENGTH = 16
TAG_LENGTH = 16

HEADER_LENGTH = SALT_LENGTH + NONCE_LENGTH + TAG_LENGTH


class TamperOrWrongKey(ValueError):
    """Envelope could not be opened: corrupt, tampered or wrong token pair"""


# ---------- KEY DERIVATION ----------

def derive_key(sender_token: str, recipient_token: str, salt: bytes) -> bytes:
    """
    PBKDF2-SHA512(sender ∥ recipient, salt) → 32-byte AES-256 key.
    Order matters: (a, b) and (b, a) give different keys.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA512(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive((sender_token + recipient_token).encode("utf-8"))


# ---------- ENCRYPTION ----------

def seal(plaintext: bytes, sender_token: str, recipient_token: str) -> str:
    """
    AES-256-GCM → base64(salt (64) + nonce (16) + tag (16) + ciphertext)
    """
    salt = os.urandom(SALT_LENGTH)
    nonce = os.urandom(NONCE_LENGTH)
    key = derive_key(sender_token, recipient_token, salt)

    # AESGCM appends the tag; the envelope carries it in front of the ciphertext
    sealed = AESGCM(key).encrypt(nonce, plaintext, None)
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]

    return base64.b64encode(salt + nonce + tag + ciphertext).decode("ascii")


def unseal(envelope: str, sender_token: str, recipient_token: str) -> bytes:
    """
    Open an envelope produced by seal() with the same token order.
    Raises TamperOrWrongKey for every failure.
    """
    try:
        raw = base64.b64decode(envelope, validate=True)
    except (ValueError, TypeError) as exc:
        raise TamperOrWrongKey("envelope is not valid base64") from exc

    if len(raw) < HEADER_LENGTH:
        raise TamperOrWrongKey("envelope too short")

    salt = raw[:SALT_LENGTH]
    nonce = raw[SALT_LENGTH:SALT_LENGTH + NONCE_LENGTH]
    tag = raw[SALT_LENGTH + NONCE_LENGTH:HEADER_LENGTH]
    ciphertext = raw[HEADER_LENGTH:]

    key = derive_key(sender_token, recipient_token, salt)
    try:
        return AESGCM(key).decrypt(nonce, ciphertext + tag, None)
    except InvalidTag as exc:
        raise TamperOrWrongKey("authentication failed") from exc
