import hashlib
import uuid


def generate_unique_hex_id() -> str:
    """Random 16 character hex id, usable as a caller-chosen content id."""
    return uuid.uuid4().hex[:16]


def generate_hash_from_string(input_string: str) -> str:
    """First 16 hex characters of the SHA-256 of ``input_string``."""
    return hashlib.sha256(input_string.encode("utf-8")).hexdigest()[:16]
