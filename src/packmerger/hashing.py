"""Deterministic SHA-1 hashing for merged artifacts.

Clients verify a downloaded pack against a 20-byte SHA-1 digest, so the
content hash of a merged archive is SHA-1 rather than a stronger digest.
The hex form doubles as the change-detection key between merges.
"""

import hashlib
from pathlib import Path

CHUNK_SIZE = 8192
DIGEST_SIZE = 20


def sha1_file(file_path: Path) -> str:
    """Compute the SHA-1 of a file's bytes.

    Args:
        file_path: Path to the file to hash

    Returns:
        40-character lowercase hex string

    Raises:
        FileNotFoundError: If the file does not exist
        PermissionError: If the file cannot be read
        OSError: If another I/O error occurs while reading
    """
    hasher = hashlib.sha1()
    try:
        with open(file_path, "rb") as f:
            while chunk := f.read(CHUNK_SIZE):
                hasher.update(chunk)
    except FileNotFoundError as e:
        raise FileNotFoundError(f"File not found: {file_path}") from e
    except PermissionError as e:
        raise PermissionError(f"Permission denied reading file: {file_path}") from e
    except OSError as e:
        raise OSError(f"I/O error reading file: {file_path}") from e

    return hasher.hexdigest()


def digest_bytes(hex_digest: str) -> bytes:
    """Convert a hex SHA-1 digest into the raw 20-byte form.

    Raises:
        ValueError: If ``hex_digest`` is not a 40-character hex string
    """
    raw = bytes.fromhex(hex_digest)
    if len(raw) != DIGEST_SIZE:
        raise ValueError(f"Expected a {DIGEST_SIZE}-byte digest, got {len(raw)} bytes")
    return raw
