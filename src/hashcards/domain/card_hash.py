"""
Content hashing for card identity.

A CardHash is the stable key of a card in the performance store, so its hex
form must round-trip exactly across process restarts.
"""

import hashlib
import re
from dataclasses import dataclass

from hashcards.domain.errors import DecodeError

DIGEST_SIZE = 32
_HEX_RE = re.compile(r"[0-9a-fA-F]{64}")


@dataclass(frozen=True, order=True)
class CardHash:
    """Fixed-size digest. Ordering compares the raw bytes."""

    digest: bytes

    @classmethod
    def hash_bytes(cls, data: bytes) -> "CardHash":
        hasher = Hasher()
        hasher.update(data)
        return hasher.finalize()

    @classmethod
    def from_hex(cls, text: str) -> "CardHash":
        if not _HEX_RE.fullmatch(text):
            raise DecodeError(f"invalid card hash: {text!r}")
        return cls(bytes.fromhex(text))

    def to_hex(self) -> str:
        return self.digest.hex()

    def __str__(self) -> str:
        return self.to_hex()


class Hasher:
    """Incremental form of CardHash.hash_bytes: update N times, finalize once."""

    def __init__(self) -> None:
        self._inner = hashlib.blake2b(digest_size=DIGEST_SIZE)

    def update(self, data: bytes) -> None:
        self._inner.update(data)

    def finalize(self) -> CardHash:
        return CardHash(self._inner.digest())
