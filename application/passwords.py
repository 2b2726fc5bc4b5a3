from __future__ import annotations

import hashlib
import hmac


class PasswordHasher:
    """
    Unsalted single-round SHA-256 over the UTF-8 encoded password.

    Stored digests are lowercase hex strings (64 characters). The output is
    deterministic so existing stored hashes stay comparable.
    """

    def digest(self, password: str) -> bytes:
        return hashlib.sha256(password.encode("utf-8")).digest()

    def hash(self, password: str) -> str:
        return self.digest(password).hex()

    def verify(self, password: str, stored_hash: str) -> bool:
        """Re-hash `password` and compare against `stored_hash` in constant time."""

        try:
            expected = bytes.fromhex(stored_hash or "")
        except ValueError:
            return False
        return hmac.compare_digest(self.digest(password), expected)
