"""
PIN hashing and verification.
"""

import bcrypt

from atm.core.config import settings

PLACEHOLDER_PIN = "000000"


class CredentialService:
    """
    Salted, slow one-way hashing of PINs with bcrypt.

    Callers validate the PIN format first; this class hashes whatever string
    it is given.
    """

    def __init__(self, rounds: int = None):
        self.rounds = rounds if rounds is not None else settings.BCRYPT_ROUNDS
        self._placeholder_hash = None

    def hash(self, pin: str) -> str:
        # A fresh salt per call: equal PINs never share a hash
        return bcrypt.hashpw(pin.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("ascii")

    def verify(self, pin: str, pin_hash: str) -> bool:
        return bcrypt.checkpw(pin.encode("utf-8"), pin_hash.encode("ascii"))

    def verify_placeholder(self) -> None:
        """Spend one verification's worth of time when there is no hash to check."""
        if self._placeholder_hash is None:
            self._placeholder_hash = self.hash(PLACEHOLDER_PIN)
        self.verify(PLACEHOLDER_PIN, self._placeholder_hash)
