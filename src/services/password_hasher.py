"""Password hashing with bcrypt."""

import bcrypt

# bcrypt only reads the first 72 bytes of the secret; recent releases raise
# ValueError past that instead of truncating.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """One-way hash and verify for account passwords."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    @staticmethod
    def is_too_long(password: str) -> bool:
        """Whether the UTF-8 encoding exceeds what bcrypt accepts."""
        return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password, at most MAX_PASSWORD_BYTES when
                UTF-8 encoded

        Returns:
            Bcrypt hash string

        Raises:
            ValueError: Password longer than MAX_PASSWORD_BYTES
        """
        if self.is_too_long(password):
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        A malformed stored hash, or a password too long to have been
        hashed, verifies as False rather than raising.
        """
        if self.is_too_long(password):
            return False
        try:
            return bcrypt.checkpw(
                password.encode("utf-8"),
                password_hash.encode("utf-8"),
            )
        except ValueError:
            return False
