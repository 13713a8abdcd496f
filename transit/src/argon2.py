from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

passwordHasher = PasswordHasher(encoding="utf-8")


def makePassword(password: str) -> str:
    """Hash a plain-text password with Argon2 before storing it in `account`."""
    return passwordHasher.hash(password)


def checkPassword(password: str, hashedPassword: str) -> bool:
    """
    Verify a sign-in password against the stored Argon2 hash.

    A malformed stored hash counts as a mismatch so a corrupted account row
    can never be signed into.

    Returns:
        bool: True if the password matches.
    """
    try:
        return passwordHasher.verify(hashedPassword, password)
    except (VerificationError, InvalidHashError):
        return False
