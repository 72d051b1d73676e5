"""Random password generation and a rough strength score."""
import secrets

from .exceptions import InvalidInput

UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
DIGITS = "0123456789"
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

LOOKALIKES = frozenset("Ol01|")

MIN_LENGTH = 4
MAX_LENGTH = 128


def build_charset(
    uppercase: bool = True,
    lowercase: bool = True,
    digits: bool = True,
    symbols: bool = True,
    exclude_lookalikes: bool = True,
) -> str:
    """Concatenate the selected character classes."""
    charset = ""
    if uppercase:
        charset += UPPERCASE
    if lowercase:
        charset += LOWERCASE
    if digits:
        charset += DIGITS
    if symbols:
        charset += SYMBOLS
    if exclude_lookalikes:
        charset = "".join(c for c in charset if c not in LOOKALIKES)
    return charset


def generate_password(
    length: int = 12,
    uppercase: bool = True,
    lowercase: bool = True,
    digits: bool = True,
    symbols: bool = True,
    exclude_lookalikes: bool = True,
) -> str:
    """Generate a random password from the selected character classes.

    Raises:
        InvalidInput: If no class is selected or length is out of range.
    """
    if not MIN_LENGTH <= length <= MAX_LENGTH:
        raise InvalidInput(
            f"Password length must be between {MIN_LENGTH} and {MAX_LENGTH}"
        )
    charset = build_charset(uppercase, lowercase, digits, symbols, exclude_lookalikes)
    if not charset:
        raise InvalidInput("Select at least one character type")
    return "".join(secrets.choice(charset) for _ in range(length))


def password_strength(length: int, classes: int) -> int:
    """Score from 0 to 100: two points per character, 15 per class."""
    return min(100, length * 2 + classes * 15)


def strength_label(score: int) -> str:
    if score < 30:
        return "Weak"
    if score < 60:
        return "Fair"
    if score < 80:
        return "Good"
    return "Strong"
