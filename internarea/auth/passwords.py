"""
InternArea - Generated passwords for the forgot-password flow.

Rules:
    - Length 8 to 12
    - At least one uppercase and one lowercase letter
    - Letters only: no digits, no special characters
"""
import secrets
import string

MIN_LENGTH = 8
MAX_LENGTH = 12

_rng = secrets.SystemRandom()


def generate_password() -> str:
    """Generate a random letters-only password."""
    length = _rng.randint(MIN_LENGTH, MAX_LENGTH)

    chars = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
    ]
    alphabet = string.ascii_letters
    while len(chars) < length:
        chars.append(secrets.choice(alphabet))

    _rng.shuffle(chars)
    return "".join(chars)
