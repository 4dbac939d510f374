import secrets, string
from app.config import settings

# lowercase alphanumerics minus 0/o and 1/l
ALPHABET = "".join(c for c in string.ascii_lowercase + string.digits if c not in "0o1l")

def generate_invitation_token(length: int | None = None) -> str:
    n = length or settings.invitation_token_length
    return "".join(secrets.choice(ALPHABET) for _ in range(n))
