from passlib.context import CryptContext

from core.config import settings

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72

_pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=4 if settings.TESTING else 12,
)


def _truncate(password: str) -> str:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES].decode("utf-8", "ignore")


def hash_password(password: str) -> str:
    return _pwd_context.hash(_truncate(password))


def verify_password(password: str, password_hash: str) -> bool:
    return _pwd_context.verify(_truncate(password), password_hash)


def needs_rehash(password_hash: str) -> bool:
    return _pwd_context.needs_update(password_hash)
