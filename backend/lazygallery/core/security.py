import secrets

from passlib.context import CryptContext

SHARE_SLUG_BYTES = 12

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        return False

def generate_share_slug() -> str:
    # 12 random bytes, URL-safe base64 without padding
    return secrets.token_urlsafe(SHARE_SLUG_BYTES)
