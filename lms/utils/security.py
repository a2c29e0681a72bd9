import uuid
from passlib.context import CryptContext

# pbkdf2_sha256: sin dependencias binarias (bcrypt) y sin el límite de 72 bytes.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # hash con formato desconocido
        return False


def new_session_token() -> str:
    return uuid.uuid4().hex


def bearer_token(authorization: str | None) -> str | None:
    """Extrae el token de un header 'Authorization: Bearer <token>'."""
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None
