from datetime import datetime, timedelta
from jose import JWTError, jwt
from settings.config import settings
from utils.logger import get_logger

logger = get_logger("JWT_HANDLER")

def create_access_token(data: dict, expires_minutes: int | None = None):
    """
    Creates JWT token with expiry.
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "iat": datetime.utcnow()})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    logger.info(f"Access token created for {data.get('sub')} with expiry {expire}")
    return encoded_jwt

def decode_access_token(token: str) -> dict:
    """
    Decode JWT token and return payload.
    Raises ValueError if invalid or expired.
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        raise ValueError("Invalid token") from e
