from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from models.user import Account
from services.container import ServiceContainer
from utils.jwt_handler import decode_access_token
from utils.logger import get_logger

logger = get_logger("Dependencies")

# tells fastapi to expect a token in the request header after login
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


async def get_current_user(token: str = Depends(oauth2_scheme),
                           container: ServiceContainer = Depends(get_container)) -> Account:
    """
    Decode token, load the account from the store and ensure token_version matches.
    """
    try:
        payload = decode_access_token(token)
    except ValueError:
        logger.error("JWT Error: Invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )
    username = payload.get("sub")  # sub carries the account username
    if username is None:
        logger.debug("Username not found in token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: no username found"
        )
    account = await container.store.get_account(username)
    if account is None:
        logger.warning(f"Account not found for username: {username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account not found"
        )
    if account.token_version != payload.get("token_version"):
        logger.warning(f"Token version mismatch for account: {username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked"
        )
    return account
