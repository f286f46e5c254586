from datetime import datetime

from core.exceptions import AppError, ConflictError
from db.store import RestaurantStore
from models.user import ROLE_ADMIN, Account, TokenResponse
from utils.hash import hash_password, verify_password
from utils.jwt_handler import create_access_token
from utils.logger import get_logger

logger = get_logger("USER_SERVICE")


class InvalidCredentialsError(AppError):
    status_code = 401


class AccountService:
    def __init__(self, store: RestaurantStore):
        self.store = store

    async def login(self, username: str, password: str) -> TokenResponse:
        username = username.strip().lower()
        logger.info(f"Login attempt for: {username}")
        account = await self.store.get_account(username)
        if account is None:
            logger.warning(f"Login failed: account not found {username}")
            raise InvalidCredentialsError("Invalid credentials")
        if not verify_password(password, account.password_hash):
            logger.warning(f"Login failed: wrong password {username}")
            raise InvalidCredentialsError("Invalid credentials")

        token = create_access_token({
            "sub": account.username,
            "role": account.role,
            "restaurant_id": account.restaurant_id,
            "token_version": account.token_version,
        })
        logger.info(f"Login successful: {username}")
        return TokenResponse(
            access_token=token,
            role=account.role,
            restaurant_id=account.restaurant_id,
            must_change_password=account.must_change_password,
        )

    async def change_password(self, account: Account, current_password: str, new_password: str) -> Account:
        if not verify_password(current_password, account.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")
        if current_password == new_password:
            raise AppError("New password must differ from the current one")
        updated = await self.store.update_account(
            account.username,
            password_hash=hash_password(new_password),
            must_change_password=False,
            # existing tokens stop working
            token_version=account.token_version + 1,
        )
        logger.info(f"Password changed for {account.username}")
        return updated

    async def create_admin(self, username: str, password: str) -> Account:
        username = username.strip().lower()
        existing = await self.store.get_account(username)
        if existing is not None:
            raise ConflictError(f"Account {username} already exists")
        account = await self.store.create_account(Account(
            username=username,
            password_hash=hash_password(password),
            role=ROLE_ADMIN,
            created_at=datetime.utcnow(),
        ))
        logger.info(f"Admin account created: {username}")
        return account
