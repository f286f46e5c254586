import secrets
import string
from dataclasses import dataclass, field

from db.store import RestaurantStore
from models.restaurant import Restaurant
from models.user import ROLE_RESTAURANT, Account
from utils.hash import hash_password
from utils.logger import get_logger

logger = get_logger("Credential_Service")

PASSWORD_CHARSET = string.ascii_letters + string.digits + "!@#$%^&*"


def generate_temporary_password(length: int = 12) -> str:
    return "".join(secrets.choice(PASSWORD_CHARSET) for _ in range(length))


@dataclass(frozen=True)
class IssuedCredentials:
    username: str
    temporary_password: str = field(repr=False)


class CredentialIssuer:
    """
    Creates the login for a restaurant being approved. Only the bcrypt hash is
    stored; the plaintext lives in the returned IssuedCredentials and nowhere else.
    """

    def __init__(self, store: RestaurantStore, password_length: int = 12):
        self.store = store
        self.password_length = password_length

    async def issue(self, restaurant: Restaurant) -> IssuedCredentials:
        username = restaurant.email.strip().lower()
        if not username:
            raise ValueError("Restaurant email is required for login")
        password = generate_temporary_password(self.password_length)
        account = await self.store.create_account(Account(
            username=username,
            password_hash=hash_password(password),
            role=ROLE_RESTAURANT,
            restaurant_id=restaurant.id,
            must_change_password=True,
        ))
        logger.info("Credentials issued", extra={"restaurant_id": restaurant.id, "username": account.username})
        # the store owns the canonical username
        return IssuedCredentials(username=account.username, temporary_password=password)

    async def revoke(self, credentials: IssuedCredentials) -> bool:
        removed = await self.store.delete_account(credentials.username)
        logger.info("Credentials revoked", extra={"username": credentials.username})
        return removed
