# scripts/seed_admin.py
import asyncio
import os

from core.exceptions import ConflictError
from db.store import build_store
from services.user_service import AccountService
from settings.config import settings

async def seed():
    store = build_store(settings)
    await store.startup()
    admin_username = os.getenv("ADMIN_USERNAME", "admin@frontdash.com")
    admin_password = os.getenv("ADMIN_PASSWORD", "Admin@123")
    try:
        account = await AccountService(store).create_admin(admin_username, admin_password)
        print("Created admin:", account.username)
    except ConflictError:
        print("Admin already exists")
    finally:
        await store.close()

if __name__ == "__main__":
    asyncio.run(seed())
