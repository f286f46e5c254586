from contextlib import contextmanager
from datetime import datetime
from typing import Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from core.exceptions import ConflictError, InvalidTransitionError, NotFoundError, TransportError
from models.admin import AuditItem
from models.menu import MenuItemCreate, MenuItemOut
from models.restaurant import DAYS_OF_WEEK, DayHours, Restaurant, RestaurantApplication, RestaurantStatus
from models.user import Account
from utils.logger import get_logger

logger = get_logger("DB_OPERATION")


class MongoConnection:
    def __init__(self, mongo_uri: str, db_name: str, client=None):
        logger.info("Initializing MongoDB Connection")
        self.client = client or AsyncIOMotorClient(mongo_uri)
        self.db = self.client[db_name]
        self.restaurants = self.db["restaurants"]
        self.restaurant_hours = self.db["restaurant_hours"]
        self.menu_items = self.db["menu_items"]
        self.accounts = self.db["accounts"]
        self.audit_logs = self.db["audit_logs"]
        self.counters = self.db["counters"]

    async def connect(self):
        try:
            # Force an actual connection & authentication check
            await self.db.command("ping")
            logger.info("Successfully connected to MongoDB and authenticated.")
            logger.info(f"Using Database: {self.db.name}")
        except Exception as e:
            logger.error(f"Could not connect to MongoDB: {e}")
            raise TransportError("Restaurant store is unreachable") from e

    async def create_indexes(self):
        await self.restaurants.create_index("status")
        await self.restaurants.create_index("email")
        await self.restaurant_hours.create_index("restaurant_id", unique=True)
        await self.menu_items.create_index("restaurant_id")
        await self.accounts.create_index("username", unique=True)
        await self.audit_logs.create_index("timestamp")
        logger.info("Indexes created")

    async def next_sequence(self, name: str) -> int:
        doc = await self.counters.find_one_and_update(
            {"_id": name},
            {"$inc": {"value": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["value"])


@contextmanager
def mongo_errors(action: str, restaurant_id: Optional[int] = None):
    """Turn driver failures into TransportError so callers get a 502 with a readable message."""
    try:
        yield
    except PyMongoError as e:
        logger.exception(f"DB error: {action}", extra={"restaurant_id": restaurant_id})
        raise TransportError(f"Restaurant store is unavailable, could not {action}; try again later") from e


def _restaurant_from_doc(doc: dict) -> Restaurant:
    fields = {k: v for k, v in doc.items() if k not in ("_id", "approval_acknowledged")}
    return Restaurant(id=doc["_id"], **fields)


def _item_from_doc(doc: dict) -> MenuItemOut:
    return MenuItemOut(id=doc["_id"], **{k: v for k, v in doc.items() if k != "_id"})


class MongoRestaurantStore:
    """
    Motor-backed store. Status changes use find_one_and_update filtered on the
    expected status so two writers cannot both win the same transition.
    """

    def __init__(self, conn: MongoConnection):
        self.conn = conn

    async def startup(self) -> None:
        await self.conn.connect()
        await self.conn.create_indexes()

    async def close(self) -> None:
        self.conn.client.close()

    async def create(self, application: RestaurantApplication) -> Restaurant:
        now = datetime.utcnow()
        with mongo_errors("store the application"):
            restaurant_id = await self.conn.next_sequence("restaurants")
        restaurant = Restaurant.from_application(restaurant_id, application, now)
        doc = restaurant.model_dump(exclude={"id", "application_id"})
        doc["_id"] = restaurant_id
        doc["status"] = restaurant.status.value
        doc["approval_acknowledged"] = False
        try:
            await self.conn.restaurant_hours.insert_one({
                "restaurant_id": restaurant_id,
                "hours": {d: h.model_dump() for d, h in application.operating_hours.items()},
            })
            for item in application.menu_items:
                await self._insert_item(restaurant_id, item, now)
            # restaurant document last: until it exists the application is invisible
            await self.conn.restaurants.insert_one(doc)
        except PyMongoError as e:
            logger.exception("DB error creating restaurant", extra={"restaurant_id": restaurant_id})
            await self._discard_partial(restaurant_id)
            raise TransportError("Could not store the application; nothing was saved, submit it again") from e
        logger.info(f"Restaurant {restaurant_id} created", extra={"restaurant_id": restaurant_id})
        return restaurant

    async def _discard_partial(self, restaurant_id: int):
        try:
            await self.conn.menu_items.delete_many({"restaurant_id": restaurant_id})
            await self.conn.restaurant_hours.delete_one({"restaurant_id": restaurant_id})
        except PyMongoError:
            # orphaned rows without a restaurant document are never read
            logger.exception(f"Could not clean up partial restaurant {restaurant_id}")

    async def get(self, restaurant_id: int) -> Optional[Restaurant]:
        with mongo_errors("load the restaurant", restaurant_id):
            doc = await self.conn.restaurants.find_one({"_id": restaurant_id})
        if not doc:
            return None
        return _restaurant_from_doc(doc)

    async def set_status(self, restaurant_id: int, status: RestaurantStatus, *, expected: RestaurantStatus) -> Restaurant:
        now = datetime.utcnow()
        update = {"status": status.value, "updated_at": now}
        if status == RestaurantStatus.APPROVED and expected == RestaurantStatus.PENDING:
            update["approved_at"] = now
        elif status == RestaurantStatus.PENDING and expected == RestaurantStatus.APPROVED:
            update["approved_at"] = None
        if status == RestaurantStatus.WITHDRAWAL_REQUESTED:
            update["withdrawal_requested_at"] = now
        elif expected == RestaurantStatus.WITHDRAWAL_REQUESTED:
            update["withdrawal_requested_at"] = None
        with mongo_errors("update the restaurant status", restaurant_id):
            doc = await self.conn.restaurants.find_one_and_update(
                {"_id": restaurant_id, "status": expected.value},
                {"$set": update},
                return_document=ReturnDocument.AFTER,
            )
            if doc is None:
                current = await self.conn.restaurants.find_one({"_id": restaurant_id}, {"status": 1})
        if doc is None:
            if current is None:
                raise NotFoundError(f"Restaurant with ID {restaurant_id} not found")
            raise InvalidTransitionError(
                f"Restaurant {restaurant_id} is {current['status']}, expected {expected.value}",
                restaurant_status=current["status"],
            )
        return _restaurant_from_doc(doc)

    async def list_by_status(self, *statuses: RestaurantStatus) -> List[Restaurant]:
        with mongo_errors("list restaurants"):
            cursor = self.conn.restaurants.find({"status": {"$in": [s.value for s in statuses]}}).sort("_id", 1)
            docs = await cursor.to_list(length=None)
        return [_restaurant_from_doc(d) for d in docs]

    async def list_all(self) -> List[Restaurant]:
        with mongo_errors("list restaurants"):
            docs = await self.conn.restaurants.find({}).sort("_id", 1).to_list(length=None)
        return [_restaurant_from_doc(d) for d in docs]

    async def acknowledge_approval(self, restaurant_id: int) -> bool:
        with mongo_errors("record the dashboard visit", restaurant_id):
            result = await self.conn.restaurants.update_one(
                {"_id": restaurant_id, "approval_acknowledged": {"$ne": True}},
                {"$set": {"approval_acknowledged": True}},
            )
            if result.matched_count == 0 and not await self.conn.restaurants.count_documents({"_id": restaurant_id}):
                raise NotFoundError(f"Restaurant with ID {restaurant_id} not found")
        return result.modified_count == 1

    async def get_hours(self, restaurant_id: int) -> Dict[str, DayHours]:
        with mongo_errors("load operating hours", restaurant_id):
            doc = await self.conn.restaurant_hours.find_one({"restaurant_id": restaurant_id})
        if not doc:
            return {}
        return {d: DayHours(**doc["hours"][d]) for d in DAYS_OF_WEEK if d in doc["hours"]}

    async def replace_hours(self, restaurant_id: int, hours: Dict[str, DayHours]) -> Dict[str, DayHours]:
        with mongo_errors("save operating hours", restaurant_id):
            await self.conn.restaurant_hours.update_one(
                {"restaurant_id": restaurant_id},
                {"$set": {"hours": {d: h.model_dump() for d, h in hours.items()}}},
                upsert=True,
            )
        return hours

    async def _insert_item(self, restaurant_id: int, item: MenuItemCreate, now: datetime) -> MenuItemOut:
        item_id = await self.conn.next_sequence("menu_items")
        doc = {"_id": item_id, "restaurant_id": restaurant_id, "created_at": now, "updated_at": now, **item.model_dump()}
        await self.conn.menu_items.insert_one(doc)
        return _item_from_doc(doc)

    async def get_menu(self, restaurant_id: int, only_available: bool = False) -> List[MenuItemOut]:
        q = {"restaurant_id": restaurant_id}
        if only_available:
            q["is_available"] = True
        with mongo_errors("load the menu", restaurant_id):
            docs = await self.conn.menu_items.find(q).sort("_id", 1).to_list(length=None)
        return [_item_from_doc(d) for d in docs]

    async def add_menu_item(self, restaurant_id: int, item: MenuItemCreate) -> MenuItemOut:
        with mongo_errors("add the menu item", restaurant_id):
            return await self._insert_item(restaurant_id, item, datetime.utcnow())

    async def update_menu_item(self, restaurant_id: int, item_id: int, changes: dict) -> MenuItemOut:
        with mongo_errors("update the menu item", restaurant_id):
            doc = await self.conn.menu_items.find_one_and_update(
                {"_id": item_id, "restaurant_id": restaurant_id},
                {"$set": {**changes, "updated_at": datetime.utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            raise NotFoundError("Menu item not found")
        return _item_from_doc(doc)

    async def create_account(self, account: Account) -> Account:
        stored = account.model_copy(update={"created_at": account.created_at or datetime.utcnow()})
        try:
            await self.conn.accounts.insert_one(stored.model_dump())
        except DuplicateKeyError:
            raise ConflictError(f"Account {account.username} already exists")
        except PyMongoError as e:
            logger.exception("DB error creating account", extra={"restaurant_id": account.restaurant_id})
            raise TransportError("Restaurant store is unavailable, could not create the account; try again later") from e
        return stored

    async def get_account(self, username: str) -> Optional[Account]:
        with mongo_errors("load the account"):
            doc = await self.conn.accounts.find_one({"username": username}, {"_id": 0})
        return Account(**doc) if doc else None

    async def delete_account(self, username: str) -> bool:
        with mongo_errors("remove the account"):
            result = await self.conn.accounts.delete_one({"username": username})
        return result.deleted_count == 1

    async def update_account(self, username: str, **changes) -> Account:
        with mongo_errors("update the account"):
            doc = await self.conn.accounts.find_one_and_update(
                {"username": username},
                {"$set": changes},
                projection={"_id": 0},
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            raise NotFoundError("Account not found")
        return Account(**doc)

    async def add_audit(self, entry: dict) -> None:
        doc = {**entry, "timestamp": entry.get("timestamp") or datetime.utcnow()}
        with mongo_errors("write the audit entry"):
            await self.conn.audit_logs.insert_one(doc)

    async def list_audit(self, skip: int = 0, limit: int = 50) -> List[AuditItem]:
        with mongo_errors("list audit entries"):
            cursor = self.conn.audit_logs.find({}).sort("timestamp", -1).skip(skip).limit(limit)
            items = await cursor.to_list(length=limit)
        return [AuditItem(id=str(a["_id"]), **{k: v for k, v in a.items() if k != "_id"}) for a in items]
