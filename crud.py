# crud.py
import json
import logging
from datetime import datetime
from typing import Optional, List

from databases import Database
from sqlalchemy import select, update, delete, func, or_

import models
import schemas
from errors import AlreadyExists, Conflict, InvalidCredentials, NotFound
from security import get_password_hash, verify_password

logger = logging.getLogger(__name__)

admins = models.AdminUser.__table__
products = models.Product.__table__
carts = models.Cart.__table__
orders = models.Order.__table__
messages = models.Message.__table__
contacts = models.ContactSubmission.__table__

CART_WRITE_ATTEMPTS = 3


def _loads(value, default=None):
    if value is None or value == "":
        return [] if default is None else default
    if isinstance(value, (list, dict)):
        return value
    return json.loads(value)


def _row(record) -> Optional[dict]:
    return dict(record._mapping) if record is not None else None


# ========== ADMIN CRUD ==========
def _admin_profile(row) -> Optional[dict]:
    admin = _row(row)
    if admin is None:
        return None
    admin.pop("hashed_password", None)
    admin["permissions"] = _loads(admin.get("permissions"), ["all"])
    return admin


async def get_admin_by_email(db: Database, email: str) -> Optional[dict]:
    """Raw admin row including the password hash; internal use only."""
    query = select(admins).where(admins.c.email == email.strip().lower())
    return _row(await db.fetch_one(query))


async def get_admin_user(db: Database, admin_id: int) -> Optional[dict]:
    query = select(admins).where(admins.c.id == admin_id)
    return _admin_profile(await db.fetch_one(query))


async def authenticate_admin(db: Database, email: str, password: str) -> dict:
    """Return the admin profile, or raise the same error for any mismatch."""
    admin = await get_admin_by_email(db, email)
    if not admin or not verify_password(password, admin.get("hashed_password", "")):
        raise InvalidCredentials()
    return await get_admin_user(db, admin["id"])


async def create_admin_user(db: Database, email: str, password: str, name: str, role: str = "admin") -> dict:
    email = email.strip().lower()
    if await get_admin_by_email(db, email):
        raise AlreadyExists("Admin already exists")

    query = admins.insert().values(
        email=email,
        hashed_password=get_password_hash(password),
        name=name,
        role=role,
        permissions=json.dumps(["all"]),
        last_login=None,
        created_at=datetime.utcnow(),
    )
    admin_id = await db.execute(query)
    return await get_admin_user(db, admin_id)


async def update_admin_last_login(db: Database, admin_id: int):
    query = update(admins).where(admins.c.id == admin_id).values(last_login=datetime.utcnow())
    await db.execute(query)


async def delete_admin_user(db: Database, admin_id: int) -> bool:
    if not await get_admin_user(db, admin_id):
        return False
    await db.execute(delete(admins).where(admins.c.id == admin_id))
    return True


# ========== PRODUCT CRUD ==========
def _product(row) -> Optional[dict]:
    product = _row(row)
    if product is None:
        return None
    product["images"] = _loads(product.get("images"))
    return product


async def get_products(
    db: Database,
    category: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    search: Optional[str] = None,
    featured: bool = False,
    new_arrival: bool = False,
    used: bool = False,
) -> List[dict]:
    query = select(products)
    if category and category.lower() != "all":
        query = query.where(func.lower(products.c.category) == category.lower())
    if featured:
        query = query.where(products.c.is_featured == True)
    if new_arrival:
        query = query.where(products.c.is_new_arrival == True)
    if used:
        query = query.where(products.c.is_used == True)
    if min_price is not None:
        query = query.where(products.c.price >= min_price)
    if max_price is not None:
        query = query.where(products.c.price <= max_price)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(
            or_(
                func.lower(products.c.name).like(pattern),
                func.lower(products.c.category).like(pattern),
                func.lower(products.c.description).like(pattern),
            )
        )
    query = query.order_by(products.c.created_at.desc(), products.c.id.desc())
    return [_product(row) for row in await db.fetch_all(query)]


async def get_product(db: Database, product_id: int) -> Optional[dict]:
    query = select(products).where(products.c.id == product_id)
    return _product(await db.fetch_one(query))


async def get_categories(db: Database) -> List[str]:
    query = select(products.c.category).distinct()
    rows = await db.fetch_all(query)
    return sorted({row._mapping["category"] for row in rows if row._mapping["category"]})


async def create_product(db: Database, product: schemas.ProductCreate) -> dict:
    data = product.model_dump()
    if data.get("original_price") is None:
        data["original_price"] = data["price"]
    data["images"] = json.dumps(data.get("images") or [])
    now = datetime.utcnow()
    query = products.insert().values(**data, created_at=now, updated_at=now)
    product_id = await db.execute(query)
    return await get_product(db, product_id)


async def update_product(db: Database, product_id: int, product_update: schemas.ProductUpdate) -> Optional[dict]:
    if not await get_product(db, product_id):
        return None

    update_data = product_update.model_dump(exclude_unset=True)
    if "images" in update_data:
        update_data["images"] = json.dumps(update_data["images"] or [])
    update_data["updated_at"] = datetime.utcnow()

    query = update(products).where(products.c.id == product_id).values(**update_data)
    await db.execute(query)
    return await get_product(db, product_id)


async def delete_product(db: Database, product_id: int) -> Optional[dict]:
    """Delete and return the removed product, or None when it did not exist."""
    product = await get_product(db, product_id)
    if not product:
        return None
    await db.execute(delete(products).where(products.c.id == product_id))
    return product


async def count_products(db: Database) -> int:
    return await db.fetch_val(select(func.count()).select_from(products)) or 0


# ========== CART CRUD ==========
def _cart(row, user_id: str = None) -> dict:
    cart = _row(row)
    if cart is None:
        return {"user_id": user_id, "items": [], "total": 0.0, "version": 0, "updated_at": None}
    cart["items"] = _loads(cart.get("items"))
    return cart


def cart_total(items: List[dict]) -> float:
    return sum(float(item["price"]) * int(item["quantity"]) for item in items)


async def get_cart(db: Database, user_id: str) -> dict:
    query = select(carts).where(carts.c.user_id == user_id)
    return _cart(await db.fetch_one(query), user_id)


async def _write_cart(db: Database, user_id: str, items: List[dict], expected_version: int) -> Optional[dict]:
    """Persist a cart only if nobody changed it since ``expected_version`` was read.

    Returns the stored row, or None when the version check failed.
    """
    now = datetime.utcnow()
    total = cart_total(items)

    if expected_version == 0:
        query = carts.insert().values(
            user_id=user_id, items=json.dumps(items), total=total, version=1, updated_at=now
        )
        try:
            await db.execute(query)
        except Exception:
            # another writer created the cart first; report a stale read
            if (await get_cart(db, user_id))["version"] == 0:
                raise
            return None
        return await get_cart(db, user_id)

    query = (
        update(carts)
        .where(carts.c.user_id == user_id)
        .where(carts.c.version == expected_version)
        .values(items=json.dumps(items), total=total, version=expected_version + 1, updated_at=now)
        .returning(carts.c.id)
    )
    if await db.fetch_one(query) is None:
        return None
    return await get_cart(db, user_id)


async def mutate_cart(db: Database, user_id: str, change) -> dict:
    """Apply ``change(items) -> items`` as an optimistic read-modify-write.

    ``change`` works on a copy of the line items and may raise to abort.
    Retries on a concurrent write, then gives up with ``Conflict``.
    """
    for attempt in range(1, CART_WRITE_ATTEMPTS + 1):
        cart = await get_cart(db, user_id)
        items = change([dict(item) for item in cart["items"]])
        stored = await _write_cart(db, user_id, items, cart["version"])
        if stored is not None:
            return stored
        logger.warning(f"⚠️ Cart {user_id} changed concurrently (attempt {attempt}/{CART_WRITE_ATTEMPTS})")
    raise Conflict("Cart was modified concurrently, please retry")


async def add_to_cart(db: Database, user_id: str, product_id: str, quantity: int, name: str = None, price: float = 0.0) -> dict:
    def change(items):
        for item in items:
            if str(item["product_id"]) == str(product_id):
                item["quantity"] = int(item["quantity"]) + int(quantity)
                return items
        items.append({"product_id": str(product_id), "name": name, "price": float(price), "quantity": int(quantity)})
        return items

    return await mutate_cart(db, user_id, change)


async def remove_from_cart(db: Database, user_id: str, product_id: str) -> dict:
    cart = await get_cart(db, user_id)
    if cart["version"] == 0:
        raise NotFound("Cart not found")

    def change(items):
        return [item for item in items if str(item["product_id"]) != str(product_id)]

    return await mutate_cart(db, user_id, change)


async def update_cart_item(db: Database, user_id: str, product_id: str, quantity: int) -> dict:
    cart = await get_cart(db, user_id)
    if cart["version"] == 0:
        raise NotFound("Cart not found")

    def change(items):
        for item in items:
            if str(item["product_id"]) == str(product_id):
                item["quantity"] = int(quantity)
                return items
        raise NotFound("Product not in cart")

    return await mutate_cart(db, user_id, change)


async def clear_cart(db: Database, user_id: str) -> dict:
    return await mutate_cart(db, user_id, lambda items: [])


# ========== ORDER CRUD ==========
def _order(row) -> Optional[dict]:
    order = _row(row)
    if order is None:
        return None
    order["items"] = _loads(order.get("items"))
    order["discount_amount"] = order.get("discount_amount") or 0.0
    order["user_id"] = order.get("user_id") or "guest"
    return order


async def insert_order(db: Database, order_data: dict) -> dict:
    data = dict(order_data)
    data["items"] = json.dumps(data["items"])
    order_id = await db.execute(orders.insert().values(**data))
    return await get_order_by_id(db, order_id)


async def get_order_by_id(db: Database, order_id: int) -> Optional[dict]:
    query = select(orders).where(orders.c.id == order_id)
    return _order(await db.fetch_one(query))


async def get_orders(db: Database, user_id: Optional[str] = None) -> List[dict]:
    query = select(orders)
    if user_id is not None:
        query = query.where(orders.c.user_id == user_id)
    query = query.order_by(orders.c.created_at.desc(), orders.c.id.desc())
    return [_order(row) for row in await db.fetch_all(query)]


async def count_orders(db: Database) -> int:
    return await db.fetch_val(select(func.count()).select_from(orders)) or 0


async def set_order_status(db: Database, order_id: int, status: str) -> Optional[dict]:
    query = update(orders).where(orders.c.id == order_id).values(status=status, updated_at=datetime.utcnow())
    await db.execute(query)
    return await get_order_by_id(db, order_id)


# ========== MESSAGE CRUD ==========
def _message(row) -> Optional[dict]:
    message = _row(row)
    if message is None:
        return None
    message["attachments"] = _loads(message.get("attachments"))
    message["is_read"] = bool(message.get("is_read"))
    return message


async def create_message(db: Database, message: schemas.MessageCreate) -> dict:
    conversation_id = message.conversation_id or f"{message.sender_id}-{message.recipient_id}"
    query = messages.insert().values(
        conversation_id=conversation_id,
        sender_id=message.sender_id,
        sender_name=message.sender_name or "Customer",
        recipient_id=message.recipient_id,
        message=message.message,
        is_read=False,
        read_at=None,
        attachments=json.dumps(message.attachments or []),
        timestamp=datetime.utcnow(),
    )
    message_id = await db.execute(query)
    return await get_message(db, message_id)


async def get_message(db: Database, message_id: int) -> Optional[dict]:
    query = select(messages).where(messages.c.id == message_id)
    return _message(await db.fetch_one(query))


async def get_conversation(db: Database, conversation_id: str) -> List[dict]:
    query = (
        select(messages)
        .where(messages.c.conversation_id == conversation_id)
        .order_by(messages.c.timestamp.asc(), messages.c.id.asc())
    )
    return [_message(row) for row in await db.fetch_all(query)]


async def get_all_messages(db: Database) -> List[dict]:
    query = select(messages).order_by(messages.c.timestamp.desc(), messages.c.id.desc())
    return [_message(row) for row in await db.fetch_all(query)]


async def mark_message_read(db: Database, message_id: int) -> Optional[dict]:
    if not await get_message(db, message_id):
        return None
    query = update(messages).where(messages.c.id == message_id).values(is_read=True, read_at=datetime.utcnow())
    await db.execute(query)
    return await get_message(db, message_id)


async def delete_message(db: Database, message_id: int) -> bool:
    if not await get_message(db, message_id):
        return False
    await db.execute(delete(messages).where(messages.c.id == message_id))
    return True


# ========== CONTACT CRUD ==========
async def create_contact(db: Database, contact: schemas.ContactCreate) -> dict:
    now = datetime.utcnow()
    query = contacts.insert().values(
        name=contact.name,
        email=contact.email,
        phone=contact.phone,
        subject=contact.subject or "General Inquiry",
        message=contact.message,
        status="new",
        created_at=now,
        updated_at=now,
    )
    contact_id = await db.execute(query)
    return await get_contact(db, contact_id)


async def get_contact(db: Database, contact_id: int) -> Optional[dict]:
    query = select(contacts).where(contacts.c.id == contact_id)
    return _row(await db.fetch_one(query))


async def get_contacts(db: Database) -> List[dict]:
    query = select(contacts).order_by(contacts.c.created_at.desc(), contacts.c.id.desc())
    return [_row(row) for row in await db.fetch_all(query)]


async def update_contact_status(db: Database, contact_id: int, status: str) -> Optional[dict]:
    if not await get_contact(db, contact_id):
        return None
    query = update(contacts).where(contacts.c.id == contact_id).values(status=status, updated_at=datetime.utcnow())
    await db.execute(query)
    return await get_contact(db, contact_id)
