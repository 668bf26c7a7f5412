# models.py
from sqlalchemy import Column, Integer, String, Float, Boolean, Text, DateTime
from database import Base

# List-valued fields (items, images, permissions, attachments) are stored as JSON strings.


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    name = Column(String)
    role = Column(String, default="admin")
    permissions = Column(Text, default='["all"]')
    last_login = Column(DateTime)
    created_at = Column(DateTime, nullable=False)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    category = Column(String, index=True)
    price = Column(Float, nullable=False)
    original_price = Column(Float)
    description = Column(Text, default="")
    short_description = Column(Text, default="")
    stock = Column(Integer, default=0)
    rating = Column(Float, default=0.0)
    reviews = Column(Integer, default=0)
    is_featured = Column(Boolean, default=False)
    is_new_arrival = Column(Boolean, default=False)
    is_used = Column(Boolean, default=False)
    images = Column(Text, default="[]")
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime)


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, unique=True, index=True, nullable=False)
    items = Column(Text, default="[]")
    total = Column(Float, default=0.0)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, default="guest")
    items = Column(Text, nullable=False)
    total_price = Column(Float, nullable=False)
    discount_amount = Column(Float, default=0.0)
    final_price = Column(Float, nullable=False)
    coupon_code = Column(String)
    shipping_address = Column(Text)
    customer_name = Column(String)
    customer_email = Column(String)
    customer_phone = Column(String)
    payment_method = Column(String, nullable=False)
    status = Column(String, default="Pending")
    tracking_number = Column(String, index=True)
    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime)


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(String, index=True, nullable=False)
    sender_id = Column(String, nullable=False)
    sender_name = Column(String)
    recipient_id = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False)
    read_at = Column(DateTime)
    attachments = Column(Text, default="[]")
    timestamp = Column(DateTime, nullable=False, index=True)


class ContactSubmission(Base):
    __tablename__ = "contact_submissions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String)
    subject = Column(String, default="General Inquiry")
    message = Column(Text, nullable=False)
    status = Column(String, default="new")
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime)
