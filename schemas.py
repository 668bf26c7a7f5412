# schemas.py
from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime


def sanitize_text(value):
    """Strip angle brackets and encode quote/ampersand characters."""
    if not isinstance(value, str):
        return value
    return (
        value.replace("<", "")
        .replace(">", "")
        .replace("&", "&amp;")
        .replace('"', "&quot;")
        .replace("'", "&#x27;")
        .strip()
    )


class CamelModel(BaseModel):
    """Bodies speak camelCase on the wire; snake_case is accepted as well."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class Envelope(CamelModel):
    success: bool = True
    message: Optional[str] = None


# ========== AUTHENTICATION SCHEMAS ==========
class AdminLogin(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class AdminRegister(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class AdminProfile(CamelModel):
    id: int
    email: str
    name: Optional[str] = None
    role: str = "admin"
    permissions: List[str] = ["all"]
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class LoginResponse(Envelope):
    token: str
    refresh_token: str
    token_type: str = "bearer"
    admin: AdminProfile


class AdminResponse(Envelope):
    admin: AdminProfile


class RefreshResponse(Envelope):
    token: str
    token_type: str = "bearer"


# ========== PRODUCT SCHEMAS ==========
class ProductBase(CamelModel):
    name: str = Field(min_length=3, max_length=100)
    category: str = Field(min_length=1)
    price: float = Field(ge=0)
    original_price: Optional[float] = Field(default=None, ge=0)
    description: str = Field(min_length=10)
    short_description: str = ""
    stock: int = Field(ge=0)
    rating: float = 0.0
    reviews: int = 0
    is_featured: bool = False
    is_new_arrival: bool = False
    is_used: bool = False
    images: List[str] = []

    @field_validator("name", "category", "description", "short_description")
    @classmethod
    def clean(cls, v):
        return sanitize_text(v)


class ProductCreate(ProductBase):
    pass


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    category: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    original_price: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = Field(default=None, min_length=10)
    short_description: Optional[str] = None
    stock: Optional[int] = Field(default=None, ge=0)
    rating: Optional[float] = None
    reviews: Optional[int] = None
    is_featured: Optional[bool] = None
    is_new_arrival: Optional[bool] = None
    is_used: Optional[bool] = None
    images: Optional[List[str]] = None

    @field_validator("name", "category", "description", "short_description")
    @classmethod
    def clean(cls, v):
        return sanitize_text(v)


class Product(ProductBase):
    id: int
    # stored values were validated on the way in
    description: str = ""
    stock: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductResponse(Envelope):
    product: Product


class ProductListResponse(Envelope):
    count: int
    products: List[Product]


class CategoryProductsResponse(ProductListResponse):
    category: str


class CategoriesResponse(Envelope):
    categories: List[str]


# ========== CART SCHEMAS ==========
class CartLine(CamelModel):
    product_id: str
    name: Optional[str] = None
    price: float = 0.0
    quantity: int


class Cart(CamelModel):
    user_id: Optional[str] = None
    items: List[CartLine] = []
    total: float = 0.0
    version: int = 0
    updated_at: Optional[datetime] = None


class CartAdd(CamelModel):
    user_id: Optional[str] = None
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    product_name: Optional[str] = None
    price: float = Field(default=0.0, ge=0)
    image: Optional[str] = None


class CartRemove(CamelModel):
    user_id: Optional[str] = None
    product_id: str = Field(min_length=1)


class CartUpdate(CamelModel):
    user_id: Optional[str] = None
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)


class CartResponse(Envelope):
    cart: Cart


# ========== ORDER SCHEMAS ==========
class OrderItem(CamelModel):
    product_id: str
    name: Optional[str] = None
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)


class OrderCreate(CamelModel):
    user_id: Optional[str] = None
    items: Optional[List[OrderItem]] = None
    total_price: Optional[float] = Field(default=None, ge=0)
    discount_amount: Optional[float] = Field(default=None, ge=0)
    coupon_code: Optional[str] = None
    shipping_address: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    payment_method: Optional[str] = None

    @field_validator("shipping_address")
    @classmethod
    def clean_address(cls, v):
        return sanitize_text(v)


class OrderStatusUpdate(CamelModel):
    status: str


class Order(CamelModel):
    id: int
    user_id: str = "guest"
    items: List[OrderItem]
    total_price: float
    discount_amount: float = 0.0
    final_price: float
    coupon_code: Optional[str] = None
    shipping_address: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    payment_method: str
    status: str
    tracking_number: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class SideEffectResult(CamelModel):
    name: str
    status: str
    error: Optional[str] = None


class OrderCreatedResponse(Envelope):
    order_id: int
    order: Order
    side_effects: List[SideEffectResult] = []


class OrderResponse(Envelope):
    order: Order


class OrderListResponse(Envelope):
    total: int
    orders: List[Order]


# ========== CHAT SCHEMAS ==========
class MessageCreate(CamelModel):
    conversation_id: Optional[str] = None
    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    recipient_id: str = Field(min_length=1)
    message: str = Field(min_length=1)
    attachments: List[str] = []


class ChatMessage(CamelModel):
    id: int
    conversation_id: str
    sender_id: str
    sender_name: Optional[str] = None
    recipient_id: str
    message: str
    is_read: bool = False
    read_at: Optional[datetime] = None
    attachments: List[str] = []
    timestamp: datetime


class MessageSentResponse(Envelope):
    message_id: int
    conversation_id: str


class ConversationResponse(Envelope):
    conversation_id: str
    message_count: int
    messages: List[ChatMessage]


class ConversationSummary(CamelModel):
    conversation_id: str
    customer_id: str
    customer_name: Optional[str] = None
    last_message: str
    last_message_time: datetime
    unread_count: int
    messages: List[ChatMessage]


class ConversationListResponse(Envelope):
    count: int
    conversations: List[ConversationSummary]


# ========== CONTACT SCHEMAS ==========
class ContactCreate(CamelModel):
    name: str = Field(min_length=2)
    email: EmailStr
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: str = Field(min_length=10)

    @field_validator("name", "subject", "message")
    @classmethod
    def clean(cls, v):
        return sanitize_text(v)


class ContactStatusUpdate(CamelModel):
    status: str = Field(min_length=1)


class ContactSubmission(CamelModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class ContactCreatedResponse(Envelope):
    contact_id: int


class ContactListResponse(Envelope):
    count: int
    contacts: List[ContactSubmission]


# ========== UPLOAD SCHEMAS ==========
class UploadResponse(Envelope):
    image_url: str
    file_name: str


class UploadDelete(CamelModel):
    file_name: str = Field(min_length=1)
