# app/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    PlainSerializer,
    StringConstraints,
)
from pydantic.alias_generators import to_camel

# Decimal columns go out as JSON numbers, not strings
Money = Annotated[Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
EntityId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=36)]

OrderStatus = Literal["pending", "shipped", "delivered"]
PaymentMethod = Literal["credit_card", "mpesa"]
Role = Literal["user", "admin"]


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; accepts both on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageOut(CamelModel):
    message: str


class CountOut(CamelModel):
    message: str
    count: int


# ---------------------------------------------------------------- auth / users


class RegisterIn(CamelModel):
    firstname: str = Field(..., min_length=3, max_length=100, description="Please enter valid name.")
    lastname: str = Field(..., min_length=3, max_length=100, description="Please enter valid name.")
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class LoginIn(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserCreate(RegisterIn):
    phone_no: Optional[str] = None
    role: Role = "user"


class UserUpdate(CamelModel):
    firstname: str = Field(..., min_length=3, max_length=100)
    lastname: str = Field(..., min_length=3, max_length=100)
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    phone_no: Optional[str] = None
    avatar: Optional[str] = None
    role: Optional[Role] = None


class UserOut(CamelModel):
    id: str
    firstname: str
    lastname: str
    email: str
    phone_no: Optional[str] = None
    avatar: Optional[str] = None
    role: str
    created_at: datetime


class ReviewerOut(CamelModel):
    id: str
    firstname: str
    lastname: str
    avatar: Optional[str] = None


class AuthOut(CamelModel):
    message: str
    token: str
    user: UserOut


class CurrentUser(BaseModel):
    """Claims carried by the access token."""

    id: str
    email: str
    role: str
    firstname: Optional[str] = None
    lastname: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class DashboardOut(CamelModel):
    total_users: int
    total_orders: int
    total_products: int
    total_sales: Money


# ---------------------------------------------------------------- catalog


class CategoryIn(CamelModel):
    name: str = Field(..., min_length=3, max_length=100, description="Category name is required")
    description: Optional[str] = None


class CategoryOut(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: datetime


class ProductIn(CamelModel):
    name: NonEmptyStr
    description: NonEmptyStr
    current_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    previous_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(..., ge=0)
    images: List[HttpUrl] = Field(default_factory=list)


class ProductOut(CamelModel):
    id: str
    category_id: str
    name: str
    description: str
    current_price: Money
    previous_price: Optional[Money] = None
    stock: int
    images: List[str]
    created_at: datetime


class ReviewSummaryOut(CamelModel):
    id: str
    star_rating: int


class ProductListOut(ProductOut):
    reviews: List[ReviewSummaryOut] = []


class CategoryDetailOut(CategoryOut):
    products: List[ProductOut] = []


class VariantIn(CamelModel):
    variant_name: NonEmptyStr
    variations: List[NonEmptyStr]


class VariantOut(CamelModel):
    id: str
    product_id: str
    variant_name: str
    variations: List[str]


class ReviewIn(CamelModel):
    star_rating: int = Field(..., ge=1, le=5, description="Rating must be between 1 and 5")
    comment: Optional[str] = None


class ReviewOut(CamelModel):
    id: str
    user_id: str
    product_id: str
    star_rating: int
    comment: Optional[str] = None
    created_at: datetime
    user: ReviewerOut


# ---------------------------------------------------------------- cart / orders


class ItemIn(CamelModel):
    """Line item for carts and orders."""

    product_id: EntityId
    quantity: int = Field(..., gt=0, description="Quantity must be a positive integer")


class CartIn(CamelModel):
    cart_items: List[ItemIn]


class CartAddIn(ItemIn):
    pass


class CartRemoveIn(CamelModel):
    product_id: EntityId


class CartItemOut(CamelModel):
    id: str
    product_id: str
    quantity: int


class CartOut(CamelModel):
    id: str
    user_id: str
    cart_items: List[CartItemOut]
    created_at: datetime


class OrderIn(CamelModel):
    total_amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    status: OrderStatus = "pending"
    order_items: List[ItemIn] = Field(..., min_length=1)


class OrderItemOut(CamelModel):
    id: str
    product_id: str
    quantity: int


class OrderOut(CamelModel):
    id: str
    user_id: str
    status: str
    total_amount: Money
    order_items: List[OrderItemOut]
    created_at: datetime
    updated_at: datetime


class DeleteOrdersIn(CamelModel):
    order_ids: List[EntityId] = Field(..., min_length=1)


# ---------------------------------------------------------------- payments


class PaymentIn(CamelModel):
    order_id: EntityId
    payment_method: PaymentMethod
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    phone_no: Optional[str] = Field(
        None,
        pattern=r"^(?:\+?254|0)\d{9}$",
        description="Phone number must be 2547XXXXXXXX, +2547XXXXXXXX or 07XXXXXXXX",
    )
    # stripe PaymentMethod id (pm_...) used to confirm the intent
    payment_method_id: Optional[str] = None


class PaymentOut(CamelModel):
    id: str
    order_id: str
    payment_method: str
    amount: Money
    status: str
    provider_transaction_id: Optional[str] = None
    failure_reason: Optional[str] = None
    payment_date: datetime


class StkCallback(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    merchant_request_id: Optional[str] = Field(None, alias="MerchantRequestID")
    checkout_request_id: str = Field(..., alias="CheckoutRequestID")
    result_code: int = Field(..., alias="ResultCode")
    result_desc: str = Field("", alias="ResultDesc")


class MpesaCallbackBody(BaseModel):
    stk_callback: StkCallback = Field(..., alias="stkCallback")


class MpesaCallbackIn(BaseModel):
    """Daraja STK callback envelope: {"Body": {"stkCallback": {...}}}."""

    body: MpesaCallbackBody = Field(..., alias="Body")


# ---------------------------------------------------------------- deliveries


class DeliveryIn(CamelModel):
    address: NonEmptyStr
    city: NonEmptyStr
    postal_code: NonEmptyStr
    country: NonEmptyStr


class DeliveryStatusIn(CamelModel):
    status: NonEmptyStr


class DeliveryOut(CamelModel):
    id: str
    user_id: str
    order_id: str
    address: str
    city: str
    postal_code: str
    country: str
    status: str
    created_at: datetime
