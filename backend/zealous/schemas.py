"""
Request and response schemas.

JSON bodies use camelCase keys and expose primary keys as ``_id``; Python
attributes stay snake_case. Request fields are mostly optional so handlers can
answer a missing field with a specific message instead of a schema error.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def dump(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ==================== AUTH & USERS ====================

class Credentials(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class GoogleLogin(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class ForgetPasswordRequest(CamelModel):
    email: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    param: Optional[str] = None
    password: Optional[str] = None


class UserUpdate(CamelModel):
    full_name: Optional[str] = None
    dob: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    email: Optional[str] = None
    img: Optional[str] = None


class UserProfile(CamelModel):
    full_name: Optional[str] = None
    dob: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    email: str
    img: Optional[str] = Field(None, validation_alias="img_url")


class AddressIn(CamelModel):
    id: Optional[int] = Field(None, alias="_id")
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    landmark: Optional[str] = None
    street_address_house_no: Optional[str] = None
    street_address2: Optional[str] = None
    address_type: Optional[str] = None
    city_town: Optional[str] = None
    state: Optional[str] = None
    pin_code: Optional[str] = None
    is_default: Optional[bool] = None


class AddressOut(CamelModel):
    id: int = Field(serialization_alias="_id")
    full_name: str
    phone: str
    email: Optional[str] = None
    landmark: Optional[str] = None
    street_address_house_no: str
    street_address2: Optional[str] = None
    address_type: str
    city_town: str
    state: str
    pin_code: str
    is_default: bool = False


# ==================== CATALOG ====================

class FacetOut(CamelModel):
    id: int = Field(serialization_alias="_id")
    name: str


class DescribedFacetOut(FacetOut):
    icon: str
    description: str


class CategoryOut(DescribedFacetOut):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FaqOut(CamelModel):
    id: int = Field(serialization_alias="_id")
    question: str
    answer: str


class ProductFields(CamelModel):
    name: Optional[str] = None
    about: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    discount: Optional[float] = None
    stock: Optional[int] = None
    expiry_months: Optional[int] = None
    form: Optional[str] = None
    pack_size: Optional[str] = None
    applied_for: Optional[str] = None
    suitable_for: Optional[str] = None
    safety_note: Optional[str] = None
    sku: Optional[str] = None
    length: Optional[float] = None
    breadth: Optional[float] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    product_img: Optional[str] = None
    description_img: Optional[str] = None
    third_img: Optional[str] = None
    fourth_img: Optional[str] = None


class ProductCreate(ProductFields):
    category_name: Optional[str] = None
    product_type: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    health_conditions: List[str] = []


ProductUpdate = ProductFields


class ProductSummary(CamelModel):
    id: int = Field(serialization_alias="_id")
    name: str
    about: str
    price: float
    discount: float
    product_img: Optional[str] = None
    average_rating: float = 0
    num_reviews: int = 0


class ProductOut(ProductSummary):
    category_id: int = Field(serialization_alias="category")
    description: Optional[str] = None
    stock: int = 0
    expiry_months: int = 0
    form: Optional[str] = None
    pack_size: Optional[str] = None
    applied_for: Optional[str] = None
    suitable_for: Optional[str] = None
    safety_note: Optional[str] = None
    sku: str
    length: float
    breadth: float
    height: float
    weight: float
    description_img: Optional[str] = None
    third_img: Optional[str] = None
    fourth_img: Optional[str] = None
    product_types: List[FacetOut] = []
    benefits: List[FacetOut] = []
    health_conditions: List[FacetOut] = []
    faqs: List[FaqOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReviewCreate(CamelModel):
    product_id: Optional[int] = None
    rating: Optional[Any] = None
    comment: Optional[str] = None


# ==================== CART & WISHLIST ====================

class CartLineIn(CamelModel):
    product_id: Optional[int] = None
    quantity: Optional[Union[str, int]] = None
    items: int = Field(default=1, ge=1)


class CartMerge(CamelModel):
    products: Optional[List[CartLineIn]] = None


class ProductRef(CamelModel):
    product_id: Optional[int] = None


class WishlistMerge(CamelModel):
    products: Optional[List[ProductRef]] = None


# ==================== PAYMENTS & ORDERS ====================

class PaymentOrderRequest(CamelModel):
    amount: Optional[float] = None


class CheckoutLine(BaseModel):
    product_id: Optional[int] = Field(None, alias="_id")
    quantity: Optional[int] = None


class ShippingAddress(CamelModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    landmark: Optional[str] = None
    street_address_house_no: Optional[str] = None
    street_address2: Optional[str] = None
    address_type: Optional[str] = None
    city_town: Optional[str] = None
    state: Optional[str] = None
    pin_code: Optional[str] = None


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    amount: Optional[float] = None
    cart: Optional[List[CheckoutLine]] = None
    address: Optional[ShippingAddress] = None


class OrderLineOut(CamelModel):
    id: int = Field(serialization_alias="_id")
    product_id: Optional[int] = None
    name: str
    sku: Optional[str] = None
    quantity: int
    total_amount: float


class OrderOut(CamelModel):
    id: int = Field(serialization_alias="_id")
    customer_id: Optional[int] = None
    full_name: str
    phone: str
    email: str
    landmark: Optional[str] = None
    street_address_house_no: str
    street_address2: Optional[str] = None
    address_type: Optional[str] = None
    city_town: str
    state: str
    pin_code: str
    order_id: int
    order_status: str
    payment_status: str
    payment_method: Optional[str] = None
    payment_id: Optional[str] = None
    payment_order_id: Optional[str] = None
    payment_amount: Optional[float] = None
    payment_date: datetime
    products: List[OrderLineOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ==================== COUPONS ====================

class CouponValidateRequest(CamelModel):
    code: Optional[str] = None
    cart_total: Optional[Any] = None


class CouponCreate(CamelModel):
    code: Optional[str] = None
    discount_percentage: Optional[float] = None
    max_discount_amount: Optional[float] = None
    min_order_amount: Optional[float] = None


class CouponOut(CamelModel):
    id: int = Field(serialization_alias="_id")
    code: str
    discount_percentage: float
    max_discount_amount: float
    min_order_amount: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ==================== BLOGS ====================

class BlogSection(BaseModel):
    heading: str
    body: str


class BlogCreate(CamelModel):
    category: Optional[str] = None
    title: Optional[str] = None
    content: Optional[List[BlogSection]] = None
    image_url: Optional[str] = None


class CommentCreate(CamelModel):
    text: Optional[str] = None


class AuthorOut(CamelModel):
    id: int = Field(serialization_alias="_id")
    full_name: Optional[str] = Field(None, serialization_alias="name")
    email: str


class CommentOut(CamelModel):
    user: AuthorOut
    text: str
    created_at: Optional[datetime] = None


class BlogOut(CamelModel):
    id: int = Field(serialization_alias="_id")
    category: FacetOut
    title: str
    content: List[BlogSection]
    image_url: Optional[str] = None
    author: Optional[AuthorOut] = None
    posted_on: Optional[datetime] = None
    comments: List[CommentOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
