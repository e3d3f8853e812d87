"""
Database models for the storefront.

Tables mirror the storefront's documents: users with an address book, the
product catalog and its facets, carts and wishlists as per-customer line
lists, orders with denormalized line items, coupons, reviews and blogs.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


# ==================== ASSOCIATION TABLES ====================

product_product_types = Table(
    "product_product_types",
    Base.metadata,
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("product_type_id", Integer, ForeignKey("product_types.id", ondelete="CASCADE"), primary_key=True),
)

product_benefits = Table(
    "product_benefits",
    Base.metadata,
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("benefit_id", Integer, ForeignKey("benefits.id", ondelete="CASCADE"), primary_key=True),
)

product_health_conditions = Table(
    "product_health_conditions",
    Base.metadata,
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("health_condition_id", Integer, ForeignKey("health_conditions.id", ondelete="CASCADE"), primary_key=True),
)


# ==================== USERS ====================

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=True)
    google_id = Column(String(128), unique=True, index=True, nullable=True)
    has_agreed_to_privacy_policy = Column(Boolean, nullable=False, default=False)
    img_url = Column(String(500), nullable=True)
    full_name = Column(String(100), nullable=True)
    dob = Column(String(20), nullable=True)
    phone = Column(String(20), nullable=True)
    gender = Column(String(20), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    addresses = relationship(
        "Address", back_populates="user", cascade="all, delete-orphan", order_by="Address.id"
    )
    cart = relationship("Cart", back_populates="customer", uselist=False, cascade="all, delete-orphan")
    wishlist = relationship("Wishlist", back_populates="customer", uselist=False, cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="customer")
    reviews = relationship("Review", back_populates="user", cascade="all, delete-orphan")


class Address(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    full_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False)
    email = Column(String(255), nullable=True)
    landmark = Column(String(200), nullable=True)
    street_address_house_no = Column(String(255), nullable=False)
    street_address2 = Column(String(255), nullable=True)
    address_type = Column(String(20), nullable=False)
    city_town = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    pin_code = Column(String(10), nullable=False)
    is_default = Column(Boolean, default=False)

    user = relationship("User", back_populates="addresses")


# ==================== CATALOG ====================

class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, default="")
    icon = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    products = relationship("Product", back_populates="category")


class ProductType(Base):
    __tablename__ = "product_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)


class Benefit(Base):
    __tablename__ = "benefits"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    icon = Column(Text, nullable=False)
    description = Column(Text, nullable=False)


class HealthCondition(Base):
    __tablename__ = "health_conditions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    name = Column(String(200), nullable=False, index=True)
    about = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False, default=0)
    discount = Column(Float, nullable=False, default=0)  # percent, 0-100
    stock = Column(Integer, nullable=False, default=0)
    expiry_months = Column(Integer, nullable=False, default=0)
    form = Column(String(100), nullable=True)
    pack_size = Column(String(100), nullable=True)
    applied_for = Column(Text, nullable=True)
    suitable_for = Column(String(200), nullable=True)
    safety_note = Column(Text, nullable=True)
    sku = Column(String(100), nullable=False)
    # Package dimensions in cm / kg, as the carrier expects them
    length = Column(Float, nullable=False, default=0.5)
    breadth = Column(Float, nullable=False, default=0.5)
    height = Column(Float, nullable=False, default=0.5)
    weight = Column(Float, nullable=False, default=0.1)
    product_img = Column(String(500), nullable=True)
    description_img = Column(String(500), nullable=True)
    third_img = Column(String(500), nullable=True)
    fourth_img = Column(String(500), nullable=True)
    average_rating = Column(Float, default=0)
    num_reviews = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("Category", back_populates="products")
    product_types = relationship("ProductType", secondary=product_product_types)
    benefits = relationship("Benefit", secondary=product_benefits)
    health_conditions = relationship("HealthCondition", secondary=product_health_conditions)
    faqs = relationship("Faq", back_populates="product", cascade="all, delete-orphan", order_by="Faq.id")


class Faq(Base):
    __tablename__ = "faqs"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)

    product = relationship("Product", back_populates="faqs")


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("user_id", "product_id", name="uq_review_user_product"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="reviews")
    product = relationship("Product")


# ==================== CART & WISHLIST ====================

class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    customer = relationship("User", back_populates="cart")
    products = relationship(
        "CartItem", back_populates="cart", cascade="all, delete-orphan", order_by="CartItem.id"
    )


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    items = Column(Integer, nullable=False, default=1)
    quantity = Column(String(50), nullable=False, default="1")

    cart = relationship("Cart", back_populates="products")
    product = relationship("Product")


class Wishlist(Base):
    __tablename__ = "wishlists"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    customer = relationship("User", back_populates="wishlist")
    products = relationship(
        "WishlistItem", back_populates="wishlist", cascade="all, delete-orphan", order_by="WishlistItem.id"
    )


class WishlistItem(Base):
    __tablename__ = "wishlist_items"

    id = Column(Integer, primary_key=True, index=True)
    wishlist_id = Column(Integer, ForeignKey("wishlists.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    wishlist = relationship("Wishlist", back_populates="products")
    product = relationship("Product")


# ==================== ORDERS ====================

class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    PACKED = "Packed"
    SHIPPED = "Shipped"
    OUT_FOR_DELIVERY = "Out for delivery"
    DELIVERED = "Delivered"
    CANCELED = "Canceled"
    RETURNED = "Returned"


class PaymentStatus(str, enum.Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)  # null once the account is deleted
    full_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False)
    email = Column(String(255), nullable=False)
    landmark = Column(String(200), nullable=True)
    street_address_house_no = Column(String(255), nullable=False)
    street_address2 = Column(String(255), nullable=True)
    address_type = Column(String(20), nullable=True)
    city_town = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    pin_code = Column(String(10), nullable=False)
    order_id = Column(Integer, nullable=False, index=True)  # carrier order id
    order_status = Column(String(50), nullable=False, default=OrderStatus.PENDING.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_method = Column(String(50), default="Cash")
    payment_id = Column(String(100), unique=True, nullable=True)
    payment_order_id = Column(String(100), nullable=True)
    payment_amount = Column(Float, nullable=True)
    payment_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("User", back_populates="orders")
    products = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    name = Column(String(200), nullable=False)
    sku = Column(String(100), nullable=True)
    quantity = Column(Integer, nullable=False)
    total_amount = Column(Float, nullable=False)

    order = relationship("Order", back_populates="products")
    product = relationship("Product")


# ==================== COUPONS ====================

class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, index=True, nullable=False)
    discount_percentage = Column(Float, nullable=False)
    max_discount_amount = Column(Float, nullable=False)
    min_order_amount = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# ==================== BLOGS ====================

class BlogCategory(Base):
    __tablename__ = "blog_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    blogs = relationship("Blog", back_populates="category")


class Blog(Base):
    __tablename__ = "blogs"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("blog_categories.id"), nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    title = Column(String(300), nullable=False)
    content = Column(JSON, nullable=False, default=list)  # [{"heading", "body"}]
    image_url = Column(String(500), nullable=True)
    posted_on = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("BlogCategory", back_populates="blogs")
    author = relationship("User")
    comments = relationship(
        "BlogComment", back_populates="blog", cascade="all, delete-orphan", order_by="BlogComment.id"
    )


class BlogComment(Base):
    __tablename__ = "blog_comments"

    id = Column(Integer, primary_key=True, index=True)
    blog_id = Column(Integer, ForeignKey("blogs.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    blog = relationship("Blog", back_populates="comments")
    user = relationship("User")
