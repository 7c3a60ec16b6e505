from sqlalchemy import (
    Boolean,
    String,
    Text,
    DateTime,
    CheckConstraint,
    UniqueConstraint,
    Index,
    text,
    ForeignKey,
    Float,
    Integer
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship, declarative_base
from typing import Optional, List
import uuid

Base = declarative_base()


class Profile(Base):
    """
    Business profile for an authenticated identity
    The identity itself lives with the auth provider; user_id is its opaque handle
    """
    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("role IN ('vendor', 'supplier')", name="profile_role_check"),
        Index("profiles_by_role", "role"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        unique=True,
        index=True,
        nullable=False
    )

    # Fixed at onboarding
    role: Mapped[str] = mapped_column(String(20), nullable=False)

    business_name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_phone: Mapped[str] = mapped_column(String(20), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)

    # Vendors only
    trust_score: Mapped[Optional[float]] = mapped_column(Float)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False
    )


class Product(Base):
    """
    Raw-material listings owned by a supplier
    """
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="product_price_non_negative_check"),
        CheckConstraint("quantity >= 0", name="product_quantity_non_negative_check"),
        CheckConstraint(
            "max_order_quantity IS NULL OR max_order_quantity >= min_order_quantity",
            name="product_order_quantity_range_check"
        ),
        Index("products_by_supplier", "supplier_id"),
        Index("products_by_category", "category"),
        Index("products_by_active", "is_active"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    supplier_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)

    price: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)  # kg, pieces, liters, etc.
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    min_order_quantity: Mapped[float] = mapped_column(Float, nullable=False)
    max_order_quantity: Mapped[Optional[float]] = mapped_column(Float)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False
    )


class Order(Base):
    """
    Orders placed by vendors against a supplier's product
    unit_price is a snapshot taken when the order is placed
    """
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="order_quantity_positive_check"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'delivered', 'cancelled')",
            name="order_status_check"
        ),
        Index("orders_by_vendor", "vendor_id"),
        Index("orders_by_supplier", "supplier_id"),
        Index("orders_by_status", "status"),
        Index("orders_by_group", "group_buying_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Order participants (identity handles)
    vendor_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    supplier_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    # No FK: products are hard-deleted while their orders are kept
    product_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)
    total_amount: Mapped[float] = mapped_column(Float, nullable=False)

    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    order_date: Mapped[DateTime] = mapped_column(DateTime(True), nullable=False)
    delivery_date: Mapped[Optional[DateTime]] = mapped_column(DateTime(True))

    group_buying_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("group_buying.id", ondelete="SET NULL")
    )

    group_buying: Mapped[Optional["GroupBuying"]] = relationship("GroupBuying", back_populates="orders")


class GroupBuying(Base):
    """
    Vendor-initiated bulk-discount campaign on one product
    discounted_price is computed once at creation and never follows the product price
    """
    __tablename__ = "group_buying"
    __table_args__ = (
        CheckConstraint("discount_percentage >= 0 AND discount_percentage <= 100", name="group_discount_range_check"),
        CheckConstraint("current_participants <= max_participants", name="group_capacity_check"),
        CheckConstraint(
            "status IN ('active', 'completed', 'cancelled', 'expired')",
            name="group_status_check"
        ),
        Index("group_buying_by_product", "product_id"),
        Index("group_buying_by_supplier", "supplier_id"),
        Index("group_buying_by_status", "status"),
        Index("group_buying_by_creator", "created_by"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    supplier_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)

    target_quantity: Mapped[float] = mapped_column(Float, nullable=False)
    current_quantity: Mapped[float] = mapped_column(Float, default=0, nullable=False)

    # Pricing
    discount_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    original_price: Mapped[float] = mapped_column(Float, nullable=False)
    discounted_price: Mapped[float] = mapped_column(Float, nullable=False)

    min_participants: Mapped[int] = mapped_column(Integer, nullable=False)
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False)
    current_participants: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    deadline: Mapped[DateTime] = mapped_column(DateTime(True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
    created_at: Mapped[DateTime] = mapped_column(DateTime(True), nullable=False)

    participants: Mapped[List["GroupParticipant"]] = relationship(
        "GroupParticipant",
        back_populates="group_buying",
        cascade="all, delete-orphan",
        order_by="GroupParticipant.joined_at"
    )
    orders: Mapped[List["Order"]] = relationship("Order", back_populates="group_buying")


class GroupParticipant(Base):
    """
    One vendor's stake in a group buy
    """
    __tablename__ = "group_participants"
    __table_args__ = (
        UniqueConstraint("group_buying_id", "vendor_id", name="unique_group_vendor"),
        CheckConstraint("quantity > 0", name="participant_quantity_positive_check"),
        Index("group_participants_by_group", "group_buying_id"),
        Index("group_participants_by_vendor", "vendor_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    group_buying_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("group_buying.id", ondelete="CASCADE"),
        nullable=False
    )
    vendor_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    joined_at: Mapped[DateTime] = mapped_column(DateTime(True), nullable=False)

    group_buying: Mapped["GroupBuying"] = relationship("GroupBuying", back_populates="participants")


class VendorInventoryItem(Base):
    """
    Stock a vendor keeps on hand, used for low-stock alerts
    """
    __tablename__ = "vendor_inventory"
    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="inventory_stock_non_negative_check"),
        CheckConstraint("min_stock_level >= 0", name="inventory_min_stock_non_negative_check"),
        Index("vendor_inventory_by_vendor", "vendor_id"),
        Index("vendor_inventory_by_category", "category"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    vendor_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    current_stock: Mapped[float] = mapped_column(Float, nullable=False)
    min_stock_level: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)
    last_restocked: Mapped[DateTime] = mapped_column(DateTime(True), nullable=False)
    supplier_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True))
