# backend/studio_core/models/customer.py
"""
Customer and HealthDeclaration models.

``signed_health_view`` is the cached flag consulted on every booking; the
declarations table is the source of truth it is healed from.
"""

from sqlalchemy import Boolean, Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import StringListType, UTCDateTime


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    studio_id = Column(String(26), ForeignKey("studios.id"), nullable=False, index=True)
    user_id = Column(String(26), nullable=True)
    full_name = Column(String(200), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    phone = Column(String(50), nullable=False, default="")
    signed_health_view = Column(Boolean, nullable=False, default=False)
    tags = Column(StringListType, nullable=False, default=list)
    created_at = Column(UTCDateTime, server_default=func.now())

    health_declarations = relationship(
        "HealthDeclaration", back_populates="customer", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Customer {self.id} {self.full_name!r}>"


class HealthDeclaration(Base):
    __tablename__ = "health_declarations"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    studio_id = Column(String(26), ForeignKey("studios.id"), nullable=False)
    customer_id = Column(String(26), ForeignKey("customers.id"), nullable=False, index=True)
    payload = Column(Text, nullable=False, default="{}")
    signed_at = Column(UTCDateTime, server_default=func.now())

    customer = relationship("Customer", back_populates="health_declarations")
