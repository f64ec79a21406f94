# models/cart_record.py
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from .base import Base

class CartRecord(Base):
    __tablename__ = 'cart_snapshots'

    key = Column(String(255), primary_key=True) # namespace of the cart, e.g. "@RocketShoes:cart:42"
    items = Column(JSON, nullable=False, default=list) # serialized line items, in cart order

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<CartRecord(key='{self.key}')>"
