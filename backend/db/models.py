"""
Restock Database Models

Tables:
  1. products - Product catalog with stock, sales velocity and lead time
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String

from db.session import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    current_inventory = Column(Integer, nullable=False, default=0)
    avg_sales = Column(Integer, nullable=False, default=0)  # units per week
    lead_time = Column(Integer, nullable=False, default=0)  # days to replenish
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_products_name", "name"),
        CheckConstraint("current_inventory >= 0", name="ck_product_inventory_non_negative"),
        CheckConstraint("avg_sales >= 0", name="ck_product_sales_non_negative"),
        CheckConstraint("lead_time >= 0", name="ck_product_lead_time_non_negative"),
    )
