"""SQLAlchemy models.

Categories are read and written by this service. Products are READ-ONLY:
they are only counted to supply per-category product totals.
"""

from app.models.base import Base, TimestampMixin
from app.models.category import Category
from app.models.product import Product

__all__ = [
    "Base",
    "TimestampMixin",
    "Category",
    "Product",
]
