"""SQLAlchemy ORM models."""

from paye_engine.models.base import Base, TimestampMixin
from paye_engine.models.tax_tables import TaxYearTableRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "TaxYearTableRecord",
]
