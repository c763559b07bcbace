"""Versioned tax table payloads."""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import CheckConstraint, Date, String
from sqlalchemy.orm import Mapped, mapped_column

from paye_engine.models.base import Base, JSONPayload, TimestampMixin


class TaxYearTableRecord(Base, TimestampMixin):
    """Rates and thresholds for one UK tax year, stored as a JSON payload.

    The payload has the same shape as the bundled ``data/<tax_year>.json``
    files and is parsed with ``paye_engine.tables.loader.tables_from_payload``.
    ``logic_hash`` is the sha256 of the canonical payload, so a reseed with
    unchanged data is a no-op.
    """

    __tablename__ = "tax_year_table"

    tax_year: Mapped[str] = mapped_column(String(7), primary_key=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    source_url: Mapped[str | None] = mapped_column(String, nullable=True)
    logic_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    payload_json: Mapped[dict[str, Any]] = mapped_column(JSONPayload, nullable=False, default=dict)

    __table_args__ = (
        CheckConstraint(
            "end_date > start_date",
            name="tax_year_table_dates_check",
        ),
    )
