"""Tax table loading from JSON payloads.

Each tax year is one payload, stored either as a bundled JSON file under
``paye_engine/data/<tax_year>.json`` or in the ``tax_year_table`` database
table (see :mod:`paye_engine.tables.providers`). Both sources go through
:func:`tables_from_payload`, which parses and checks the invariants:

- income tax bands are ascending, contiguous and non-overlapping, start at
  zero and end with an open upper bound
- every NI threshold and qualifying earnings limit has a row for each pay
  frequency plus ``annual``
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from importlib import resources
from typing import Any

from paye_engine.tables.types import (
    IncomeTaxBand,
    IncomeTaxSchedule,
    NICategoryRates,
    NIThresholds,
    PeriodThreshold,
    PersonalAllowance,
    QualifyingEarnings,
    StudentLoanTerms,
    TaxTablesConfigError,
    TaxYearTables,
    UnsupportedTaxYearError,
)

logger = logging.getLogger(__name__)

TAX_YEAR_PATTERN = re.compile(r"^\d{4}-\d{2}$")

REQUIRED_REGIMES = ("standard", "scottish", "welsh")
THRESHOLD_ROWS = ("weekly", "biweekly", "monthly", "annual")
NI_THRESHOLD_NAMES = (
    "lower_earnings_limit",
    "primary_threshold",
    "upper_earnings_limit",
    "secondary_threshold",
    "upper_secondary_threshold",
)

DATA_PACKAGE = "paye_engine.data"


def tables_from_payload(payload: dict[str, Any]) -> TaxYearTables:
    """Build TaxYearTables from a JSON payload.

    Raises:
        TaxTablesConfigError: If the payload is incomplete or a band
            invariant is broken.
    """
    tax_year = str(payload.get("tax_year", "<unknown>"))
    if not TAX_YEAR_PATTERN.match(tax_year):
        raise TaxTablesConfigError(tax_year, "tax_year must look like 'YYYY-YY'")

    try:
        income_tax = payload["income_tax"]
        ni = payload["national_insurance"]

        pa = income_tax["personal_allowance"]
        personal_allowance = PersonalAllowance(
            amount_pence=_pence(tax_year, pa["amount_pence"]),
            income_limit_pence=_pence(tax_year, pa["income_limit_pence"]),
            taper_rate=_rate(tax_year, pa["taper_rate"]),
        )

        schedules: dict[str, IncomeTaxSchedule] = {}
        for regime in REQUIRED_REGIMES:
            raw = income_tax["regimes"][regime]
            bands = tuple(
                IncomeTaxBand(
                    name=b["name"],
                    lower_pence=_pence(tax_year, b["lower_pence"]),
                    upper_pence=(
                        _pence(tax_year, b["upper_pence"])
                        if b.get("upper_pence") is not None
                        else None
                    ),
                    rate=_rate(tax_year, b["rate"]),
                )
                for b in raw["bands"]
            )
            _check_bands(tax_year, regime, bands)
            schedules[regime] = IncomeTaxSchedule(
                regime=regime,
                bands=bands,
                fixed_rates={
                    code: _rate(tax_year, rate)
                    for code, rate in raw.get("fixed_rates", {}).items()
                },
            )

        thresholds = NIThresholds(
            **{
                name: _period_threshold(tax_year, name, ni["thresholds"][name])
                for name in NI_THRESHOLD_NAMES
            }
        )

        categories = {
            letter: NICategoryRates(
                category=letter,
                employee_main_rate=_rate(tax_year, c["employee_main_rate"]),
                employee_upper_rate=_rate(tax_year, c["employee_upper_rate"]),
                employer_rate=_rate(tax_year, c["employer_rate"]),
                employer_relief_to_ust=bool(c.get("employer_relief_to_ust", False)),
            )
            for letter, c in ni["categories"].items()
        }

        student_loans = {
            plan: StudentLoanTerms(
                plan=plan,
                threshold_pence=_pence(tax_year, p["threshold_pence"]),
                rate=_rate(tax_year, p["rate"]),
            )
            for plan, p in payload["student_loan"]["plans"].items()
        }

        qe = payload["pension"]["qualifying_earnings"]
        qualifying_earnings = QualifyingEarnings(
            lower=_period_threshold(tax_year, "qualifying_earnings.lower", qe["lower"]),
            upper=_period_threshold(tax_year, "qualifying_earnings.upper", qe["upper"]),
        )

        start_date = date.fromisoformat(payload["start_date"])
        end_date = date.fromisoformat(payload["end_date"])
    except KeyError as e:
        raise TaxTablesConfigError(tax_year, f"missing key {e}") from e
    except (TypeError, ValueError) as e:
        raise TaxTablesConfigError(tax_year, str(e)) from e

    if end_date <= start_date:
        raise TaxTablesConfigError(tax_year, "end_date must be after start_date")

    return TaxYearTables(
        tax_year=tax_year,
        start_date=start_date,
        end_date=end_date,
        personal_allowance=personal_allowance,
        income_tax=schedules,
        ni_thresholds=thresholds,
        ni_categories=categories,
        student_loans=student_loans,
        qualifying_earnings=qualifying_earnings,
        source_url=payload.get("source_url"),
    )


def payload_hash(payload: dict[str, Any]) -> str:
    """Stable sha256 of a payload, independent of key order."""
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()


def available_tax_years() -> list[str]:
    """List tax years with bundled tables."""
    years = [
        entry.name.removesuffix(".json")
        for entry in resources.files(DATA_PACKAGE).iterdir()
        if entry.name.endswith(".json")
    ]
    return sorted(y for y in years if TAX_YEAR_PATTERN.match(y))


def read_bundled_payload(tax_year: str) -> dict[str, Any]:
    """Read the raw JSON payload for a bundled tax year."""
    if not TAX_YEAR_PATTERN.match(tax_year or ""):
        raise UnsupportedTaxYearError(tax_year, available_tax_years())

    resource = resources.files(DATA_PACKAGE).joinpath(f"{tax_year}.json")
    if not resource.is_file():
        raise UnsupportedTaxYearError(tax_year, available_tax_years())

    return json.loads(resource.read_text(encoding="utf-8"))


@lru_cache(maxsize=16)
def load_tax_year_tables(tax_year: str) -> TaxYearTables:
    """Load bundled tables for a tax year, once per process.

    Raises:
        UnsupportedTaxYearError: If no tables are bundled for the year.
        TaxTablesConfigError: If the bundled payload is malformed.
    """
    payload = read_bundled_payload(tax_year)
    if payload.get("tax_year") != tax_year:
        raise TaxTablesConfigError(
            tax_year, f"payload declares tax_year {payload.get('tax_year')!r}"
        )
    tables = tables_from_payload(payload)
    logger.info("Loaded tax tables for %s", tax_year)
    return tables


def _pence(tax_year: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise TaxTablesConfigError(
            tax_year, f"expected non-negative integer pence, got {value!r}"
        )
    return value


def _rate(tax_year: str, value: Any) -> Decimal:
    try:
        rate = Decimal(str(value))
    except InvalidOperation:
        raise TaxTablesConfigError(tax_year, f"invalid rate {value!r}") from None
    if rate < 0 or rate > 1:
        raise TaxTablesConfigError(tax_year, f"rate {value!r} outside 0..1")
    return rate


def _period_threshold(tax_year: str, name: str, rows: dict[str, Any]) -> PeriodThreshold:
    missing = [row for row in THRESHOLD_ROWS if row not in rows]
    if missing:
        raise TaxTablesConfigError(
            tax_year, f"{name} is missing rows: {', '.join(missing)}"
        )
    return PeriodThreshold(rows={row: _pence(tax_year, rows[row]) for row in THRESHOLD_ROWS})


def _check_bands(tax_year: str, regime: str, bands: tuple[IncomeTaxBand, ...]) -> None:
    """Bands must cover 0..infinity with no gaps or overlaps."""
    if not bands:
        raise TaxTablesConfigError(tax_year, f"{regime} has no income tax bands")

    if bands[0].lower_pence != 0:
        raise TaxTablesConfigError(tax_year, f"{regime} bands must start at 0")

    for current, following in zip(bands, bands[1:]):
        if current.upper_pence is None:
            raise TaxTablesConfigError(
                tax_year, f"{regime} band '{current.name}' is open but not last"
            )
        if current.upper_pence <= current.lower_pence:
            raise TaxTablesConfigError(
                tax_year, f"{regime} band '{current.name}' is empty or inverted"
            )
        if following.lower_pence != current.upper_pence:
            raise TaxTablesConfigError(
                tax_year,
                f"{regime} bands '{current.name}' and '{following.name}' are not contiguous",
            )

    if bands[-1].upper_pence is not None:
        raise TaxTablesConfigError(
            tax_year, f"{regime} last band must have no upper limit"
        )
