"""Payroll calculation API endpoints."""

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Query, status

from paye_engine.api.dependencies import AppSettings, TaxTables
from paye_engine.api.schemas import (
    CalculationAmounts,
    CalculationMeta,
    ErrorResponse,
    PayrollCalculationRequest,
    PayrollCalculationResponse,
    PeriodizeResponse,
    ValidationErrorResponse,
    ValidationResultResponse,
)
from paye_engine.calculators.engine import PayrollEngine, generate_calculation_id
from paye_engine.calculators.periods import periodize_amount
from paye_engine.calculators.types import PayFrequency
from paye_engine.calculators.validation import (
    PayrollInputError,
    build_input,
    validate_payroll_inputs,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payroll", tags=["payroll"])


@router.post(
    "/calculate",
    response_model=PayrollCalculationResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": ValidationErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def calculate(
    payload: PayrollCalculationRequest,
    settings: AppSettings,
    provider: TaxTables,
) -> PayrollCalculationResponse:
    """Calculate gross-to-net pay for one employee and one period."""
    inp = build_input(payload.to_engine_input(settings.default_tax_year))
    tables = await provider.get(inp.tax_year)
    result = PayrollEngine(tables).calculate(inp)

    calculation_id = generate_calculation_id(inp, settings.engine_version)
    logger.info(
        "Calculation %s: %s period %d",
        calculation_id,
        inp.tax_year,
        inp.period_number,
    )

    data = result.to_dict()
    breakdown = data.pop("breakdown")
    return PayrollCalculationResponse(
        calculation=CalculationAmounts(**data),
        breakdown=breakdown,
        meta=CalculationMeta(
            tax_year=inp.tax_year,
            period_number=inp.period_number,
            calculation_id=calculation_id,
            engine_version=settings.engine_version,
            computed_at=datetime.now(timezone.utc),
        ),
    )


@router.post(
    "/validate",
    response_model=ValidationResultResponse,
    status_code=status.HTTP_200_OK,
)
async def validate(
    payload: PayrollCalculationRequest,
    settings: AppSettings,
) -> ValidationResultResponse:
    """Validate a calculation request without calculating."""
    try:
        data = payload.to_engine_input(settings.default_tax_year)
    except PayrollInputError as e:
        return ValidationResultResponse(is_valid=False, errors=e.errors)
    result = validate_payroll_inputs(data)
    return ValidationResultResponse(is_valid=result.is_valid, errors=result.errors)


@router.get(
    "/periodize",
    response_model=PeriodizeResponse,
    responses={400: {"model": ValidationErrorResponse}},
)
async def periodize(
    annual_amount_pence: Annotated[int, Query(ge=0)],
    frequency: Annotated[PayFrequency, Query()],
) -> PeriodizeResponse:
    """Convert an annual amount to a per-period amount."""
    return PeriodizeResponse(
        annual_amount_pence=annual_amount_pence,
        frequency=frequency,
        periods_per_year=frequency.periods_per_year,
        period_amount_pence=periodize_amount(annual_amount_pence, frequency),
    )
