"""Tax year table endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path

from paye_engine.api.dependencies import AppSettings, TaxTables
from paye_engine.api.schemas import ErrorResponse, TaxYearListResponse, TaxYearTablesResponse

router = APIRouter(prefix="/tax-years", tags=["tax-years"])


@router.get("", response_model=TaxYearListResponse)
async def list_tax_years(settings: AppSettings, provider: TaxTables) -> TaxYearListResponse:
    """List tax years with tables."""
    return TaxYearListResponse(
        tax_years=await provider.available(),
        default_tax_year=settings.default_tax_year,
    )


@router.get(
    "/{tax_year}",
    response_model=TaxYearTablesResponse,
    responses={422: {"model": ErrorResponse}},
)
async def get_tax_year(
    tax_year: Annotated[str, Path()],
    provider: TaxTables,
) -> TaxYearTablesResponse:
    """Rates and thresholds for one tax year."""
    tables = await provider.get(tax_year)
    return TaxYearTablesResponse.from_tables(tables)
