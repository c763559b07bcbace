"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends

from paye_engine.config import Settings, get_settings
from paye_engine.database import get_session
from paye_engine.tables.providers import (
    BundledTaxTableProvider,
    DatabaseTaxTableProvider,
    TaxTableProvider,
)


async def get_tax_table_provider(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AsyncGenerator[TaxTableProvider, None]:
    """Tax table source selected by TAX_TABLES_SOURCE."""
    if settings.tax_tables_source == "database":
        async with get_session() as session:
            yield DatabaseTaxTableProvider(session)
    else:
        yield BundledTaxTableProvider()


# Type aliases for cleaner dependency injection
AppSettings = Annotated[Settings, Depends(get_settings)]
TaxTables = Annotated[TaxTableProvider, Depends(get_tax_table_provider)]
