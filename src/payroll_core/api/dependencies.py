"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_core.database import init_db
from payroll_core.services.payroll_run_service import PayrollRunService
from payroll_core.services.summary_service import SummaryService


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


def get_payroll_run_service(db: DbSession) -> PayrollRunService:
    return PayrollRunService(db)


def get_summary_service(db: DbSession) -> SummaryService:
    return SummaryService(db)


RunService = Annotated[PayrollRunService, Depends(get_payroll_run_service)]
Summaries = Annotated[SummaryService, Depends(get_summary_service)]
