"""Usage API Routes"""

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.auth import require_company_admin
from src.api.error import ClientError
from src.api.schemas.billing_request import SuccessResponse
from src.adapter.repositories import SqlAlchemySubscriptionRepository, SqlAlchemyUsageRecordRepository
from src.app.use_cases.usage import GetUsageSummary, UsageSummaryDTO
from src.depends import get_session

router = APIRouter(prefix="/billing/companies/{company_id}/usage", tags=["Usage"])


@router.get("", response_model=SuccessResponse[UsageSummaryDTO])
async def get_usage_summary(
    company_id: str,
    user_id: str = Depends(require_company_admin),
    session: AsyncSession = Depends(get_session),
):
    """
    Seat changes and proration of the current billing period.

    **Returns:**
    - 200: Summary with users added/removed and the net proration
    - 404: Company has never subscribed
    """
    use_case = GetUsageSummary(
        SqlAlchemySubscriptionRepository(session),
        SqlAlchemyUsageRecordRepository(session),
    )
    result = await use_case.execute(company_id)

    if result.is_err():
        raise ClientError(result.error)

    return SuccessResponse(data=result.value)
