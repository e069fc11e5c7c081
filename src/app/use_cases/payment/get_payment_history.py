"""GetPaymentHistory Use Case"""

import logging
from libs.result import Result, Return
from src.app.repositories.payment_repository import PaymentRepository
from src.app.use_cases.errors import error_from_exception
from .dtos import PaymentDTO, PaymentListDTO

logger = logging.getLogger(__name__)


class GetPaymentHistory:
    """Use Case: A company's payment attempts, most recent first"""

    def __init__(self, payment_repo: PaymentRepository):
        self.payment_repo = payment_repo

    async def execute(self, company_id: str, limit: int = 50) -> Result[PaymentListDTO]:
        try:
            payments = await self.payment_repo.get_by_company_id(company_id, limit=limit)
        except Exception as e:
            logger.error(f"Failed to list payments for company {company_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to list payments"))

        items = [PaymentDTO.from_entity(p) for p in payments]
        return Return.ok(PaymentListDTO(payments=items, count=len(items)))
