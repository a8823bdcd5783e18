"""
Part Cost Requests

Technicians submit corrections to a job's parts cost; admins approve or
reject each one exactly once. Approved technician-ordered requests are
reimbursed in the enhanced payout.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from app.models.enums import PartRequestStatus
from app.models.schemas import PartCostRequest, PartCostRequestCreate, PartRequestDecision, Technician
from app.services.errors import PartRequestNotFoundError, PartRequestValidationError

logger = logging.getLogger(__name__)


def validate_part_request(data: PartCostRequestCreate) -> None:
    """Reject a submission before it reaches the backend"""
    if not data.notes or not data.notes.strip():
        raise PartRequestValidationError("Notes are required")
    if data.requested_parts_cost < 0:
        raise PartRequestValidationError("Parts cost cannot be negative")


def decided_by(user: Technician) -> Optional[str]:
    return user.name or user.email


class PartRequestService:
    """Create, list and decide part cost requests"""

    def __init__(self, db):
        self.db = db

    async def create(self, data: PartCostRequestCreate, technician: Technician) -> PartCostRequest:
        validate_part_request(data)
        row = {
            "job_invoice_number": data.job_invoice_number,
            "technician_id": technician.technician_code,
            "current_parts_cost": data.current_parts_cost,
            "requested_parts_cost": data.requested_parts_cost,
            "notes": data.notes.strip(),
            "status": PartRequestStatus.PENDING.value,
        }
        request = await self.db.insert_part_request(row)
        logger.info(
            f"[PartRequests] {technician.technician_code} requested {data.requested_parts_cost:.2f} "
            f"for invoice {data.job_invoice_number}"
        )
        return request

    async def list(self, status: Optional[PartRequestStatus] = None) -> List[PartCostRequest]:
        return await self.db.list_part_requests(status)

    async def _pending(self, request_id: int) -> PartCostRequest:
        request = await self.db.get_part_request(request_id)
        if request is None:
            raise PartRequestNotFoundError(f"Part cost request {request_id} not found")
        if request.status != PartRequestStatus.PENDING:
            raise PartRequestValidationError(f"Request {request_id} is already {request.status.value}")
        return request

    async def _decide(
        self,
        request_id: int,
        status: PartRequestStatus,
        decision: PartRequestDecision,
        admin: Technician,
        include_ordered_by: bool
    ) -> PartCostRequest:
        await self._pending(request_id)
        patch = {
            "status": status.value,
            "admin_notes": (decision.admin_notes or "").strip() or None,
            "approved_by": decided_by(admin),
            "approved_at": datetime.now(timezone.utc).isoformat(),
        }
        if include_ordered_by:
            patch["parts_ordered_by"] = decision.parts_ordered_by.value

        updated = await self.db.update_part_request(request_id, patch)
        if updated is None:
            raise PartRequestNotFoundError(f"Part cost request {request_id} not found")
        logger.info(f"[PartRequests] Request {request_id} {status.value} by {patch['approved_by']}")
        return updated

    async def approve(self, request_id: int, decision: PartRequestDecision, admin: Technician) -> PartCostRequest:
        return await self._decide(request_id, PartRequestStatus.APPROVED, decision, admin, include_ordered_by=True)

    async def reject(self, request_id: int, decision: PartRequestDecision, admin: Technician) -> PartCostRequest:
        return await self._decide(request_id, PartRequestStatus.REJECTED, decision, admin, include_ordered_by=False)
