"""Repository for the approval side of purchase_orders.

Purchase orders belong to the inventory module; this repository only reads
the order total and writes approval_status.
"""

import logging
from typing import Optional

from ict_platform.core.base_repository import BaseRepository
from ..models import ApprovalRequest, RequestStatus

logger = logging.getLogger('ict_platform.purchasing.approvals.request_repo')


class RequestRepository(BaseRepository):

    def get(self, request_id) -> Optional[ApprovalRequest]:
        row = self.query_one('''
            SELECT id, total_amount as amount, approval_status as status
            FROM purchase_orders
            WHERE id = %s
        ''', (request_id,))
        return ApprovalRequest.from_row(row) if row else None

    def transition_status(self, request_id, expected: RequestStatus, new: RequestStatus) -> bool:
        """Set approval_status to new only if it is still expected.

        Returns True if this call made the transition.
        """
        return self.execute('''
            UPDATE purchase_orders
            SET approval_status = %s, updated_at = NOW()
            WHERE id = %s AND approval_status = %s
        ''', (new.value, request_id, expected.value)) == 1
