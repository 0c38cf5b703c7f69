"""Repository for po_approvals table (one row per chain level)."""

import logging
from typing import List, Optional, Sequence

from ict_platform.core.base_repository import BaseRepository
from ict_platform.database import dict_from_row
from ..models import ApprovalRecord, LevelSpec, RecordStatus, RequestStatus

logger = logging.getLogger('ict_platform.purchasing.approvals.record_repo')

# A level is open only while every lower level of the same order is approved
_PRIOR_LEVELS_APPROVED = '''
    NOT EXISTS (
        SELECT 1 FROM po_approvals prev
        WHERE prev.request_id = a.request_id
        AND prev.level < a.level
        AND prev.status <> 'approved'
    )
'''


class RecordRepository(BaseRepository):

    def create_chain(self, request_id, levels: Sequence[LevelSpec]) -> Optional[List[ApprovalRecord]]:
        """Mark the order pending_approval and insert one pending row per level.

        Runs in one transaction. Returns None without writing anything if the
        order's approval_status is no longer 'none'.
        """
        def _work(cursor):
            cursor.execute('''
                UPDATE purchase_orders
                SET approval_status = %s, updated_at = NOW()
                WHERE id = %s AND approval_status = %s
            ''', (RequestStatus.PENDING_APPROVAL.value, request_id, RequestStatus.NONE.value))
            if cursor.rowcount != 1:
                return None

            records = []
            for number, spec in enumerate(levels, start=1):
                cursor.execute('''
                    INSERT INTO po_approvals
                        (request_id, level, approver_role, approver_user_id, status)
                    VALUES (%s, %s, %s, %s, %s)
                    RETURNING *
                ''', (request_id, number, spec.role, spec.user, RecordStatus.PENDING.value))
                records.append(ApprovalRecord.from_row(dict_from_row(cursor.fetchone())))
            return records

        return self.execute_many(_work)

    def get_for_request(self, request_id) -> List[ApprovalRecord]:
        rows = self.query_all('''
            SELECT * FROM po_approvals
            WHERE request_id = %s
            ORDER BY level
        ''', (request_id,))
        return [ApprovalRecord.from_row(r) for r in rows]

    def transition(self, record_id, status: RecordStatus, actor_id,
                   comments=None) -> Optional[ApprovalRecord]:
        """Move a pending record to status in one conditional UPDATE.

        The row only changes if it is still pending, all lower levels are
        approved, and the order is still pending_approval. Returns the
        updated record, or None if another caller got there first.
        """
        row = self.execute(f'''
            UPDATE po_approvals a
            SET status = %s, actor_id = %s, comments = %s, decided_at = NOW()
            WHERE a.id = %s
            AND a.status = 'pending'
            AND {_PRIOR_LEVELS_APPROVED}
            AND EXISTS (
                SELECT 1 FROM purchase_orders po
                WHERE po.id = a.request_id AND po.approval_status = 'pending_approval'
            )
            RETURNING a.*
        ''', (status.value, actor_id, comments, record_id), returning=True)
        return ApprovalRecord.from_row(row) if row else None

    def count_pending(self, request_id) -> int:
        row = self.query_one('''
            SELECT COUNT(*) as cnt FROM po_approvals
            WHERE request_id = %s AND status = 'pending'
        ''', (request_id,))
        return row['cnt'] if row else 0

    def get_actionable_for(self, user_id, roles, any_approver=False) -> List[ApprovalRecord]:
        """Open records on pending orders that user_id or one of roles may act on.

        With any_approver=True every open record is returned (admin queue).
        """
        params = []
        approver_clause = ''
        if not any_approver:
            approver_clause = 'AND (a.approver_user_id = %s OR a.approver_role = ANY(%s))'
            params = [user_id, list(roles)]

        rows = self.query_all(f'''
            SELECT a.* FROM po_approvals a
            JOIN purchase_orders po ON po.id = a.request_id
            WHERE a.status = 'pending'
            AND po.approval_status = 'pending_approval'
            {approver_clause}
            AND {_PRIOR_LEVELS_APPROVED}
            ORDER BY a.created_at, a.request_id
        ''', params)
        return [ApprovalRecord.from_row(r) for r in rows]

    def get_by_actor(self, actor_id, limit=50) -> List[ApprovalRecord]:
        """Records decided by actor_id, newest first."""
        rows = self.query_all('''
            SELECT * FROM po_approvals
            WHERE actor_id = %s
            ORDER BY decided_at DESC
            LIMIT %s
        ''', (actor_id, limit))
        return [ApprovalRecord.from_row(r) for r in rows]
