"""Repository for po_approval_rules table."""

import json
import logging
from decimal import Decimal
from typing import List, Optional

from ict_platform.core.base_repository import BaseRepository
from ..models import ApprovalRule, LevelSpec

logger = logging.getLogger('ict_platform.purchasing.approvals.rule_repo')

DEFAULT_RULES = (
    ApprovalRule(
        name='Small Orders', min_amount=Decimal('0'), max_amount=Decimal('500'),
        levels=[LevelSpec(role='ict_inventory_manager')],
        auto_approve_below=Decimal('100'),
    ),
    ApprovalRule(
        name='Medium Orders', min_amount=Decimal('500'), max_amount=Decimal('5000'),
        levels=[LevelSpec(role='ict_inventory_manager'),
                LevelSpec(role='ict_project_manager')],
    ),
    ApprovalRule(
        name='Large Orders', min_amount=Decimal('5000'), max_amount=None,
        levels=[LevelSpec(role='ict_inventory_manager'),
                LevelSpec(role='ict_project_manager'),
                LevelSpec(role='administrator')],
    ),
)

_INSERT_SQL = '''
    INSERT INTO po_approval_rules
        (name, min_amount, max_amount, levels, auto_approve_below, is_active)
    VALUES (%s, %s, %s, %s::jsonb, %s, %s)
    RETURNING id
'''


def _levels_json(rule):
    return json.dumps([level.to_dict() for level in rule.levels])


def _insert_params(rule):
    return (
        rule.name, rule.min_amount, rule.max_amount, _levels_json(rule),
        rule.auto_approve_below, rule.is_active,
    )


class RuleRepository(BaseRepository):

    def active_rules(self) -> List[ApprovalRule]:
        """Active rules, tightest band first."""
        rows = self.query_all('''
            SELECT * FROM po_approval_rules
            WHERE is_active = TRUE
            ORDER BY min_amount DESC, id
        ''')
        return [ApprovalRule.from_row(r) for r in rows]

    def get_all(self) -> List[ApprovalRule]:
        rows = self.query_all('SELECT * FROM po_approval_rules ORDER BY min_amount, id')
        return [ApprovalRule.from_row(r) for r in rows]

    def get_by_id(self, rule_id) -> Optional[ApprovalRule]:
        row = self.query_one('SELECT * FROM po_approval_rules WHERE id = %s', (rule_id,))
        return ApprovalRule.from_row(row) if row else None

    def create(self, rule: ApprovalRule) -> int:
        row = self.execute(_INSERT_SQL, _insert_params(rule), returning=True)
        return row['id'] if row else None

    def update(self, rule: ApprovalRule) -> bool:
        return self.execute('''
            UPDATE po_approval_rules
            SET name = %s, min_amount = %s, max_amount = %s, levels = %s::jsonb,
                auto_approve_below = %s, is_active = %s, updated_at = NOW()
            WHERE id = %s
        ''', _insert_params(rule) + (rule.id,)) > 0

    def delete(self, rule_id) -> bool:
        return self.execute('DELETE FROM po_approval_rules WHERE id = %s', (rule_id,)) > 0

    def seed_defaults(self) -> int:
        """Insert DEFAULT_RULES if the table is empty. Returns rows inserted."""
        def _work(cursor):
            # Serializes concurrent workers seeding at startup
            cursor.execute('LOCK TABLE po_approval_rules IN SHARE ROW EXCLUSIVE MODE')
            cursor.execute('SELECT COUNT(*) as cnt FROM po_approval_rules')
            if cursor.fetchone()['cnt'] > 0:
                return 0
            for rule in DEFAULT_RULES:
                cursor.execute(_INSERT_SQL, _insert_params(rule))
            return len(DEFAULT_RULES)

        inserted = self.execute_many(_work)
        if inserted:
            logger.info(f'Seeded {inserted} default approval rules')
        return inserted
