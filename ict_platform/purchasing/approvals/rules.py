"""Approval rule management (admin CRUD with validation).

Edits only affect requests initiated afterwards: chains already created
keep their own copy of each level's approver.
"""

import logging

from .exceptions import NotFoundError
from .models import ApprovalRule

logger = logging.getLogger('ict_platform.purchasing.approvals.rules')


class RuleService:

    def __init__(self, rule_store):
        self._rules = rule_store

    def list_rules(self) -> list[ApprovalRule]:
        return self._rules.get_all()

    def get_rule(self, rule_id) -> ApprovalRule:
        rule = self._rules.get_by_id(rule_id)
        if rule is None:
            raise NotFoundError('Approval rule', rule_id)
        return rule

    def create_rule(self, data: dict) -> ApprovalRule:
        rule = ApprovalRule.from_dict(data).validate()
        rule.id = self._rules.create(rule)
        logger.info(f'Approval rule #{rule.id} created: {rule.name} '
                    f'[{rule.min_amount}, {rule.max_amount if rule.max_amount is not None else "∞"}] '
                    f'{len(rule.levels)} level(s)')
        return rule

    def update_rule(self, rule_id, data: dict) -> ApprovalRule:
        """Apply a partial update; fields absent from data keep their values."""
        current = self.get_rule(rule_id)
        merged = current.to_dict()
        merged.update({k: v for k, v in data.items() if k in merged and k != 'id'})
        rule = ApprovalRule.from_dict(merged, rule_id=rule_id).validate()
        if not self._rules.update(rule):
            raise NotFoundError('Approval rule', rule_id)
        logger.info(f'Approval rule #{rule_id} updated')
        return rule

    def delete_rule(self, rule_id) -> None:
        if not self._rules.delete(rule_id):
            raise NotFoundError('Approval rule', rule_id)
        logger.info(f'Approval rule #{rule_id} deleted')
