"""Rule resolution: picks the approval rule that governs an amount."""

import logging
from typing import Iterable, Optional

from .models import ApprovalRule, to_decimal

logger = logging.getLogger('ict_platform.purchasing.approvals.resolver')


def select_rule(rules: Iterable[ApprovalRule], amount) -> Optional[ApprovalRule]:
    """Return the active rule whose band contains amount.

    Overlapping bands resolve to the greatest min_amount (the tightest band);
    equal min_amounts resolve to the lowest id.
    """
    amount = to_decimal(amount)
    best = None
    for rule in rules:
        if not rule.matches(amount):
            continue
        if best is None or _sort_key(rule) > _sort_key(best):
            best = rule
    return best


def _sort_key(rule: ApprovalRule):
    return rule.min_amount, -(rule.id or 0)


class RuleResolver:

    def __init__(self, rule_store):
        self._rules = rule_store

    def resolve(self, amount) -> Optional[ApprovalRule]:
        rule = select_rule(self._rules.active_rules(), amount)
        if rule is None:
            logger.debug(f'No active approval rule for amount {amount}')
        else:
            logger.debug(f'Amount {amount} resolved to rule #{rule.id} ({rule.name})')
        return rule
