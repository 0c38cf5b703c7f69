"""
Purchase-Order Approval Configuration

Environment variables and settings for the approval workflow.
"""

import os
from dataclasses import dataclass

NO_RULE_POLICIES = ('approve', 'reject', 'hold')


@dataclass
class ApprovalConfig:
    """Approval workflow settings."""

    # What happens when no active rule covers an amount:
    #   approve: request is approved without a chain
    #   reject:  request is rejected
    #   hold:    NoMatchingRuleError, request left untouched
    NO_RULE_POLICY: str = 'approve'

    # Role whose holders act through the admin override
    ADMIN_ROLE: str = 'administrator'

    # Insert the three default bands when the rules table is empty
    SEED_DEFAULT_RULES: bool = True

    MY_APPROVALS_LIMIT: int = 50

    def __post_init__(self):
        if self.NO_RULE_POLICY not in NO_RULE_POLICIES:
            raise ValueError(
                f"NO_RULE_POLICY must be one of {', '.join(NO_RULE_POLICIES)}, got {self.NO_RULE_POLICY!r}")

    @classmethod
    def from_env(cls) -> 'ApprovalConfig':
        """Load configuration from environment variables."""
        return cls(
            NO_RULE_POLICY=os.environ.get('PO_APPROVAL_NO_RULE_POLICY', 'approve').lower(),
            ADMIN_ROLE=os.environ.get('PO_APPROVAL_ADMIN_ROLE', 'administrator'),
            SEED_DEFAULT_RULES=os.environ.get(
                'PO_APPROVAL_SEED_DEFAULTS', 'true'
            ).lower() == 'true',
            MY_APPROVALS_LIMIT=int(os.environ.get('PO_APPROVAL_MY_APPROVALS_LIMIT', '50')),
        )
