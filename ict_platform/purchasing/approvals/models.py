"""
Purchase-order approval data classes.

These are used for internal data transfer between the engine and its
stores, not ORM models. Rows coming from the repositories are mapped with
the from_row() constructors.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import InvalidRuleError

MAX_LEVELS = 3


class RequestStatus(str, Enum):
    """Approval status of a purchase order."""
    NONE = 'none'
    PENDING_APPROVAL = 'pending_approval'
    APPROVED = 'approved'
    REJECTED = 'rejected'

    @property
    def is_terminal(self) -> bool:
        return self in (RequestStatus.APPROVED, RequestStatus.REJECTED)


class RecordStatus(str, Enum):
    """Status of a single level in an approval chain."""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class OutcomeKind(str, Enum):
    AUTO_APPROVED = 'auto_approved'
    CHAIN_CREATED = 'chain_created'
    LEVEL_APPROVED = 'level_approved'
    FULLY_APPROVED = 'fully_approved'
    REJECTED = 'rejected'


def to_decimal(value, field_name='amount') -> Decimal:
    """Coerce a number or numeric string to a finite Decimal."""
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidRuleError(f'{field_name} must be a number, got {value!r}')
    if not d.is_finite():
        raise InvalidRuleError(f'{field_name} must be a finite number, got {value!r}')
    return d


def to_bool(value, field_name='is_active') -> bool:
    """Parse a JSON/form boolean; strings like 'false' and '0' are False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ('true', '1', 'yes', 'on'):
            return True
        if text in ('false', '0', 'no', 'off', ''):
            return False
    raise InvalidRuleError(f'{field_name} must be a boolean, got {value!r}')


@dataclass(frozen=True)
class LevelSpec:
    """Who may sign off one level: a role, a specific user, or either."""
    role: Optional[str] = None
    user: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LevelSpec':
        role = (data.get('role') or '').strip() or None
        user = data.get('user')
        return cls(role=role, user=int(user) if user else None)

    def to_dict(self) -> Dict[str, Any]:
        return {'role': self.role, 'user': self.user}


@dataclass
class ApprovalRule:
    """
    Amount band mapped to an ordered list of approval levels.
    Maps to po_approval_rules table.
    """
    id: Optional[int] = None
    name: str = ''
    min_amount: Decimal = Decimal('0')
    max_amount: Optional[Decimal] = None  # None = no upper bound
    levels: List[LevelSpec] = field(default_factory=list)
    auto_approve_below: Decimal = Decimal('0')
    is_active: bool = True

    def matches(self, amount: Decimal) -> bool:
        """True if the rule is active and its band contains amount (both ends inclusive)."""
        if not self.is_active:
            return False
        if amount < self.min_amount:
            return False
        return self.max_amount is None or amount <= self.max_amount

    def skips_chain(self, amount: Decimal) -> bool:
        """True if amount falls under the auto-approve floor."""
        return self.auto_approve_below > 0 and amount < self.auto_approve_below

    def validate(self) -> 'ApprovalRule':
        """Raise InvalidRuleError unless the rule can be stored."""
        if not self.name or not self.name.strip():
            raise InvalidRuleError('Rule name is required')
        if self.min_amount < 0:
            raise InvalidRuleError('min_amount cannot be negative')
        if self.max_amount is not None and self.max_amount < self.min_amount:
            raise InvalidRuleError('max_amount must be greater than or equal to min_amount')
        if self.auto_approve_below < 0:
            raise InvalidRuleError('auto_approve_below cannot be negative')
        if not 1 <= len(self.levels) <= MAX_LEVELS:
            raise InvalidRuleError(f'A rule needs between 1 and {MAX_LEVELS} approval levels')
        for number, spec in enumerate(self.levels, start=1):
            if not spec.role and not spec.user:
                raise InvalidRuleError(f'Level {number} needs an approver role or user')
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any], rule_id: Optional[int] = None) -> 'ApprovalRule':
        """Build a rule from an API payload. Call validate() before storing."""
        max_amount = data.get('max_amount')
        return cls(
            id=rule_id,
            name=(data.get('name') or '').strip(),
            min_amount=to_decimal(data.get('min_amount') or 0, 'min_amount'),
            max_amount=(to_decimal(max_amount, 'max_amount')
                        if max_amount not in (None, '') else None),
            levels=[LevelSpec.from_dict(level) for level in data.get('levels') or []],
            auto_approve_below=to_decimal(data.get('auto_approve_below') or 0, 'auto_approve_below'),
            is_active=to_bool(data.get('is_active', True)),
        )

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'ApprovalRule':
        max_amount = row.get('max_amount')
        return cls(
            id=row['id'],
            name=row.get('name') or '',
            min_amount=to_decimal(row.get('min_amount') or 0),
            max_amount=to_decimal(max_amount) if max_amount is not None else None,
            levels=[LevelSpec.from_dict(level) for level in row.get('levels') or []],
            auto_approve_below=to_decimal(row.get('auto_approve_below') or 0),
            is_active=to_bool(row.get('is_active', True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'min_amount': str(self.min_amount),
            'max_amount': str(self.max_amount) if self.max_amount is not None else None,
            'levels': [level.to_dict() for level in self.levels],
            'auto_approve_below': str(self.auto_approve_below),
            'is_active': self.is_active,
        }


@dataclass
class ApprovalRequest:
    """The purchase order under approval. Only amount and status are used."""
    id: int
    amount: Decimal = Decimal('0')
    status: RequestStatus = RequestStatus.NONE

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'ApprovalRequest':
        return cls(
            id=row['id'],
            amount=to_decimal(row.get('amount') or 0),
            status=RequestStatus(row.get('status') or RequestStatus.NONE.value),
        )


@dataclass
class ApprovalRecord:
    """
    One level of a materialized chain.
    Maps to po_approvals table.
    """
    id: Optional[int]
    request_id: int
    level: int
    approver_spec: LevelSpec
    status: RecordStatus = RecordStatus.PENDING
    actor_id: Optional[int] = None
    comments: Optional[str] = None
    decided_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RecordStatus.PENDING

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'ApprovalRecord':
        return cls(
            id=row['id'],
            request_id=row['request_id'],
            level=row['level'],
            approver_spec=LevelSpec(role=row.get('approver_role'),
                                    user=row.get('approver_user_id')),
            status=RecordStatus(row['status']),
            actor_id=row.get('actor_id'),
            comments=row.get('comments'),
            decided_at=row.get('decided_at'),
            created_at=row.get('created_at'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'request_id': self.request_id,
            'level': self.level,
            'approver_role': self.approver_spec.role,
            'approver_user_id': self.approver_spec.user,
            'status': self.status.value,
            'actor_id': self.actor_id,
            'comments': self.comments,
            'decided_at': _iso(self.decided_at),
            'created_at': _iso(self.created_at),
        }


@dataclass(frozen=True)
class Principal:
    """The user acting on a chain."""
    id: int
    is_admin: bool = False


@dataclass(frozen=True)
class Outcome:
    """Result of an initiate/approve/reject call.

    already_terminal is set when a duplicate action found the request
    already in the outcome's terminal state and nothing was changed.
    """
    kind: OutcomeKind
    request_id: int
    level: Optional[int] = None
    records: Tuple[ApprovalRecord, ...] = ()
    rule: Optional[ApprovalRule] = None
    already_terminal: bool = False

    @property
    def status(self) -> RequestStatus:
        if self.kind in (OutcomeKind.AUTO_APPROVED, OutcomeKind.FULLY_APPROVED):
            return RequestStatus.APPROVED
        if self.kind == OutcomeKind.REJECTED:
            return RequestStatus.REJECTED
        return RequestStatus.PENDING_APPROVAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            'outcome': self.kind.value,
            'request_id': self.request_id,
            'status': self.status.value,
            'level': self.level,
            'levels': [record.to_dict() for record in self.records],
            'rule_id': self.rule.id if self.rule else None,
            'fully_approved': self.kind in (OutcomeKind.AUTO_APPROVED, OutcomeKind.FULLY_APPROVED),
            'already_terminal': self.already_terminal,
        }


def _iso(value):
    if value is None or isinstance(value, str):
        return value
    return value.isoformat()
