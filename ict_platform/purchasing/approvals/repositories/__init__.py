"""Purchase-order approval repositories."""
from .rule_repo import RuleRepository, DEFAULT_RULES
from .request_repo import RequestRepository
from .record_repo import RecordRepository

__all__ = [
    'RuleRepository', 'RequestRepository', 'RecordRepository', 'DEFAULT_RULES',
]
