"""
Purchase-order approval exceptions.

All of these are caused by caller state or input and are never retried.
Database failures are not wrapped and propagate as psycopg2 errors.
"""


class ApprovalError(Exception):
    """Base error for the approval engine."""
    status_code = 400


class NotAuthorizedError(ApprovalError):
    """Principal has no actionable record on this request."""
    status_code = 403

    def __init__(self, request_id: int, user_id: int):
        self.request_id = request_id
        self.user_id = user_id
        super().__init__(f'User {user_id} is not authorized to act on purchase order {request_id}')


class ReasonRequiredError(ApprovalError):
    """Rejection submitted without a reason."""

    def __init__(self):
        super().__init__('Rejection reason required')


class NotFoundError(ApprovalError):
    """Unknown purchase order or rule."""
    status_code = 404

    def __init__(self, kind: str, object_id: int):
        self.kind = kind
        self.object_id = object_id
        super().__init__(f'{kind} {object_id} not found')


class AlreadyTerminalError(ApprovalError):
    """Action conflicts with the request's finished state."""
    status_code = 409

    def __init__(self, request_id: int, status: str):
        self.request_id = request_id
        self.status = status
        super().__init__(f'Purchase order {request_id} is already {status}')


class AlreadyInitiatedError(ApprovalError):
    """Approval workflow was already started for this request."""
    status_code = 409

    def __init__(self, request_id: int, status: str):
        self.request_id = request_id
        self.status = status
        super().__init__(
            f'Approval for purchase order {request_id} already initiated (status: {status})')


class NoMatchingRuleError(ApprovalError):
    """No active rule covers the amount and the no-rule policy is 'hold'."""
    status_code = 404

    def __init__(self, request_id: int, amount):
        self.request_id = request_id
        self.amount = amount
        super().__init__(f'No active approval rule matches amount {amount} for purchase order {request_id}')


class InvalidRuleError(ApprovalError):
    """Approval rule payload failed validation."""


class InvalidAmountError(ApprovalError):
    """Purchase order total is negative and cannot be matched to a band."""

    def __init__(self, request_id: int, amount):
        self.request_id = request_id
        self.amount = amount
        super().__init__(f'Purchase order {request_id} has an invalid total: {amount}')
