"""ApprovalEngine — core orchestrator for purchase-order approval.

All approval logic flows through this class. Routes and other modules
NEVER manipulate po_approvals rows or approval_status directly.

The engine is constructed with its collaborators:
    rules     — active_rules(), seed_defaults()
    records   — create_chain(), get_for_request(), transition(), count_pending(),
                get_actionable_for(), get_by_actor()
    requests  — get(), transition_status()
    identity  — roles_of(user_id)
    notifier  — approval_required(), level_approved(), fully_approved(), rejected()
"""

import logging

from ict_platform.core.utils.logging_config import log_with_context
from .authorization import AdminOverride, AuthorizationResolver, authorizer_for
from .config import ApprovalConfig
from .exceptions import (
    AlreadyInitiatedError, AlreadyTerminalError, InvalidAmountError, NoMatchingRuleError,
    NotAuthorizedError, NotFoundError, ReasonRequiredError,
)
from .models import (
    ApprovalRecord, Outcome, OutcomeKind, Principal, RecordStatus,
    RequestStatus,
)
from .notifier import Notifier
from .resolver import RuleResolver

logger = logging.getLogger('ict_platform.purchasing.approvals.engine')


class ApprovalEngine:

    def __init__(self, rules, records, requests, identity,
                 notifier: Notifier = None, config: ApprovalConfig = None):
        self._rules = rules
        self._records = records
        self._requests = requests
        self._identity = identity
        self._notifier = notifier or Notifier()
        self.config = config or ApprovalConfig()
        self._resolver = RuleResolver(rules)
        self._authorization = AuthorizationResolver(identity)

    # ════════════════════════════════════════════
    # Workflow initiation
    # ════════════════════════════════════════════

    def initiate(self, request_id) -> Outcome:
        """Start approval for a purchase order.

        1. Resolve the rule for the order total held by the request store
        2. No rule → no-rule policy; under auto-approve floor → approve
        3. Otherwise materialize the chain and mark pending_approval
        4. Notify approval_required (chain path only)
        """
        req = self._get_request(request_id)
        if req.status != RequestStatus.NONE:
            raise AlreadyInitiatedError(request_id, req.status.value)

        amount = req.amount
        if amount < 0:
            raise InvalidAmountError(request_id, amount)
        rule = self._resolver.resolve(amount)

        if rule is None:
            return self._apply_no_rule_policy(request_id, amount)

        if rule.skips_chain(amount):
            self._finish_without_chain(request_id, RequestStatus.APPROVED)
            log_with_context(logger, logging.INFO, 'Purchase order auto-approved',
                             request_id=request_id, amount=str(amount), rule_id=rule.id,
                             reason='below auto-approve floor')
            return Outcome(OutcomeKind.AUTO_APPROVED, request_id, rule=rule)

        records = self._records.create_chain(request_id, rule.levels)
        if records is None:
            current = self._get_request(request_id)
            raise AlreadyInitiatedError(request_id, current.status.value)

        log_with_context(logger, logging.INFO, 'Approval chain created',
                         request_id=request_id, amount=str(amount), rule_id=rule.id,
                         levels=len(records))
        self._notify('approval_required', request_id, rule)
        return Outcome(OutcomeKind.CHAIN_CREATED, request_id,
                       records=tuple(records), rule=rule)

    def ensure_default_rules(self) -> int:
        """Seed the default bands when enabled and the rule store is empty."""
        if not self.config.SEED_DEFAULT_RULES:
            return 0
        return self._rules.seed_defaults()

    # ════════════════════════════════════════════
    # Decision gate
    # ════════════════════════════════════════════

    def find_actionable_record(self, request_id, principal: Principal,
                               authorizer=None) -> ApprovalRecord | None:
        """The pending record principal may act on, with all lower levels approved."""
        authorizer = authorizer or self._authorization
        for record in self._records.get_for_request(request_id):
            if record.status == RecordStatus.APPROVED:
                continue
            if record.status != RecordStatus.PENDING:
                # Rejected level blocks everything after it
                return None
            if authorizer.can_act(principal, record.approver_spec):
                return record
            # Lowest pending level belongs to someone else
            return None
        return None

    def approve(self, request_id, principal: Principal, comments=None,
                authorizer=None) -> Outcome:
        """Approve the principal's open level.

        Returns LEVEL_APPROVED while levels remain, FULLY_APPROVED once the
        last level is approved. Approving an already approved order returns
        FULLY_APPROVED with already_terminal=True.
        """
        req = self._get_request(request_id)
        if req.status == RequestStatus.APPROVED:
            return Outcome(OutcomeKind.FULLY_APPROVED, request_id, already_terminal=True)
        if req.status == RequestStatus.REJECTED:
            raise AlreadyTerminalError(request_id, req.status.value)
        if req.status != RequestStatus.PENDING_APPROVAL:
            raise NotAuthorizedError(request_id, principal.id)

        record = self.find_actionable_record(request_id, principal, authorizer)
        if record is None:
            logger.debug(f'User {principal.id} has no actionable level on PO {request_id}')
            raise NotAuthorizedError(request_id, principal.id)

        updated = self._records.transition(
            record.id, RecordStatus.APPROVED, principal.id, comments=comments)
        if updated is None:
            return self._lost_race(request_id, principal, OutcomeKind.FULLY_APPROVED)

        log_with_context(logger, logging.INFO, 'Approval level approved',
                         request_id=request_id, approval_level=updated.level, actor_id=principal.id)

        # Fresh read after the record commit decides full approval
        if self._records.count_pending(request_id) > 0:
            self._notify('level_approved', request_id, updated.level)
            return Outcome(OutcomeKind.LEVEL_APPROVED, request_id, level=updated.level,
                           records=(updated,))

        if not self._requests.transition_status(
                request_id, RequestStatus.PENDING_APPROVAL, RequestStatus.APPROVED):
            return Outcome(OutcomeKind.FULLY_APPROVED, request_id, level=updated.level,
                           records=(updated,), already_terminal=True)

        log_with_context(logger, logging.INFO, 'Purchase order fully approved',
                         request_id=request_id, final_level=updated.level)
        self._notify('fully_approved', request_id)
        return Outcome(OutcomeKind.FULLY_APPROVED, request_id, level=updated.level,
                       records=(updated,))

    def reject(self, request_id, principal: Principal, reason,
               authorizer=None) -> Outcome:
        """Reject the principal's open level; the whole order becomes rejected.

        Pending levels after the rejected one are left untouched.
        Rejecting an already rejected order returns REJECTED with
        already_terminal=True.
        """
        reason = (reason or '').strip()
        if not reason:
            raise ReasonRequiredError()

        req = self._get_request(request_id)
        if req.status == RequestStatus.REJECTED:
            return Outcome(OutcomeKind.REJECTED, request_id, already_terminal=True)
        if req.status == RequestStatus.APPROVED:
            raise AlreadyTerminalError(request_id, req.status.value)
        if req.status != RequestStatus.PENDING_APPROVAL:
            raise NotAuthorizedError(request_id, principal.id)

        record = self.find_actionable_record(request_id, principal, authorizer)
        if record is None:
            logger.debug(f'User {principal.id} has no actionable level on PO {request_id}')
            raise NotAuthorizedError(request_id, principal.id)

        updated = self._records.transition(
            record.id, RecordStatus.REJECTED, principal.id, comments=reason)
        if updated is None:
            return self._lost_race(request_id, principal, OutcomeKind.REJECTED)

        self._requests.transition_status(
            request_id, RequestStatus.PENDING_APPROVAL, RequestStatus.REJECTED)

        log_with_context(logger, logging.INFO, 'Purchase order rejected',
                         request_id=request_id, approval_level=updated.level, actor_id=principal.id)
        self._notify('rejected', request_id, reason)
        return Outcome(OutcomeKind.REJECTED, request_id, level=updated.level,
                       records=(updated,))

    # ════════════════════════════════════════════
    # Queries
    # ════════════════════════════════════════════

    def authorizer_for(self, principal: Principal):
        """Authorizer a caller should pass for principal (admin override or role/user check)."""
        return authorizer_for(principal, self._identity, self.config.ADMIN_ROLE)

    def get_pending_for(self, principal: Principal, authorizer=None) -> list[ApprovalRecord]:
        """Records waiting on principal's decision right now."""
        any_approver = isinstance(authorizer, AdminOverride)
        roles = set() if any_approver else self._identity.roles_of(principal.id)
        return self._records.get_actionable_for(principal.id, roles, any_approver=any_approver)

    def get_history(self, request_id) -> list[ApprovalRecord]:
        """Full chain for an order, ordered by level."""
        self._get_request(request_id)
        return self._records.get_for_request(request_id)

    def get_decisions_by(self, user_id, limit=None) -> list[ApprovalRecord]:
        """Levels user_id approved or rejected, newest first."""
        return self._records.get_by_actor(user_id, limit or self.config.MY_APPROVALS_LIMIT)

    # ════════════════════════════════════════════
    # Internal
    # ════════════════════════════════════════════

    def _get_request(self, request_id):
        req = self._requests.get(request_id)
        if req is None:
            raise NotFoundError('Purchase order', request_id)
        return req

    def _apply_no_rule_policy(self, request_id, amount) -> Outcome:
        policy = self.config.NO_RULE_POLICY
        if policy == 'hold':
            raise NoMatchingRuleError(request_id, amount)
        if policy == 'reject':
            self._finish_without_chain(request_id, RequestStatus.REJECTED)
            log_with_context(logger, logging.INFO, 'Purchase order rejected: no approval rule',
                             request_id=request_id, amount=str(amount))
            reason = f'No approval rule covers amount {amount}'
            self._notify('rejected', request_id, reason)
            return Outcome(OutcomeKind.REJECTED, request_id)

        self._finish_without_chain(request_id, RequestStatus.APPROVED)
        log_with_context(logger, logging.INFO, 'Purchase order auto-approved',
                         request_id=request_id, amount=str(amount), reason='no matching rule')
        return Outcome(OutcomeKind.AUTO_APPROVED, request_id)

    def _finish_without_chain(self, request_id, status: RequestStatus):
        if not self._requests.transition_status(request_id, RequestStatus.NONE, status):
            current = self._get_request(request_id)
            raise AlreadyInitiatedError(request_id, current.status.value)

    def _lost_race(self, request_id, principal, same_kind: OutcomeKind) -> Outcome:
        """Another caller moved the record first; report what they left behind."""
        current = self._get_request(request_id)
        same_status = (RequestStatus.APPROVED if same_kind == OutcomeKind.FULLY_APPROVED
                       else RequestStatus.REJECTED)
        if current.status == same_status:
            return Outcome(same_kind, request_id, already_terminal=True)
        if current.status.is_terminal:
            raise AlreadyTerminalError(request_id, current.status.value)
        raise NotAuthorizedError(request_id, principal.id)

    def _notify(self, event, *args):
        try:
            getattr(self._notifier, event)(*args)
        except Exception as e:
            logger.error(f'Notifier {event} failed for PO {args[0]}: {e}', exc_info=True)


def build_engine(config: ApprovalConfig = None, notifier: Notifier = None) -> ApprovalEngine:
    """Engine wired to the PostgreSQL repositories."""
    from ict_platform.core.roles.repositories import UserRoleRepository
    from .repositories import RuleRepository, RecordRepository, RequestRepository

    return ApprovalEngine(
        rules=RuleRepository(),
        records=RecordRepository(),
        requests=RequestRepository(),
        identity=UserRoleRepository(),
        notifier=notifier,
        config=config or ApprovalConfig.from_env(),
    )
