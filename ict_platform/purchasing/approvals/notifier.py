"""Outbound approval events.

The engine calls a Notifier after each state transition. Delivery is
fire-and-forget: failures are logged and never reach the engine.

Usage:
    notifier = HookNotifier()
    notifier.on('po.fully_approved', lambda payload: release_order(payload['request_id']))
    engine = ApprovalEngine(..., notifier=notifier)

Events:
    po.approval_required — chain created, level 1 pending
    po.level_approved    — one level approved, more pending
    po.fully_approved    — final level approved
    po.rejected          — rejected at any level
"""

import logging

logger = logging.getLogger('ict_platform.purchasing.approvals.notifier')

APPROVAL_REQUIRED = 'po.approval_required'
LEVEL_APPROVED = 'po.level_approved'
FULLY_APPROVED = 'po.fully_approved'
REJECTED = 'po.rejected'


class Notifier:
    """No-op notifier. Subclass and override the events you care about."""

    def approval_required(self, request_id, rule):
        pass

    def level_approved(self, request_id, level):
        pass

    def fully_approved(self, request_id):
        pass

    def rejected(self, request_id, reason):
        pass


class HookNotifier(Notifier):
    """Dispatches events to callbacks registered with on()."""

    def __init__(self):
        self._registry: dict[str, list] = {}

    def on(self, event_type: str, callback):
        """Register a callback for an event type."""
        self._registry.setdefault(event_type, []).append(callback)
        logger.debug(f"Registered hook for {event_type}: {getattr(callback, '__name__', callback)}")

    def clear(self, event_type: str = None):
        """Clear hooks. If event_type given, clear only that type."""
        if event_type:
            self._registry.pop(event_type, None)
        else:
            self._registry.clear()

    def fire(self, event_type: str, payload: dict):
        """Call all registered callbacks for event_type."""
        for cb in self._registry.get(event_type, []):
            try:
                cb(payload)
            except Exception as e:
                logger.error(f"Hook error for {event_type} in {getattr(cb, '__name__', cb)}: {e}",
                             exc_info=True)

    def approval_required(self, request_id, rule):
        self.fire(APPROVAL_REQUIRED, {
            'request_id': request_id, 'rule_id': rule.id, 'rule_name': rule.name,
            'levels': len(rule.levels),
        })

    def level_approved(self, request_id, level):
        self.fire(LEVEL_APPROVED, {'request_id': request_id, 'level': level})

    def fully_approved(self, request_id):
        self.fire(FULLY_APPROVED, {'request_id': request_id})

    def rejected(self, request_id, reason):
        self.fire(REJECTED, {'request_id': request_id, 'reason': reason})
