"""Who may act on an approval level.

The engine asks an authorizer `can_act(principal, level_spec)`. The default
AuthorizationResolver checks the level's user and role against the identity
provider. Administrators get AdminOverride, chosen by the caller via
authorizer_for(); the engine still enforces level ordering for them.
"""

import logging

from .models import LevelSpec, Principal

logger = logging.getLogger('ict_platform.purchasing.approvals.authorization')


class AuthorizationResolver:

    def __init__(self, identity):
        self._identity = identity

    def can_act(self, principal: Principal, level_spec: LevelSpec) -> bool:
        if level_spec.user is not None and level_spec.user == principal.id:
            return True
        if level_spec.role:
            # Roles are read on every call so revocations apply immediately
            return level_spec.role in self._identity.roles_of(principal.id)
        return False


class AdminOverride:
    """Authorizer that lets its principal act on any level."""

    def can_act(self, principal: Principal, level_spec: LevelSpec) -> bool:
        return True


def authorizer_for(principal: Principal, identity, admin_role: str = None):
    """Pick the authorizer a caller should hand to the engine for principal."""
    if principal.is_admin:
        return AdminOverride()
    if admin_role and admin_role in identity.roles_of(principal.id):
        logger.debug(f'User {principal.id} holds {admin_role}, using admin override')
        return AdminOverride()
    return AuthorizationResolver(identity)
