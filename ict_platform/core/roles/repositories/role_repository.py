"""User role repository.

Read-only lookups of the roles held by a user. Used as the identity
provider for approval authorization, so results are never cached.
"""

import logging

from ict_platform.core.base_repository import BaseRepository

logger = logging.getLogger('ict_platform.core.roles.role_repository')


class UserRoleRepository(BaseRepository):

    def roles_of(self, user_id: int) -> set[str]:
        """Return the names of every role the user currently holds."""
        rows = self.query_all('''
            SELECT r.name FROM users u
            JOIN roles r ON r.id = u.role_id
            WHERE u.id = %s AND u.is_active = TRUE
        ''', (user_id,))
        return {row['name'] for row in rows}
