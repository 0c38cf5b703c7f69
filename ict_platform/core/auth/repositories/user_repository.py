"""User Repository - Data access layer for user lookups."""
from typing import Optional, Dict, Any

from ict_platform.core.base_repository import BaseRepository


class UserRepository(BaseRepository):
    """Repository for user data access operations."""

    def get_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        """Get a user by ID with role information."""
        return self.query_one('''
            SELECT u.*, r.name as role_name,
                   r.can_access_settings, r.can_approve_po, r.can_edit_inventory
            FROM users u
            LEFT JOIN roles r ON u.role_id = r.id
            WHERE u.id = %s
        ''', (user_id,))
