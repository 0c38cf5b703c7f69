"""ICT Platform Core Auth Models.

User model for Flask-Login authentication.
"""
from flask_login import UserMixin


class User(UserMixin):
    """User class for Flask-Login."""

    def __init__(self, user_data):
        self.id = user_data['id']
        self.email = user_data['email']
        self.name = user_data['name']
        self.role_id = user_data.get('role_id')
        self.role_name = user_data.get('role_name')
        self.is_active_user = user_data.get('is_active', True)

        self.can_access_settings = bool(user_data.get('can_access_settings', False))
        self.can_approve_po = bool(user_data.get('can_approve_po', False))
        self.can_edit_inventory = bool(user_data.get('can_edit_inventory', False))

    @property
    def is_active(self):
        return self.is_active_user

    @property
    def is_admin(self):
        """Administrators may act on any approval level."""
        return self.can_access_settings
