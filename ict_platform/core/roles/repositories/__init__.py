from .role_repository import UserRoleRepository

__all__ = ['UserRoleRepository']
