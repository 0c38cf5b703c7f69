"""ICT Platform Core Module.

Shared infrastructure used by the platform sections:
- Repository base class over the database pool
- Authentication (users, roles)
- Logging and API helpers
"""
