"""ICT Platform Core Authentication Module.

Flask-Login user model and user lookups. Login/logout views live in the
host application; this package only loads users for the session.
"""
