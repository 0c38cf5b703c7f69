"""ICT Platform Purchasing Module.

Purchase-order approval workflow: rule-selected, sequential sign-off chains.
"""
