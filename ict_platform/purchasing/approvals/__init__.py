"""Purchase-order approval module."""
from flask import Blueprint

po_approvals_bp = Blueprint('po_approvals', __name__)

# Key under which the app stores its ApprovalEngine in app.extensions
EXTENSION_KEY = 'po_approvals'
RULES_EXTENSION_KEY = 'po_approval_rules'

from . import routes  # noqa: E402, F401
