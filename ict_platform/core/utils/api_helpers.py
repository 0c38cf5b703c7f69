"""Shared API utilities — decorators, error helpers, request validation."""
import logging
from functools import wraps

from flask import jsonify, request
from flask_login import current_user

logger = logging.getLogger('ict_platform.api')


# ============== Decorators ==============

def admin_required(f):
    """Decorator requiring authentication + can_access_settings (admin) permission."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        if not current_user.can_access_settings:
            return jsonify({'success': False, 'error': 'Permission denied'}), 403
        return f(*args, **kwargs)
    return decorated


def approver_required(f):
    """Decorator requiring the purchase-order approval permission (or admin)."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        if not (current_user.can_approve_po or current_user.can_access_settings):
            return jsonify({'success': False, 'error': 'Permission denied'}), 403
        return f(*args, **kwargs)
    return decorated


def inventory_required(f):
    """Decorator requiring the inventory edit permission (or admin)."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        if not (current_user.can_edit_inventory or current_user.can_access_settings):
            return jsonify({'success': False, 'error': 'Permission denied'}), 403
        return f(*args, **kwargs)
    return decorated


# ============== Request Validation ==============

def get_json_or_error():
    """Get JSON from request body with null check.

    Returns (data, error_response) tuple. Caller pattern:
        data, error = get_json_or_error()
        if error:
            return error
    """
    data = request.get_json(silent=True)
    if data is None:
        return None, (jsonify({
            'success': False,
            'error': 'Invalid or missing JSON body',
        }), 400)
    return data, None


# ============== Error Handling ==============

def error_response(message, status_code=400):
    """Return the standard JSON error envelope."""
    return jsonify({'success': False, 'error': message}), status_code


def safe_error_response(e, status_code=500):
    """Return error response without leaking DB internals.

    - ValueError/KeyError: returns str(e) as 400 (business validation, safe to expose)
    - Everything else: logs full exception, returns generic message
    """
    if isinstance(e, (ValueError, KeyError)):
        return jsonify({'success': False, 'error': str(e)}), 400

    logger.exception('Unhandled error in API route')
    return jsonify({'success': False, 'error': 'An internal error occurred'}), status_code
