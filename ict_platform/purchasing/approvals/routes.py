"""API routes for purchase-order approval."""

import logging
from flask import current_app, jsonify, request
from flask_login import current_user

from . import po_approvals_bp, EXTENSION_KEY, RULES_EXTENSION_KEY
from .exceptions import ApprovalError
from .models import Principal
from ict_platform.core.utils.api_helpers import (
    admin_required, approver_required, inventory_required,
    error_response, get_json_or_error, safe_error_response,
)

logger = logging.getLogger('ict_platform.purchasing.approvals.routes')


def _engine():
    return current_app.extensions[EXTENSION_KEY]


def _rule_service():
    return current_app.extensions[RULES_EXTENSION_KEY]


def _principal():
    return Principal(id=current_user.id, is_admin=bool(current_user.is_admin))


def _approval_error(e: ApprovalError):
    return error_response(str(e), e.status_code)


# ════════════════════════════════════════════
# Workflow
# ════════════════════════════════════════════

@po_approvals_bp.route('/api/<int:po_id>/initiate', methods=['POST'])
@inventory_required
def api_initiate(po_id):
    """Start approval for a newly created purchase order, using its stored total."""
    try:
        outcome = _engine().initiate(po_id)
        return jsonify({'success': True, **outcome.to_dict()})
    except ApprovalError as e:
        return _approval_error(e)
    except Exception as e:
        return safe_error_response(e)


@po_approvals_bp.route('/api/pending-approval', methods=['GET'])
@approver_required
def api_pending():
    """Levels waiting on the current user's decision."""
    engine = _engine()
    principal = _principal()
    try:
        records = engine.get_pending_for(principal, engine.authorizer_for(principal))
        return jsonify({'approvals': [r.to_dict() for r in records]})
    except Exception as e:
        return safe_error_response(e)


@po_approvals_bp.route('/api/<int:po_id>/approve', methods=['POST'])
@approver_required
def api_approve(po_id):
    data = request.get_json(silent=True) or {}
    comments = (data.get('comments') or '').strip() or None
    engine = _engine()
    principal = _principal()

    try:
        outcome = engine.approve(po_id, principal, comments=comments,
                                 authorizer=engine.authorizer_for(principal))
        return jsonify({'success': True, **outcome.to_dict()})
    except ApprovalError as e:
        return _approval_error(e)
    except Exception as e:
        return safe_error_response(e)


@po_approvals_bp.route('/api/<int:po_id>/reject', methods=['POST'])
@approver_required
def api_reject(po_id):
    data = request.get_json(silent=True) or {}
    engine = _engine()
    principal = _principal()

    try:
        outcome = engine.reject(po_id, principal, data.get('reason'),
                                authorizer=engine.authorizer_for(principal))
        return jsonify({'success': True, **outcome.to_dict()})
    except ApprovalError as e:
        return _approval_error(e)
    except Exception as e:
        return safe_error_response(e)


@po_approvals_bp.route('/api/<int:po_id>/approval-history', methods=['GET'])
@inventory_required
def api_history(po_id):
    try:
        records = _engine().get_history(po_id)
        return jsonify({'history': [r.to_dict() for r in records]})
    except ApprovalError as e:
        return _approval_error(e)
    except Exception as e:
        return safe_error_response(e)


@po_approvals_bp.route('/api/my-approvals', methods=['GET'])
@inventory_required
def api_my_approvals():
    """Levels the current user has approved or rejected."""
    try:
        records = _engine().get_decisions_by(current_user.id)
        return jsonify({'approvals': [r.to_dict() for r in records]})
    except Exception as e:
        return safe_error_response(e)


# ════════════════════════════════════════════
# Rules (admin)
# ════════════════════════════════════════════

@po_approvals_bp.route('/api/approval-rules', methods=['GET'])
@admin_required
def api_list_rules():
    try:
        return jsonify({'rules': [r.to_dict() for r in _rule_service().list_rules()]})
    except Exception as e:
        return safe_error_response(e)


@po_approvals_bp.route('/api/approval-rules', methods=['POST'])
@admin_required
def api_create_rule():
    data, error = get_json_or_error()
    if error:
        return error
    try:
        rule = _rule_service().create_rule(data)
        return jsonify({'success': True, 'id': rule.id, 'rule': rule.to_dict()}), 201
    except ApprovalError as e:
        return _approval_error(e)
    except Exception as e:
        return safe_error_response(e)


@po_approvals_bp.route('/api/approval-rules/<int:rule_id>', methods=['PUT'])
@admin_required
def api_update_rule(rule_id):
    data, error = get_json_or_error()
    if error:
        return error
    if not data:
        return error_response('No data')
    try:
        rule = _rule_service().update_rule(rule_id, data)
        return jsonify({'success': True, 'rule': rule.to_dict()})
    except ApprovalError as e:
        return _approval_error(e)
    except Exception as e:
        return safe_error_response(e)


@po_approvals_bp.route('/api/approval-rules/<int:rule_id>', methods=['DELETE'])
@admin_required
def api_delete_rule(rule_id):
    try:
        _rule_service().delete_rule(rule_id)
        return jsonify({'success': True})
    except ApprovalError as e:
        return _approval_error(e)
    except Exception as e:
        return safe_error_response(e)
