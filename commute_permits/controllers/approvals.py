from flask import Blueprint, request, jsonify
from commute_permits import limiter
from commute_permits.models import ApprovalHistory
from commute_permits.services import get_services
from commute_permits.services.approval import ApprovalService
from commute_permits.services.notification_templates import approval_template, rejection_template
from commute_permits.utils.error_handler import error_handler
from commute_permits.utils.helpers import get_json_body, public_base_url
from commute_permits.utils.logging_config import get_logger
from commute_permits.utils.security import admin_required, current_actor

logger = get_logger(__name__)

approvals_bp = Blueprint('approvals', __name__, url_prefix='/api')


@approvals_bp.route('/approvals/<document_id>', methods=['POST'])
@admin_required
@error_handler
def approve(document_id):
    body = get_json_body()
    category = body.get('type')
    services = get_services()
    
    outcome = services.approval.approve(category, document_id, current_actor())
    
    # Permit issuance must never block the approval response
    issuance = services.eligibility.check_and_issue(outcome.employee_id, base_url=public_base_url())
    if issuance.errors:
        logger.error(f"Permit issuance problems for {outcome.employee_id}: {issuance.errors}")
    
    all_approved = ApprovalService.all_categories_approved(outcome.employee_id)
    services.dispatcher.send(
        outcome.employee_id,
        approval_template(category, outcome.document.document_number, all_approved),
        'approval',
        document_type=category,
        document_id=outcome.document.id,
    )
    
    return jsonify({
        'success': True,
        'message': 'Application approved successfully',
        'document': outcome.document.to_dict(),
        'permits': issuance.to_dict(),
    })


@approvals_bp.route('/approvals/<document_id>/reject', methods=['POST'])
@admin_required
@error_handler
def reject(document_id):
    body = get_json_body()
    category = body.get('type')
    services = get_services()
    
    outcome = services.approval.reject(category, document_id, body.get('reason'), current_actor())
    services.dispatcher.send(
        outcome.employee_id,
        rejection_template(category, outcome.document.document_number, outcome.document.rejection_reason),
        'rejection',
        document_type=category,
        document_id=outcome.document.id,
    )
    
    return jsonify({
        'success': True,
        'message': 'Application rejected successfully',
        'document': outcome.document.to_dict(),
    })


@approvals_bp.route('/approvals/bulk', methods=['POST'])
@admin_required
@limiter.limit("30 per minute")
@error_handler
def bulk_approve():
    body = get_json_body()
    result = get_services().bulk.submit(
        body.get('items'),
        current_actor(),
        action=body.get('action'),
        base_url=public_base_url(),
    )
    return jsonify(result.to_dict())


@approvals_bp.route('/history')
@admin_required
def history():
    employee_id = request.args.get('employee_id')
    limit = request.args.get('limit', 100, type=int)
    entries = ApprovalHistory.get_recent(employee_id=employee_id, limit=limit)
    return jsonify({'success': True, 'history': [entry.to_dict() for entry in entries]})
