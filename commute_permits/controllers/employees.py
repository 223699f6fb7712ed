from flask import Blueprint, jsonify
from commute_permits.services.document_store import DocumentStore, resolve_model
from commute_permits.services.employees import EmployeeService
from commute_permits.utils.error_handler import NotFoundError, error_handler
from commute_permits.utils.security import admin_required

employees_bp = Blueprint('employees', __name__, url_prefix='/api')


@employees_bp.route('/employees/<employee_id>/retire', methods=['POST'])
@admin_required
@error_handler
def retire(employee_id):
    deleted = EmployeeService.retire(employee_id)
    return jsonify({'success': True, 'documents_deleted': deleted})


@employees_bp.route('/employees/<employee_id>/reactivate', methods=['POST'])
@admin_required
@error_handler
def reactivate(employee_id):
    restored = EmployeeService.reactivate(employee_id)
    return jsonify({'success': True, 'documents_restored': restored})


@employees_bp.route('/documents/<category>/<document_id>/restore', methods=['POST'])
@admin_required
@error_handler
def restore_document(category, document_id):
    resolve_model(category)
    document = DocumentStore.restore(category, document_id)
    if document is None:
        raise NotFoundError(f"{category} {document_id} not found")
    return jsonify({'success': True, 'document': document.to_dict()})
