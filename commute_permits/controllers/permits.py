from flask import Blueprint, request, jsonify, send_file, abort
from commute_permits.services import get_services
from commute_permits.services.permit_registry import PermitRegistry
from commute_permits.utils.error_handler import ValidationError, error_handler
from commute_permits.utils.helpers import get_json_body, public_base_url
from commute_permits.utils.security import admin_required

permits_bp = Blueprint('permits', __name__, url_prefix='/api')
# Verification links encoded in QR codes point here
public_bp = Blueprint('public', __name__)


@permits_bp.route('/permits')
@admin_required
def list_permits():
    permits = PermitRegistry.list_all(employee_id=request.args.get('employee_id'))
    return jsonify({'success': True, 'permits': [permit.to_dict() for permit in permits]})


@permits_bp.route('/permits/<permit_id>/regenerate', methods=['POST'])
@admin_required
@error_handler
def regenerate(permit_id):
    file_key = get_services().eligibility.regenerate_artifact(permit_id, base_url=public_base_url())
    return jsonify({
        'success': True,
        'message': 'Permit artifact regenerated',
        'file_key': file_key,
    })


@permits_bp.route('/permits/<permit_id>/download')
@admin_required
def download(permit_id):
    permit = PermitRegistry.get(permit_id)
    if permit is None or not permit.permit_file_key:
        abort(404)
    renderer = get_services().eligibility.renderer
    return send_file(renderer.path_for(permit.permit_file_key), mimetype='application/pdf',
                     as_attachment=True, download_name=permit.permit_file_key)


@permits_bp.route('/permits/generate-for-employee', methods=['POST'])
@admin_required
@error_handler
def generate_for_employee():
    employee_id = get_json_body().get('employee_id')
    if not employee_id:
        raise ValidationError("employee_id is required")
    result = get_services().eligibility.check_and_issue(employee_id, base_url=public_base_url())
    return jsonify({'success': result.ok, 'result': result.to_dict()})


@permits_bp.route('/verify/<token>')
@public_bp.route('/verify/<token>')
def verify(token):
    """Public verification endpoint, no login required."""
    return jsonify(PermitRegistry.verify(token))
