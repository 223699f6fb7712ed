from flask import Blueprint, request, jsonify
from commute_permits.services import get_services
from commute_permits.services.notifications import NotificationHistory
from commute_permits.utils.error_handler import error_handler
from commute_permits.utils.helpers import get_json_body
from commute_permits.utils.security import admin_required, current_actor

monitoring_bp = Blueprint('monitoring', __name__, url_prefix='/api')


@monitoring_bp.route('/monitoring/expiration')
@admin_required
def expiration_summary():
    return jsonify({'success': True, 'summary': get_services().monitor.summary()})


@monitoring_bp.route('/monitoring/expiration/run', methods=['POST'])
@admin_required
def run_expiration_monitor():
    report = get_services().monitor.run()
    return jsonify({'success': True, 'report': report})


@monitoring_bp.route('/notifications/history')
@admin_required
def notification_history():
    recipient_id = request.args.get('recipient_id')
    records = NotificationHistory.get_history(recipient_id=recipient_id)
    return jsonify({
        'success': True,
        'history': [record.to_dict() for record in records],
        'stats': NotificationHistory.get_stats(recipient_id=recipient_id),
    })


@monitoring_bp.route('/settings', methods=['GET'])
@admin_required
def get_settings():
    return jsonify({'success': True, 'settings': get_services().settings.get().to_dict()})


@monitoring_bp.route('/settings', methods=['PUT'])
@admin_required
@error_handler
def update_settings():
    settings = get_services().settings.update(get_json_body(), updated_by=current_actor().id)
    return jsonify({'success': True, 'settings': settings.to_dict()})
