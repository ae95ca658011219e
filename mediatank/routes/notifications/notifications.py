from flask import Blueprint, jsonify
from http import HTTPStatus
from mediatank.services.notification_service import (
    list_notifications,
    mark_as_read,
    mark_all_as_read
)
from mediatank.utils.auth import token_required
from mediatank.utils.errors import handle_errors

notifications_bp = Blueprint('notifications', __name__, url_prefix='/api/notifications')

@notifications_bp.route('', methods=['GET'])
@token_required
@handle_errors
def get_notifications(current_user):
    notifications, unread_count = list_notifications(current_user.id)
    return jsonify({
        'notifications': [n.to_dict() for n in notifications],
        'unread_count': unread_count
    }), HTTPStatus.OK

@notifications_bp.route('/<uuid:notification_id>/read', methods=['POST'])
@token_required
@handle_errors
def read_notification(current_user, notification_id):
    # Another user's notification matches no rows and is reported as updated: 0
    updated = mark_as_read(notification_id, current_user.id)
    return jsonify({'success': True, 'updated': updated}), HTTPStatus.OK

@notifications_bp.route('/read-all', methods=['POST'])
@token_required
@handle_errors
def read_all_notifications(current_user):
    updated = mark_all_as_read(current_user.id)
    return jsonify({'success': True, 'updated': updated}), HTTPStatus.OK
