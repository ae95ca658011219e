from flask import Blueprint, request, jsonify
from http import HTTPStatus
from mediatank.middleware.subscriber_auth import subscriber_required
from mediatank.services.s3_service import get_storage
from mediatank.services.upload_credits import user_upload_status, STATUS_FREE, STATUS_PAID
from mediatank.utils.auth import token_required
from mediatank.utils.errors import handle_errors, StorageError

upload_bp = Blueprint('upload', __name__, url_prefix='/api/upload')

ALLOWED_CONTENT_PREFIXES = ('video/', 'image/', 'audio/')

@upload_bp.route('/status', methods=['GET'])
@token_required
@handle_errors
def get_upload_status(current_user):
    return jsonify(user_upload_status(current_user)), HTTPStatus.OK

@upload_bp.route('/url', methods=['POST'])
@subscriber_required
@handle_errors
def get_upload_url(current_user):
    """
    Presigned URL for a direct browser upload.
    Checks the allowance up front; it is spent when the media is registered.
    """
    data = request.get_json(silent=True) or {}

    filename = data.get('filename')
    if not filename:
        return jsonify({'error': 'filename is required'}), HTTPStatus.BAD_REQUEST

    content_type = data.get('content_type')
    if content_type and not content_type.startswith(ALLOWED_CONTENT_PREFIXES):
        return jsonify({'error': 'Only video, image and audio files can be uploaded'}), HTTPStatus.BAD_REQUEST

    status = user_upload_status(current_user)
    if status['status_type'] != STATUS_FREE:
        payload = {'error': status['status_message']}
        if status['status_type'] == STATUS_PAID:
            payload['cost'] = status['cost_per_upload']
        return jsonify(payload), HTTPStatus.PAYMENT_REQUIRED

    try:
        upload = get_storage().generate_upload_url(current_user.id, filename, content_type)
    except StorageError as e:
        return jsonify({'error': str(e)}), HTTPStatus.BAD_GATEWAY

    return jsonify(upload), HTTPStatus.OK
