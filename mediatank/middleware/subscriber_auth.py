from functools import wraps
from http import HTTPStatus
from flask import jsonify
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from mediatank.models.user import UserRole
from mediatank.utils.auth import load_user

UPLOAD_ROLES = (UserRole.SUBSCRIBER, UserRole.ADMIN)

def subscriber_required(f):
    """
    Middleware that only lets subscribers (and admins) through.
    Anyone else gets a 403 Forbidden response.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            verify_jwt_in_request()
            current_user = load_user(get_jwt_identity())
        except Exception as e:
            return jsonify({'message': f'Authentication error: {str(e)}'}), HTTPStatus.UNAUTHORIZED

        if not current_user:
            return jsonify({'message': 'Invalid token: User not found'}), HTTPStatus.UNAUTHORIZED

        if current_user.role not in UPLOAD_ROLES:
            return jsonify({
                'message': 'Only subscribers can upload media'
            }), HTTPStatus.FORBIDDEN

        return f(current_user, *args, **kwargs)

    return decorated
