from functools import wraps
from http import HTTPStatus
from flask import jsonify
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from mediatank.models.user import UserRole
from mediatank.utils.auth import load_user

def admin_required(f):
    """
    Middleware that checks if the current user has the admin role.
    If not, it returns a 403 Forbidden response.
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

        if current_user.role != UserRole.ADMIN:
            return jsonify({
                'message': 'Access denied: Admin role required'
            }), HTTPStatus.FORBIDDEN

        return f(current_user, *args, **kwargs)

    return decorated
