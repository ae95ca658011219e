from functools import wraps
from http import HTTPStatus
import uuid
from flask import jsonify
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from mediatank.extensions.extension import db
from mediatank.models.user import User


def parse_uuid(value):
    """A UUID from a path, body or token value, or None if it is not one."""
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def load_user(identity):
    user_id = parse_uuid(identity)
    return db.session.get(User, user_id) if user_id else None


def current_user_optional():
    """The authenticated user if a valid token was sent, otherwise None."""
    try:
        verify_jwt_in_request(optional=True)
    except Exception:
        return None
    identity = get_jwt_identity()
    return load_user(identity) if identity else None


def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            verify_jwt_in_request()
            current_user = load_user(get_jwt_identity())
        except Exception as e:
            return jsonify({'message': f'Invalid token: {str(e)}'}), HTTPStatus.UNAUTHORIZED

        if not current_user:
            return jsonify({'message': 'Invalid token: User not found'}), HTTPStatus.UNAUTHORIZED

        return f(current_user, *args, **kwargs)

    return decorated
