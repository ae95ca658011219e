import logging
from functools import wraps
from http import HTTPStatus
from flask import jsonify
from mediatank.extensions.extension import db

logger = logging.getLogger(__name__)

class MediaTankError(Exception):
    """Base class for errors raised by the service layer."""

class StorageError(MediaTankError):
    pass

class PaymentConfigurationError(MediaTankError):
    pass

class UploadNotAllowed(MediaTankError):
    def __init__(self, message, cost=None):
        super().__init__(message)
        self.cost = cost


def handle_errors(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except PaymentConfigurationError as e:
            db.session.rollback()
            return jsonify({"error": str(e)}), HTTPStatus.INTERNAL_SERVER_ERROR
        except Exception as e:
            db.session.rollback()
            logger.exception(f"Unhandled error in {f.__name__}: {str(e)}")
            return jsonify({"error": str(e)}), HTTPStatus.INTERNAL_SERVER_ERROR
    return decorated_function
