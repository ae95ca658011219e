import hmac
import logging
from functools import wraps
from http import HTTPStatus
from flask import jsonify, request, current_app

logger = logging.getLogger(__name__)

def _presented_secret():
    secret = request.headers.get('X-Cron-Secret')
    if secret:
        return secret
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        return auth_header[len('Bearer '):]
    return None

def cron_secret_required(f):
    """
    Guard for the timer-triggered endpoints.

    The caller must present CRON_SECRET either as ``X-Cron-Secret`` or as a
    bearer token. With no secret configured the endpoints stay closed.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        expected = current_app.config.get('CRON_SECRET')
        presented = _presented_secret()

        if not expected or not presented or not hmac.compare_digest(presented.encode(), expected.encode()):
            logger.warning(f"Rejected unauthorized call to {request.path}")
            return jsonify({'error': 'Unauthorized'}), HTTPStatus.UNAUTHORIZED

        return f(*args, **kwargs)

    return decorated
