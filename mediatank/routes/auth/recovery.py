from flask import Blueprint, request, jsonify, current_app
from mediatank.extensions.extension import db
from mediatank.models.user import User
from mediatank.routes.auth.auth_utils import is_valid_email, MIN_PASSWORD_LENGTH
from mediatank.services.email_service import get_email_service
from mediatank.services.email_templates import generate_code_email
from mediatank.services.verification_service import (
    generate_code,
    store_code,
    check_code,
    normalize_email,
    VERIFICATION_EXPIRY_MINUTES,
    RESET_EXPIRY_MINUTES
)
from mediatank.utils.errors import handle_errors
from http import HTTPStatus
import logging

logger = logging.getLogger(__name__)

recovery_bp = Blueprint('recovery', __name__, url_prefix='/api/auth')

def _code_response(message, code):
    payload = {'success': True, 'message': message}
    # Lets local development work without an SMTP server
    if current_app.debug:
        payload['code'] = code
    return jsonify(payload), HTTPStatus.OK

@recovery_bp.route('/send-code', methods=['POST'])
@handle_errors
def send_verification_code():
    """
    Send a 6-digit e-mail verification code, valid for 10 minutes.
    """
    data = request.get_json(silent=True) or {}

    if not data.get('email'):
        return jsonify({'error': 'Email is required'}), HTTPStatus.BAD_REQUEST
    if not is_valid_email(data['email']):
        return jsonify({'error': 'Invalid email format'}), HTTPStatus.BAD_REQUEST

    email = normalize_email(data['email'])
    code = generate_code()
    store_code(email, code, VERIFICATION_EXPIRY_MINUTES)

    email_sent = get_email_service().send_email(
        email,
        'Your Verification Code',
        generate_code_email(code, VERIFICATION_EXPIRY_MINUTES)
    )
    if not email_sent:
        logger.warning(f"Verification code for {email} stored but the email was not delivered")

    return _code_response('Verification code sent', code)

@recovery_bp.route('/verify-code', methods=['POST'])
@handle_errors
def verify_email_code():
    """
    Check and consume an e-mail verification code.
    """
    data = request.get_json(silent=True) or {}

    if not data.get('email') or not data.get('code'):
        return jsonify({'error': 'Email and code are required'}), HTTPStatus.BAD_REQUEST

    valid, error = check_code(data['email'], data['code'], consume=True)
    if not valid:
        return jsonify({'verified': False, 'error': error}), HTTPStatus.BAD_REQUEST

    user = User.query.filter_by(email=normalize_email(data['email'])).first()
    if user and not user.email_verified:
        user.email_verified = True
        db.session.commit()

    return jsonify({'verified': True, 'message': 'Email verified successfully'}), HTTPStatus.OK

@recovery_bp.route('/forgot-password', methods=['POST'])
@handle_errors
def forgot_password():
    """
    Request a password reset code.
    Answers the same way whether or not the account exists.
    """
    data = request.get_json(silent=True) or {}

    if not data.get('email'):
        return jsonify({'error': 'Email is required'}), HTTPStatus.BAD_REQUEST

    email = normalize_email(data['email'])
    user = User.query.filter_by(email=email).first()
    generic_message = 'If an account exists with this email, a reset code has been sent.'

    if not user:
        return jsonify({'success': True, 'message': generic_message}), HTTPStatus.OK

    code = generate_code()
    store_code(email, code, RESET_EXPIRY_MINUTES)

    email_sent = get_email_service().send_email(
        email,
        'Reset Your Password',
        generate_code_email(code, RESET_EXPIRY_MINUTES, purpose='password_reset', username=user.username)
    )
    logger.info(f"Password reset code issued for user {user.id}, email sent: {email_sent}")

    return _code_response(generic_message, code)

@recovery_bp.route('/verify-reset-code', methods=['POST'])
@handle_errors
def verify_reset_code():
    """
    Check a reset code without consuming it; reset-password consumes it.
    """
    data = request.get_json(silent=True) or {}

    if not data.get('email') or not data.get('code'):
        return jsonify({'valid': False, 'error': 'Email and code are required'}), HTTPStatus.BAD_REQUEST

    valid, error = check_code(data['email'], data['code'], consume=False)
    if not valid:
        return jsonify({'valid': False, 'error': error}), HTTPStatus.BAD_REQUEST

    return jsonify({'valid': True, 'message': 'Code verified successfully'}), HTTPStatus.OK

@recovery_bp.route('/reset-password', methods=['POST'])
@handle_errors
def reset_password():
    """
    Reset the user's password with a valid reset code.
    """
    data = request.get_json(silent=True) or {}

    if not data.get('email') or not data.get('code') or not data.get('new_password'):
        return jsonify({'error': 'Email, code, and new password are required'}), HTTPStatus.BAD_REQUEST

    if len(data['new_password']) < MIN_PASSWORD_LENGTH:
        return jsonify({'error': f'Password must be at least {MIN_PASSWORD_LENGTH} characters'}), HTTPStatus.BAD_REQUEST

    email = normalize_email(data['email'])
    user = User.query.filter_by(email=email).first()
    if not user:
        return jsonify({'error': 'Invalid email or reset code'}), HTTPStatus.BAD_REQUEST

    valid, error = check_code(email, data['code'], consume=True)
    if not valid:
        return jsonify({'error': error}), HTTPStatus.BAD_REQUEST

    user.password = data['new_password']
    db.session.commit()

    logger.info(f"Password reset successful for user {user.id}")
    return jsonify({'success': True, 'message': 'Password reset successfully'}), HTTPStatus.OK
