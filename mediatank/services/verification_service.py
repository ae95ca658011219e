"""Database-backed one-time codes for e-mail verification and password reset."""
import logging
import secrets
from datetime import datetime, timedelta
from mediatank.extensions.extension import db
from mediatank.models.verification import VerificationCode

logger = logging.getLogger(__name__)

VERIFICATION_EXPIRY_MINUTES = 10
RESET_EXPIRY_MINUTES = 15
MAX_CODE_ATTEMPTS = 5


def normalize_email(email):
    return (email or '').strip().lower()


def generate_code():
    """Random 6-digit code"""
    return str(100000 + secrets.randbelow(900000))


def store_code(email, code, expiry_minutes=VERIFICATION_EXPIRY_MINUTES, now=None):
    """Create or replace the pending code for an e-mail address."""
    normalized_email = normalize_email(email)
    expires_at = (now or datetime.utcnow()) + timedelta(minutes=expiry_minutes)

    verification = db.session.get(VerificationCode, normalized_email)
    if verification:
        verification.code = code
        verification.expires_at = expires_at
        verification.attempts = 0
    else:
        verification = VerificationCode(email=normalized_email, code=code, expires_at=expires_at)
        db.session.add(verification)
    db.session.commit()
    return verification


def check_code(email, code, consume=True, now=None):
    """
    Validate a code for an e-mail address.

    Expired codes are deleted when found. A matching code is deleted when
    ``consume`` is set, so it can only be used once. After
    MAX_CODE_ATTEMPTS wrong guesses the pending code is deleted as well.

    Returns:
        tuple: (valid, error message or None)
    """
    normalized_email = normalize_email(email)
    stored = db.session.get(VerificationCode, normalized_email)

    if not stored:
        return False, 'No verification code found. Please request a new code.'

    if stored.is_expired(now):
        db.session.delete(stored)
        db.session.commit()
        return False, 'Verification code has expired. Please request a new code.'

    if stored.code != str(code).strip():
        stored.attempts = (stored.attempts or 0) + 1
        if stored.attempts >= MAX_CODE_ATTEMPTS:
            logger.warning(f"Verification code for {normalized_email} discarded after {MAX_CODE_ATTEMPTS} failed attempts")
            db.session.delete(stored)
            db.session.commit()
            return False, 'Too many failed attempts. Please request a new code.'
        db.session.commit()
        return False, 'Invalid verification code. Please try again.'

    if consume:
        db.session.delete(stored)
        db.session.commit()

    return True, None


def cleanup_expired_codes(now=None):
    deleted = VerificationCode.query.filter(
        VerificationCode.expires_at < (now or datetime.utcnow())
    ).delete(synchronize_session=False)
    db.session.commit()
    logger.info(f"Removed {deleted} expired verification codes")
    return deleted
