# mediatank/routes/auth/auth_utils.py
import re

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9_.-]{3,30}$')
MIN_PASSWORD_LENGTH = 6

def is_valid_email(email):
    return bool(email) and EMAIL_PATTERN.match(email) is not None

def validate_registration_input(data):
    if not data or not all(key in data for key in ('username', 'email', 'password')):
        return False, "Missing required fields"

    if not USERNAME_PATTERN.match(data.get('username') or ''):
        return False, "Username must be 3-30 characters: letters, numbers, '.', '_' or '-'"

    if not is_valid_email(data.get('email')):
        return False, "Email is not valid"

    if len(data.get('password') or '') < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"

    return True, None

def validate_login_input(data):
    if not data or not all(key in data for key in ('email', 'password')):
        return False, "Missing required fields"
    return True, None
