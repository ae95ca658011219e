# mediatank/routes/user/user_utils.py
from mediatank.routes.auth.auth_utils import is_valid_email, USERNAME_PATTERN, MIN_PASSWORD_LENGTH

MAX_NAME_LENGTH = 120

def validate_user_update(data):
    if 'username' in data and not USERNAME_PATTERN.match(data['username'] or ''):
        return False, "Username must be 3-30 characters: letters, numbers, '.', '_' or '-'"

    if 'email' in data and not is_valid_email(data['email']):
        return False, "Email is not valid"

    if 'name' in data and data['name'] and len(data['name']) > MAX_NAME_LENGTH:
        return False, f"Name must be at most {MAX_NAME_LENGTH} characters"

    if 'password' in data and len(data['password'] or '') < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"

    return True, None
