import logging
from flask import current_app
from mediatank.extensions.extension import jwt
from mediatank.utils.auth import load_user

logger = logging.getLogger(__name__)

def read_key_file(file_path):
    try:
        with open(file_path, 'r') as key_file:
            return key_file.read()
    except Exception as e:
        logger.error(f"Failed to read key file {file_path}: {str(e)}")
        raise

def _uses_key_pair():
    return current_app.config.get('JWT_ALGORITHM', 'HS256').upper().startswith(('RS', 'ES', 'PS'))

@jwt.encode_key_loader
def get_jwt_encode_key(identity):
    if _uses_key_pair():
        return read_key_file(current_app.config['JWT_PRIVATE_KEY_PATH'])
    return current_app.config['JWT_SECRET_KEY']

@jwt.decode_key_loader
def get_jwt_decode_key(jwt_header, jwt_data):
    if _uses_key_pair():
        return read_key_file(current_app.config['JWT_PUBLIC_KEY_PATH'])
    return current_app.config['JWT_SECRET_KEY']

@jwt.additional_claims_loader
def add_role_claim(identity):
    user = load_user(identity)
    if not user or not user.role:
        return {}
    return {'role': user.role.value}
