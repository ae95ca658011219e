from flask import Blueprint, request, jsonify
from http import HTTPStatus
from flask_jwt_extended import create_access_token
from mediatank.extensions.extension import db
from mediatank.models.user import User
from mediatank.routes.auth.auth_utils import validate_registration_input, validate_login_input
from mediatank.services.verification_service import normalize_email
from mediatank.utils.errors import handle_errors

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

@auth_bp.route('/register', methods=['POST'])
@handle_errors
def register():
    data = request.get_json(silent=True)

    valid, message = validate_registration_input(data)
    if not valid:
        return jsonify({'message': message}), HTTPStatus.BAD_REQUEST

    email = normalize_email(data.get('email'))
    if User.query.filter_by(email=email).first():
        return jsonify({'message': 'Email already registered'}), HTTPStatus.CONFLICT

    if User.query.filter_by(username=data.get('username')).first():
        return jsonify({'message': 'Username already taken'}), HTTPStatus.CONFLICT

    user = User(
        username=data.get('username'),
        name=data.get('name'),
        email=email
    )
    user.password = data.get('password')

    db.session.add(user)
    db.session.commit()

    token = create_access_token(identity=str(user.id))

    return jsonify({
        'message': 'User registered successfully',
        'token': token,
        'user': user.to_dict()
    }), HTTPStatus.CREATED

@auth_bp.route('/login', methods=['POST'])
@handle_errors
def login():
    data = request.get_json(silent=True)

    valid, message = validate_login_input(data)
    if not valid:
        return jsonify({'message': message}), HTTPStatus.BAD_REQUEST

    user = User.query.filter_by(email=normalize_email(data.get('email'))).first()

    if not user or not user.verify_password(data.get('password')):
        return jsonify({'message': 'Invalid credentials'}), HTTPStatus.UNAUTHORIZED

    token = create_access_token(identity=str(user.id))

    return jsonify({
        'message': 'Login successful',
        'token': token,
        'user': user.to_dict()
    }), HTTPStatus.OK

@auth_bp.route('/check-email', methods=['GET'])
@handle_errors
def check_email():
    email = normalize_email(request.args.get('email'))
    if not email:
        return jsonify({'message': 'Email is required'}), HTTPStatus.BAD_REQUEST
    return jsonify({'available': User.query.filter_by(email=email).first() is None}), HTTPStatus.OK

@auth_bp.route('/check-username', methods=['GET'])
@handle_errors
def check_username():
    username = request.args.get('username')
    if not username:
        return jsonify({'message': 'Username is required'}), HTTPStatus.BAD_REQUEST
    return jsonify({'available': User.query.filter_by(username=username).first() is None}), HTTPStatus.OK
