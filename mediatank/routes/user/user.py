from flask import Blueprint, jsonify, request
from mediatank.utils.auth import token_required
from mediatank.utils.errors import handle_errors
from mediatank.extensions.extension import db
from mediatank.models.media import Media
from mediatank.models.purchase import Purchase, PurchaseStatus
from mediatank.models.saved_media import SavedMedia
from mediatank.models.user import User
from mediatank.routes.media.media import can_view
from mediatank.routes.user.user_utils import validate_user_update
from mediatank.services.upload_credits import user_upload_status
from mediatank.services.verification_service import normalize_email
from http import HTTPStatus
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

user_bp = Blueprint('user', __name__, url_prefix='/api/user')

@user_bp.route('/profile', methods=['GET'])
@token_required
@handle_errors
def get_profile(current_user):
    profile = current_user.to_dict()
    profile['upload_status'] = user_upload_status(current_user)
    profile['created_at'] = current_user.created_at.isoformat() if current_user.created_at else None
    return jsonify(profile), HTTPStatus.OK

@user_bp.route('/update', methods=['PUT'])
@token_required
@handle_errors
def update_user(current_user):
    logger.info(f"Update requested for user ID: {current_user.id}")
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'message': 'No input data provided'}), HTTPStatus.BAD_REQUEST

    valid, message = validate_user_update(data)
    if not valid:
        return jsonify({'message': message}), HTTPStatus.BAD_REQUEST

    if 'username' in data and data['username'] != current_user.username:
        if User.query.filter_by(username=data['username']).first():
            return jsonify({'message': 'Username already taken'}), HTTPStatus.CONFLICT
        current_user.username = data['username']

    if 'email' in data:
        email = normalize_email(data['email'])
        if email != current_user.email:
            if User.query.filter_by(email=email).first():
                return jsonify({'message': 'Email already registered'}), HTTPStatus.CONFLICT
            current_user.email = email
            current_user.email_verified = False

    if 'name' in data:
        current_user.name = data['name'] or None

    if 'password' in data:
        current_user.password = data['password']

    db.session.commit()
    return jsonify({'message': 'User updated successfully', 'user': current_user.to_dict()}), HTTPStatus.OK

@user_bp.route('/purchases', methods=['GET'])
@token_required
@handle_errors
def get_purchases(current_user):
    """Completed purchases with the time left to download each item"""
    now = datetime.utcnow()
    purchases = Purchase.query.filter_by(
        buyer_id=current_user.id,
        status=PurchaseStatus.completed
    ).order_by(Purchase.completed_at.desc()).all()

    return jsonify({'purchases': [p.to_dict(now) for p in purchases]}), HTTPStatus.OK

@user_bp.route('/sales', methods=['GET'])
@token_required
@handle_errors
def get_sales(current_user):
    sales = Purchase.query.filter_by(
        seller_id=current_user.id,
        status=PurchaseStatus.completed
    ).order_by(Purchase.completed_at.desc()).all()

    return jsonify({
        'sales': [{
            'id': str(s.id),
            'media_title': s.media_title,
            'amount': float(s.amount),
            'completed_at': s.completed_at.isoformat() if s.completed_at else None
        } for s in sales],
        'total_earned': float(sum(s.amount for s in sales))
    }), HTTPStatus.OK

@user_bp.route('/saved', methods=['GET'])
@token_required
@handle_errors
def get_saved_media(current_user):
    """Saved media the user can still see, most recently saved first"""
    saved = SavedMedia.query.filter_by(
        user_id=current_user.id
    ).order_by(SavedMedia.created_at.desc()).all()

    return jsonify({
        'media': [
            dict(s.media.to_dict(), saved_at=s.created_at.isoformat() if s.created_at else None)
            for s in saved if can_view(current_user, s.media)
        ]
    }), HTTPStatus.OK

@user_bp.route('/<username>', methods=['GET'])
@handle_errors
def get_public_profile(username):
    user = User.query.filter_by(username=username).first()
    if not user:
        return jsonify({'message': 'User not found'}), HTTPStatus.NOT_FOUND

    media = Media.query.filter_by(
        owner_id=user.id,
        is_public=True,
        is_approved=True
    ).order_by(Media.created_at.desc()).all()

    return jsonify({
        'username': user.username,
        'name': user.name,
        'role': user.role.name if user.role else None,
        'media': [m.to_dict() for m in media]
    }), HTTPStatus.OK
