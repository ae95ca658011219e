from flask import Blueprint, request, jsonify
from http import HTTPStatus
from mediatank.extensions.extension import db
from mediatank.models.media import Media
from mediatank.models.purchase import Purchase, PurchaseStatus
from mediatank.services.payment_service import (
    cancel_membership,
    create_media_checkout,
    create_membership_checkout,
    create_upload_payment,
    verify_purchase
)
from mediatank.utils.auth import token_required, parse_uuid
from mediatank.utils.errors import handle_errors
import logging

logger = logging.getLogger(__name__)

payments_bp = Blueprint('payments', __name__, url_prefix='/api/payments')

MAX_BATCH_ITEMS = 20

def _purchasable(current_user, media_id):
    """Resolve a media id to an item the user may buy, or an error message."""
    media_uuid = parse_uuid(media_id)
    if not media_uuid:
        return None, 'Invalid media ID format'

    media = db.session.get(Media, media_uuid)
    if not media or not media.is_approved:
        return None, 'Media not found or not available for purchase'
    if media.is_sold:
        return None, f'"{media.title}" has already been sold'
    if not media.is_paid:
        return None, f'"{media.title}" is free and cannot be purchased'
    if media.owner_id == current_user.id:
        return None, 'You cannot purchase your own media'

    already_bought = Purchase.query.filter_by(
        buyer_id=current_user.id,
        media_id=media.id,
        status=PurchaseStatus.completed
    ).first()
    if already_bought:
        return None, f'You already own "{media.title}"'

    return media, None

@payments_bp.route('/checkout', methods=['POST'])
@token_required
@handle_errors
def create_checkout_session(current_user):
    """Create a checkout session for purchasing one media item"""
    data = request.get_json(silent=True) or {}

    if not data.get('media_id'):
        return jsonify({'error': 'Media ID is required'}), HTTPStatus.BAD_REQUEST

    media, error = _purchasable(current_user, data['media_id'])
    if error:
        return jsonify({'error': error}), HTTPStatus.BAD_REQUEST

    checkout_session, purchases = create_media_checkout(current_user, [media])

    return jsonify({
        'sessionId': checkout_session['id'],
        'url': checkout_session['url'],
        'purchase_id': str(purchases[0].id)
    }), HTTPStatus.OK

@payments_bp.route('/checkout-batch', methods=['POST'])
@token_required
@handle_errors
def create_batch_checkout_session(current_user):
    """Create one checkout session for a cart of media items"""
    data = request.get_json(silent=True) or {}
    media_ids = data.get('media_ids')

    if not isinstance(media_ids, list) or not media_ids:
        return jsonify({'error': 'media_ids must be a non-empty list'}), HTTPStatus.BAD_REQUEST
    if len(media_ids) > MAX_BATCH_ITEMS:
        return jsonify({'error': f'A checkout can contain at most {MAX_BATCH_ITEMS} items'}), HTTPStatus.BAD_REQUEST

    media_items = []
    seen = set()
    for media_id in media_ids:
        media, error = _purchasable(current_user, media_id)
        if error:
            return jsonify({'error': error}), HTTPStatus.BAD_REQUEST
        if media.id not in seen:
            seen.add(media.id)
            media_items.append(media)

    checkout_session, purchases = create_media_checkout(current_user, media_items)

    return jsonify({
        'sessionId': checkout_session['id'],
        'url': checkout_session['url'],
        'purchase_ids': [str(p.id) for p in purchases]
    }), HTTPStatus.OK

@payments_bp.route('/upload-payment', methods=['POST'])
@token_required
@handle_errors
def create_upload_payment_session(current_user):
    """Checkout session that buys one paid upload credit"""
    checkout_session = create_upload_payment(current_user)
    if checkout_session is None:
        return jsonify({
            'error': 'Your plan does not support paid uploads'
        }), HTTPStatus.BAD_REQUEST

    return jsonify({
        'sessionId': checkout_session['id'],
        'url': checkout_session['url']
    }), HTTPStatus.OK

@payments_bp.route('/membership', methods=['POST'])
@token_required
@handle_errors
def create_membership_session(current_user):
    """Subscription checkout for the basic, advanced or premium plan"""
    data = request.get_json(silent=True) or {}
    plan_id = data.get('plan_id') or data.get('planId')

    checkout_session = create_membership_checkout(current_user, plan_id)
    if checkout_session is None:
        return jsonify({'error': 'Invalid plan selected'}), HTTPStatus.BAD_REQUEST

    return jsonify({
        'sessionId': checkout_session['id'],
        'url': checkout_session['url']
    }), HTTPStatus.OK

@payments_bp.route('/membership/cancel', methods=['POST'])
@token_required
@handle_errors
def cancel_membership_subscription(current_user):
    if not cancel_membership(current_user):
        return jsonify({'error': 'You do not have an active membership'}), HTTPStatus.BAD_REQUEST

    return jsonify({
        'success': True,
        'user': current_user.to_dict()
    }), HTTPStatus.OK

@payments_bp.route('/verify', methods=['GET'])
@token_required
@handle_errors
def verify_checkout(current_user):
    session_id = request.args.get('session_id')
    if not session_id:
        return jsonify({'error': 'session_id is required'}), HTTPStatus.BAD_REQUEST

    purchase = verify_purchase(current_user, session_id)
    if not purchase:
        return jsonify({'error': 'Purchase not found'}), HTTPStatus.NOT_FOUND

    purchases = Purchase.query.filter_by(
        stripe_session_id=session_id,
        buyer_id=current_user.id
    ).all()

    return jsonify({
        'status': purchase.status.value,
        'purchases': [p.to_dict() for p in purchases]
    }), HTTPStatus.OK
