from flask import Blueprint, request, jsonify, current_app
from http import HTTPStatus
import stripe
from mediatank.services.payment_service import (
    complete_checkout_session,
    complete_membership_checkout,
    complete_upload_payment,
    end_subscription,
    expire_checkout_session,
    CHECKOUT_TYPE_MEMBERSHIP,
    CHECKOUT_TYPE_UPLOAD_FEE
)
from mediatank.utils.errors import handle_errors
import logging

logger = logging.getLogger(__name__)

webhook_bp = Blueprint('webhooks', __name__, url_prefix='/api/webhooks')

@webhook_bp.route('/stripe', methods=['POST'])
@handle_errors
def stripe_webhook():
    """Handle Stripe webhook events"""
    payload = request.get_data()
    sig_header = request.headers.get('Stripe-Signature')
    webhook_secret = current_app.config.get('STRIPE_WEBHOOK_SECRET')

    if not sig_header or not webhook_secret:
        return jsonify({'error': 'Missing signature or webhook secret'}), HTTPStatus.BAD_REQUEST

    try:
        event = stripe.Webhook.construct_event(payload, sig_header, webhook_secret)
    except ValueError:
        return jsonify({'error': 'Invalid payload'}), HTTPStatus.BAD_REQUEST
    except stripe.SignatureVerificationError:
        logger.warning("Rejected Stripe webhook with an invalid signature")
        return jsonify({'error': 'Invalid signature'}), HTTPStatus.BAD_REQUEST

    event_type = event['type']
    event_object = event['data']['object']

    if event_type == 'checkout.session.completed':
        handle_checkout_session_completed(event_object)
    elif event_type == 'checkout.session.expired':
        expire_checkout_session(event_object)
    elif event_type == 'customer.subscription.deleted':
        end_subscription(event_object)
    else:
        logger.info(f"Ignoring Stripe event {event_type}")

    return jsonify({'received': True}), HTTPStatus.OK

def handle_checkout_session_completed(session):
    metadata = session.get('metadata') or {}

    if metadata.get('type') == CHECKOUT_TYPE_UPLOAD_FEE:
        complete_upload_payment(session)
        return

    if metadata.get('type') == CHECKOUT_TYPE_MEMBERSHIP:
        complete_membership_checkout(session)
        return

    if session.get('payment_status') not in (None, 'paid'):
        logger.info(f"Checkout session {session['id']} completed without payment yet")
        return

    complete_checkout_session(session)
