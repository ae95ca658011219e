"""Purchase ledger backed by Stripe Checkout."""
import logging
from datetime import datetime
from decimal import Decimal
import stripe
from flask import current_app
from mediatank.extensions.extension import db
from mediatank.models.purchase import Purchase, PurchaseStatus
from mediatank.models.upload_payment import UploadPayment
from mediatank.models.user import User, UserRole, MembershipType
from mediatank.services.email_service import get_email_service
from mediatank.services.email_templates import (
    cancellation_subject,
    generate_cancellation_email,
    generate_purchase_email,
    purchase_subject
)
from mediatank.services.lifecycle import mark_media_sold, SOLD_RETENTION_DAYS
from mediatank.services.notification_service import create_notification
from mediatank.services.upload_credits import UPLOAD_FEES, add_paid_credit
from mediatank.utils.auth import parse_uuid
from mediatank.utils.errors import PaymentConfigurationError

logger = logging.getLogger(__name__)

CHECKOUT_TYPE_MEDIA = 'media'
CHECKOUT_TYPE_UPLOAD_FEE = 'upload_fee'
CHECKOUT_TYPE_MEMBERSHIP = 'membership'

# Subscription plans keyed by the plan id the pricing page sends
MEMBERSHIP_PLANS = {
    'basic': {'name': 'Basic Plan', 'membership_type': MembershipType.BASIC, 'price_key': 'STRIPE_BASIC_PRICE_ID'},
    'advanced': {'name': 'Advanced Plan', 'membership_type': MembershipType.ADVANCED, 'price_key': 'STRIPE_ADVANCED_PRICE_ID'},
    'premium': {'name': 'Premium Plan', 'membership_type': MembershipType.PREMIUM, 'price_key': 'STRIPE_PREMIUM_PRICE_ID'},
}


def get_stripe():
    secret_key = current_app.config.get('STRIPE_SECRET_KEY')
    if not secret_key:
        raise PaymentConfigurationError('Payment system is not configured. Please contact support.')
    stripe.api_key = secret_key
    return stripe


def format_amount_for_stripe(amount):
    """Dollars to cents"""
    return int(round(float(amount) * 100))


def _frontend_url(path):
    return f"{current_app.config.get('FRONTEND_URL', 'http://localhost:3000').rstrip('/')}{path}"


def create_media_checkout(buyer, media_items):
    """
    Open a Stripe checkout session for one or more paid media items and
    record a pending purchase per item.

    Returns:
        tuple: (checkout session, list of pending purchases)
    """
    client = get_stripe()

    line_items = []
    for media in media_items:
        product_data = {
            'name': media.title,
            'description': f"{media.type.name} by {media.owner.display_name}",
        }
        if media.thumbnail_url:
            product_data['images'] = [media.thumbnail_url]
        line_items.append({
            'price_data': {
                'currency': 'usd',
                'product_data': product_data,
                'unit_amount': format_amount_for_stripe(media.price),
            },
            'quantity': 1,
        })

    metadata = {
        'type': CHECKOUT_TYPE_MEDIA,
        'buyer_id': str(buyer.id),
        'media_ids': ','.join(str(media.id) for media in media_items),
    }
    if len(media_items) == 1:
        metadata['media_id'] = str(media_items[0].id)
        metadata['seller_id'] = str(media_items[0].owner_id)

    checkout_session = client.checkout.Session.create(
        payment_method_types=['card'],
        mode='payment',
        customer_email=buyer.email,
        line_items=line_items,
        metadata=metadata,
        success_url=_frontend_url('/purchase/success?session_id={CHECKOUT_SESSION_ID}'),
        cancel_url=_frontend_url(f'/media/{media_items[0].id}' if len(media_items) == 1 else '/'),
    )

    purchases = []
    for media in media_items:
        purchase = Purchase(
            buyer_id=buyer.id,
            seller_id=media.owner_id,
            media_id=media.id,
            media_title=media.title,
            amount=Decimal(str(media.price)),
            currency='usd',
            status=PurchaseStatus.pending,
            stripe_session_id=checkout_session['id']
        )
        db.session.add(purchase)
        purchases.append(purchase)
    db.session.commit()

    logger.info(f"Checkout session {checkout_session['id']} created for buyer {buyer.id} ({len(purchases)} items)")
    return checkout_session, purchases


def complete_checkout_session(session, now=None, mailer=None):
    """
    Complete the pending purchases of a paid checkout session.

    Purchases that already left the pending state are ignored, so a
    redelivered webhook changes nothing. Each purchased item is then passed
    through the sold-state marker and the buyer is told once by e-mail and
    in-app notification.

    Returns:
        list: the purchases completed by this call
    """
    now = now or datetime.utcnow()
    session_id = session['id']

    purchases = Purchase.query.filter_by(
        stripe_session_id=session_id,
        status=PurchaseStatus.pending
    ).all()
    if not purchases:
        logger.info(f"Checkout session {session_id} already processed")
        return []

    for purchase in purchases:
        purchase.status = PurchaseStatus.completed
        purchase.external_payment_ref = session.get('payment_intent')
        purchase.completed_at = now
    db.session.commit()
    logger.info(f"Completed {len(purchases)} purchases for checkout session {session_id}")

    for purchase in purchases:
        if purchase.media is None:
            continue
        try:
            mark_media_sold(purchase.media, purchase, now=now)
        except Exception as e:
            db.session.rollback()
            logger.error(f"Failed to mark media {purchase.media_id} as sold: {str(e)}")

    _notify_buyer_of_purchase(purchases, mailer)
    return purchases


def _notify_buyer_of_purchase(purchases, mailer=None):
    buyer = purchases[0].buyer
    items = [{'title': p.media_title, 'price': p.amount} for p in purchases]
    retention_days = current_app.config.get('SOLD_RETENTION_DAYS', SOLD_RETENTION_DAYS)

    try:
        mailer = mailer or get_email_service()
        mailer.send_email(
            buyer.email,
            purchase_subject(len(items)),
            generate_purchase_email(buyer.display_name, items, retention_days)
        )

        item_titles = ', '.join(item['title'] for item in items)
        create_notification(
            buyer.id,
            'purchase',
            'Purchase Confirmed!',
            f'Your purchase of "{item_titles}" is complete. Download within {retention_days} days before it expires.',
            link=f"/profile/{buyer.username}"
        )
    except Exception as e:
        db.session.rollback()
        logger.error(f"Failed to notify buyer {buyer.id} about purchase: {str(e)}")


def expire_checkout_session(session):
    updated = Purchase.query.filter_by(
        stripe_session_id=session['id'],
        status=PurchaseStatus.pending
    ).update({Purchase.status: PurchaseStatus.failed}, synchronize_session=False)
    db.session.commit()
    logger.info(f"Checkout session {session['id']} expired, {updated} purchases failed")
    return updated


def verify_purchase(buyer, session_id):
    """
    Buyer-scoped purchase lookup that asks Stripe about sessions still pending,
    covering the case where the webhook has not arrived yet.
    """
    purchase = Purchase.query.filter_by(
        stripe_session_id=session_id,
        buyer_id=buyer.id
    ).first()
    if not purchase:
        return None

    if purchase.status == PurchaseStatus.pending:
        client = get_stripe()
        checkout_session = client.checkout.Session.retrieve(session_id)
        if checkout_session.get('payment_status') == 'paid':
            complete_checkout_session(checkout_session)
            db.session.refresh(purchase)

    return purchase


def _ensure_customer(client, user):
    if not user.stripe_customer_id:
        customer = client.Customer.create(
            email=user.email,
            metadata={'user_id': str(user.id)}
        )
        user.stripe_customer_id = customer['id']
        db.session.commit()
    return user.stripe_customer_id


def create_upload_payment(user):
    """Checkout session for one upload fee, creating the Stripe customer on first use."""
    upload_cost = UPLOAD_FEES.get(user.membership_type)
    if not upload_cost:
        return None

    client = get_stripe()

    return client.checkout.Session.create(
        customer=_ensure_customer(client, user),
        mode='payment',
        payment_method_types=['card'],
        line_items=[{
            'price_data': {
                'currency': 'usd',
                'product_data': {
                    'name': 'Upload Fee',
                    'description': f"Single upload fee for {user.membership_type.name} Plan",
                },
                'unit_amount': upload_cost,
            },
            'quantity': 1,
        }],
        success_url=_frontend_url('/upload?payment=success'),
        cancel_url=_frontend_url('/upload?payment=cancelled'),
        metadata={
            'user_id': str(user.id),
            'type': CHECKOUT_TYPE_UPLOAD_FEE,
        },
    )


def complete_upload_payment(session):
    """Grant one paid upload credit per paid upload-fee session."""
    session_id = session['id']
    if UploadPayment.query.filter_by(stripe_session_id=session_id).first():
        logger.info(f"Upload payment {session_id} already processed")
        return None

    metadata = session.get('metadata') or {}
    user_id = parse_uuid(metadata.get('user_id'))
    user = db.session.get(User, user_id) if user_id else None
    if not user:
        logger.error(f"Upload payment {session_id} references unknown user {metadata.get('user_id')}")
        return None

    db.session.add(UploadPayment(
        user_id=user.id,
        stripe_session_id=session_id,
        amount=Decimal(session.get('amount_total') or 0) / 100
    ))
    credits = add_paid_credit(user)
    logger.info(f"Granted upload credit to user {user.id}, balance {credits}")
    return credits


def _plan_name(membership_type):
    for plan in MEMBERSHIP_PLANS.values():
        if plan['membership_type'] == membership_type:
            return plan['name']
    return f"{membership_type.name.title()} Plan"


def create_membership_checkout(user, plan_id):
    """Subscription checkout for a membership plan, or None for an unknown plan id."""
    plan = MEMBERSHIP_PLANS.get(plan_id) if isinstance(plan_id, str) else None
    if not plan:
        return None

    client = get_stripe()

    return client.checkout.Session.create(
        customer=_ensure_customer(client, user),
        mode='subscription',
        payment_method_types=['card'],
        line_items=[{
            'price': current_app.config.get(plan['price_key']),
            'quantity': 1,
        }],
        success_url=_frontend_url(f'/pricing?success=true&plan={plan_id}'),
        cancel_url=_frontend_url('/pricing?canceled=true'),
        metadata={
            'user_id': str(user.id),
            'plan_id': plan_id,
            'type': CHECKOUT_TYPE_MEMBERSHIP,
        },
    )


def _cancel_subscription(subscription_id):
    client = get_stripe()
    try:
        client.Subscription.cancel(subscription_id)
    except stripe.InvalidRequestError as e:
        logger.warning(f"Subscription {subscription_id} could not be cancelled, treating it as gone: {str(e)}")


def complete_membership_checkout(session):
    """
    Apply the plan of a completed subscription checkout to its user.

    The user becomes a subscriber on the new tier and the subscription id is
    kept for later cancellation. A subscription the user held before is
    cancelled at Stripe so only one stays billed. Redelivery of the same
    session changes nothing.

    Returns:
        User: the upgraded user, or None when the session was not applied
    """
    metadata = session.get('metadata') or {}
    plan = MEMBERSHIP_PLANS.get(metadata.get('plan_id'))
    user_id = parse_uuid(metadata.get('user_id'))
    user = db.session.get(User, user_id) if user_id else None

    if not plan or not user:
        logger.error(f"Membership checkout {session['id']} has unusable metadata {metadata}")
        return None
    if session.get('payment_status') == 'unpaid':
        logger.info(f"Membership checkout {session['id']} completed without payment yet")
        return None

    subscription_id = session.get('subscription')
    if subscription_id and user.stripe_subscription_id == subscription_id:
        logger.info(f"Membership checkout {session['id']} already processed")
        return user

    previous_subscription_id = user.stripe_subscription_id
    if previous_subscription_id:
        _cancel_subscription(previous_subscription_id)

    user.membership_type = plan['membership_type']
    user.stripe_subscription_id = subscription_id
    if not user.stripe_customer_id and session.get('customer'):
        user.stripe_customer_id = session['customer']
    if user.role == UserRole.VIEWER:
        user.role = UserRole.SUBSCRIBER

    create_notification(
        user.id,
        'membership',
        'Membership Activated',
        f"Your {plan['name']} is now active. Happy creating!",
        link='/upload',
        commit=False
    )
    db.session.commit()
    logger.info(f"User {user.id} subscribed to {plan['name']} ({subscription_id})")
    return user


def _downgrade_membership(user, mailer=None):
    """Back to the free viewer tier, with an e-mail and in-app notice."""
    plan_name = _plan_name(user.membership_type)

    user.membership_type = MembershipType.VIEWER
    user.stripe_subscription_id = None
    if user.role == UserRole.SUBSCRIBER:
        user.role = UserRole.VIEWER
    create_notification(
        user.id,
        'membership',
        'Membership Cancelled',
        f"Your {plan_name} subscription has been cancelled. Your existing uploads remain on the platform.",
        link='/pricing',
        commit=False
    )
    db.session.commit()
    logger.info(f"User {user.id} downgraded from {plan_name} to Viewer")

    try:
        mailer = mailer or get_email_service()
        if not mailer.send_email(
            user.email,
            cancellation_subject(plan_name),
            generate_cancellation_email(user.display_name, plan_name)
        ):
            logger.warning(f"Cancellation e-mail to user {user.id} was not sent")
    except Exception as e:
        logger.error(f"Failed to send cancellation e-mail to user {user.id}: {str(e)}")


def cancel_membership(user, mailer=None):
    """
    Cancel the caller's subscription at Stripe and downgrade them to Viewer.

    Returns:
        bool: False when there was no paid membership to cancel
    """
    if user.membership_type == MembershipType.VIEWER and not user.stripe_subscription_id:
        return False

    if user.stripe_subscription_id:
        _cancel_subscription(user.stripe_subscription_id)

    _downgrade_membership(user, mailer)
    return True


def end_subscription(subscription, mailer=None):
    """Downgrade the holder of a subscription that Stripe reports as deleted."""
    user = User.query.filter_by(stripe_subscription_id=subscription['id']).first()
    if not user:
        logger.info(f"No user holds deleted subscription {subscription['id']}")
        return None

    _downgrade_membership(user, mailer)
    return user
