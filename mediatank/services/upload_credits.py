"""Free-upload quota and paid upload credits per membership tier."""
import math
from collections import namedtuple
from mediatank.extensions.extension import db
from mediatank.models.user import MembershipType
from mediatank.utils.errors import UploadNotAllowed

UploadPlan = namedtuple('UploadPlan', ['free_uploads', 'cost_per_upload', 'can_upload_after_free', 'description'])

UPLOAD_PLANS = {
    MembershipType.VIEWER: UploadPlan(5, 0.0, False, '5 Free Uploads (upgrade to continue uploading)'),
    MembershipType.BASIC: UploadPlan(5, 1.00, True, '5 Free Uploads, then $1.00 per upload'),
    MembershipType.ADVANCED: UploadPlan(5, 0.50, True, '5 Free Uploads, then $0.50 per upload'),
    MembershipType.PREMIUM: UploadPlan(math.inf, 0.0, True, 'Unlimited Free Uploads'),
}

# Stripe amounts in cents for a single paid upload
UPLOAD_FEES = {
    MembershipType.BASIC: 100,
    MembershipType.ADVANCED: 50,
}

STATUS_FREE = 'free'
STATUS_PAID = 'paid'
STATUS_BLOCKED = 'blocked'


def plan_for(membership_type):
    return UPLOAD_PLANS.get(membership_type, UPLOAD_PLANS[MembershipType.VIEWER])


def _plural(count, word):
    return f"{count} {word}{'' if count == 1 else 's'}"


def upload_status(membership_type, free_uploads_used=0, paid_upload_credits=0):
    """
    Decide whether the next upload is free, paid or blocked.

    Args:
        membership_type (MembershipType): the user's tier
        free_uploads_used (int): free uploads already spent
        paid_upload_credits (int): pre-paid uploads still available

    Returns:
        dict: quota figures plus ``status_type`` and a readable ``status_message``
    """
    plan = plan_for(membership_type)
    free_uploads_used = free_uploads_used or 0
    paid_upload_credits = paid_upload_credits or 0
    is_premium = membership_type == MembershipType.PREMIUM

    free_remaining = math.inf if is_premium else max(0, plan.free_uploads - free_uploads_used)
    within_free_limit = free_remaining > 0
    has_paid_credits = paid_upload_credits > 0

    if is_premium:
        status_type, message = STATUS_FREE, 'Unlimited free uploads with Premium!'
    elif within_free_limit:
        status_type, message = STATUS_FREE, f"{_plural(free_remaining, 'free upload')} remaining"
    elif has_paid_credits:
        # Already paid for, so the upload itself costs nothing
        status_type, message = STATUS_FREE, f"{_plural(paid_upload_credits, 'paid upload credit')} available"
    elif plan.can_upload_after_free:
        status_type, message = STATUS_PAID, f"Each upload costs ${plan.cost_per_upload:.2f}"
    else:
        status_type, message = STATUS_BLOCKED, 'Free uploads exhausted. Upgrade to continue uploading.'

    return {
        'membership_type': membership_type.name if membership_type else MembershipType.VIEWER.name,
        'free_uploads': 'Unlimited' if plan.free_uploads == math.inf else plan.free_uploads,
        'free_uploads_used': free_uploads_used,
        'free_uploads_remaining': 'Unlimited' if free_remaining == math.inf else free_remaining,
        'paid_upload_credits': paid_upload_credits,
        'cost_per_upload': plan.cost_per_upload,
        'next_upload_cost': 0 if within_free_limit or has_paid_credits else plan.cost_per_upload,
        'can_upload': within_free_limit or has_paid_credits or plan.can_upload_after_free,
        'status_type': status_type,
        'status_message': message,
        'plan_description': plan.description
    }


def user_upload_status(user):
    return upload_status(user.membership_type, user.free_uploads_used, user.paid_upload_credits)


def consume_upload(user):
    """
    Spend the allowance for one upload on ``user`` (not committed).

    Returns:
        str: 'free', 'credit' or 'unlimited'

    Raises:
        UploadNotAllowed: when the tier is blocked, or a payment is needed first
    """
    status = user_upload_status(user)

    if user.membership_type == MembershipType.PREMIUM:
        return 'unlimited'
    if status['free_uploads_remaining'] > 0:
        user.free_uploads_used = (user.free_uploads_used or 0) + 1
        return 'free'
    if (user.paid_upload_credits or 0) > 0:
        user.paid_upload_credits -= 1
        return 'credit'
    if status['status_type'] == STATUS_BLOCKED:
        raise UploadNotAllowed(status['status_message'])
    raise UploadNotAllowed('Payment required before uploading', cost=status['cost_per_upload'])


def add_paid_credit(user, credits=1, commit=True):
    user.paid_upload_credits = (user.paid_upload_credits or 0) + credits
    if commit:
        db.session.commit()
    return user.paid_upload_credits
