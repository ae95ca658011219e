import pytest

from mediatank.models.user import MembershipType, UserRole
from mediatank.services.upload_credits import consume_upload, upload_status
from mediatank.utils.errors import UploadNotAllowed


def test_viewer_within_free_quota():
    status = upload_status(MembershipType.VIEWER, 2, 0)

    assert status['status_type'] == 'free'
    assert status['free_uploads_remaining'] == 3
    assert status['status_message'] == '3 free uploads remaining'
    assert status['can_upload'] is True


def test_viewer_blocked_after_free_quota():
    status = upload_status(MembershipType.VIEWER, 5, 0)

    assert status['status_type'] == 'blocked'
    assert status['can_upload'] is False


@pytest.mark.parametrize('membership_type, cost', [
    (MembershipType.BASIC, 1.00),
    (MembershipType.ADVANCED, 0.50),
])
def test_paid_tiers_charge_after_free_quota(membership_type, cost):
    status = upload_status(membership_type, 5, 0)

    assert status['status_type'] == 'paid'
    assert status['next_upload_cost'] == cost
    assert status['can_upload'] is True


def test_paid_credit_makes_next_upload_free():
    status = upload_status(MembershipType.BASIC, 5, 2)

    assert status['status_type'] == 'free'
    assert status['next_upload_cost'] == 0
    assert status['status_message'] == '2 paid upload credits available'


def test_premium_is_unlimited():
    status = upload_status(MembershipType.PREMIUM, 500, 0)

    assert status['free_uploads_remaining'] == 'Unlimited'
    assert status['status_type'] == 'free'


def test_unknown_tier_falls_back_to_viewer():
    assert upload_status(None, 5, 0)['status_type'] == 'blocked'


def test_consume_upload_spends_free_then_credit(make_user):
    user = make_user(role=UserRole.SUBSCRIBER, membership_type=MembershipType.BASIC,
                     free_uploads_used=4, paid_upload_credits=1)

    assert consume_upload(user) == 'free'
    assert user.free_uploads_used == 5
    assert consume_upload(user) == 'credit'
    assert user.paid_upload_credits == 0

    with pytest.raises(UploadNotAllowed) as excinfo:
        consume_upload(user)
    assert excinfo.value.cost == 1.00


def test_consume_upload_blocked_tier_has_no_cost(make_user):
    user = make_user(role=UserRole.SUBSCRIBER, free_uploads_used=5)

    with pytest.raises(UploadNotAllowed) as excinfo:
        consume_upload(user)
    assert excinfo.value.cost is None


def test_consume_upload_premium(make_user):
    user = make_user(role=UserRole.SUBSCRIBER, membership_type=MembershipType.PREMIUM, free_uploads_used=99)

    assert consume_upload(user) == 'unlimited'
    assert user.free_uploads_used == 99
