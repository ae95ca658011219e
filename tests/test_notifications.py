from datetime import timedelta

from mediatank.extensions.extension import db
from mediatank.models.notification import Notification
from mediatank.services.notification_service import (
    create_notification,
    list_notifications,
    mark_as_read,
    mark_all_as_read
)
from tests.conftest import NOW


def test_list_is_newest_first_and_capped(make_user):
    user = make_user()
    for i in range(25):
        notification = create_notification(user.id, 'purchase', f'Title {i}', 'message')
        notification.created_at = NOW + timedelta(minutes=i)
    db.session.commit()

    notifications, unread_count = list_notifications(user.id)

    assert len(notifications) == 20
    assert notifications[0].title == 'Title 24'
    assert notifications[-1].title == 'Title 5'
    assert unread_count == 25


def test_mark_as_read_by_owner(make_user):
    user = make_user()
    notification = create_notification(user.id, 'purchase', 'Hello', 'message')

    assert mark_as_read(notification.id, user.id) == 1
    assert db.session.get(Notification, notification.id).read is True


def test_mark_as_read_by_someone_else_updates_nothing(make_user):
    owner = make_user()
    intruder = make_user()
    notification = create_notification(owner.id, 'purchase', 'Private', 'message')

    assert mark_as_read(notification.id, intruder.id) == 0
    assert db.session.get(Notification, notification.id).read is False


def test_mark_all_as_read_only_touches_own_rows(make_user):
    user = make_user()
    other = make_user()
    create_notification(user.id, 'purchase', 'One', 'message')
    create_notification(user.id, 'purchase', 'Two', 'message')
    create_notification(other.id, 'purchase', 'Other', 'message')

    assert mark_all_as_read(user.id) == 2
    assert list_notifications(user.id)[1] == 0
    assert list_notifications(other.id)[1] == 1


def test_notification_endpoints(client, make_user, auth_headers):
    owner = make_user()
    intruder = make_user()
    notification = create_notification(owner.id, 'purchase', 'Bought', 'message')
    notification_id = notification.id

    response = client.get('/api/notifications', headers=auth_headers(owner))
    assert response.status_code == 200
    assert response.json['unread_count'] == 1
    assert response.json['notifications'][0]['title'] == 'Bought'

    response = client.post(f'/api/notifications/{notification_id}/read', headers=auth_headers(intruder))
    assert response.status_code == 200
    assert response.json == {'success': True, 'updated': 0}

    response = client.post(f'/api/notifications/{notification_id}/read', headers=auth_headers(owner))
    assert response.json == {'success': True, 'updated': 1}


def test_notifications_require_login(client):
    assert client.get('/api/notifications').status_code == 401
