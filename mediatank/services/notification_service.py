import logging
from flask import current_app
from mediatank.extensions.extension import db
from mediatank.models.notification import Notification

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


def create_notification(user_id, type, title, message, link=None, commit=True):
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        link=link,
        read=False
    )
    db.session.add(notification)
    if commit:
        db.session.commit()
    return notification


def list_notifications(user_id, limit=None):
    """Newest notifications for a user plus the number still unread."""
    limit = limit or current_app.config.get('NOTIFICATION_PAGE_SIZE', DEFAULT_PAGE_SIZE)

    notifications = Notification.query.filter_by(
        user_id=user_id
    ).order_by(
        Notification.created_at.desc()
    ).limit(limit).all()

    unread_count = Notification.query.filter_by(user_id=user_id, read=False).count()

    return notifications, unread_count


def mark_as_read(notification_id, user_id):
    """
    Mark one notification as read.

    The owner check is part of the UPDATE predicate, so a notification that
    belongs to somebody else is simply not matched.

    Returns:
        int: number of rows updated (0 or 1)
    """
    updated = Notification.query.filter(
        Notification.id == notification_id,
        Notification.user_id == user_id
    ).update({Notification.read: True}, synchronize_session=False)
    db.session.commit()
    return updated


def mark_all_as_read(user_id):
    updated = Notification.query.filter(
        Notification.user_id == user_id,
        Notification.read.is_(False)
    ).update({Notification.read: True}, synchronize_session=False)
    db.session.commit()
    return updated
