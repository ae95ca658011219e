"""Direct messages between users."""
import logging
from sqlalchemy import or_, and_
from mediatank.extensions.extension import db
from mediatank.models.message import Message
from mediatank.services.notification_service import create_notification

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 5000
MESSAGE_PAGE_SIZE = 50
PREVIEW_LENGTH = 80


def _preview(content):
    if len(content) <= PREVIEW_LENGTH:
        return content
    return content[:PREVIEW_LENGTH - 3].rstrip() + '...'


def send_message(sender, receiver, content):
    """Store a message and leave the receiver an in-app notification."""
    message = Message(sender_id=sender.id, receiver_id=receiver.id, content=content)
    db.session.add(message)
    create_notification(
        receiver.id,
        'message',
        f'New message from {sender.display_name}',
        _preview(content),
        link=f'/messages?with={sender.id}',
        commit=False
    )
    db.session.commit()
    logger.info(f"Message {message.id} sent from {sender.id} to {receiver.id}")
    return message


def list_messages(user_id, box='inbox', limit=MESSAGE_PAGE_SIZE):
    """
    Newest messages received (inbox) or sent (sent) by a user, plus the
    number of received messages still unread.
    """
    column = Message.sender_id if box == 'sent' else Message.receiver_id
    messages = Message.query.filter(
        column == user_id
    ).order_by(
        Message.created_at.desc()
    ).limit(limit).all()

    unread_count = Message.query.filter_by(receiver_id=user_id, is_read=False).count()
    return messages, unread_count


def get_conversation(user_id, other_user_id, limit=MESSAGE_PAGE_SIZE):
    """The latest messages exchanged by two users, oldest first."""
    messages = Message.query.filter(
        or_(
            and_(Message.sender_id == user_id, Message.receiver_id == other_user_id),
            and_(Message.sender_id == other_user_id, Message.receiver_id == user_id)
        )
    ).order_by(
        Message.created_at.desc()
    ).limit(limit).all()
    return list(reversed(messages))


def mark_messages_read(user_id, message_ids):
    """Only messages the user received are touched; returns the rows updated."""
    if not message_ids:
        return 0
    updated = Message.query.filter(
        Message.id.in_(message_ids),
        Message.receiver_id == user_id
    ).update({Message.is_read: True}, synchronize_session=False)
    db.session.commit()
    return updated
