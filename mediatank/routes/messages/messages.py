from flask import Blueprint, request, jsonify
from http import HTTPStatus
from mediatank.extensions.extension import db
from mediatank.models.user import User
from mediatank.services.message_service import (
    get_conversation,
    list_messages,
    mark_messages_read,
    send_message,
    MAX_MESSAGE_LENGTH
)
from mediatank.utils.auth import token_required, parse_uuid
from mediatank.utils.errors import handle_errors

messages_bp = Blueprint('messages', __name__, url_prefix='/api/messages')

@messages_bp.route('', methods=['GET'])
@token_required
@handle_errors
def get_messages(current_user):
    """Inbox or sent box, or the conversation with one user when ?with= is given"""
    other_id = request.args.get('with')
    if other_id:
        other_uuid = parse_uuid(other_id)
        other = db.session.get(User, other_uuid) if other_uuid else None
        if not other:
            return jsonify({'error': 'User not found'}), HTTPStatus.NOT_FOUND

        messages = get_conversation(current_user.id, other.id)
        return jsonify({
            'user': other.to_summary(),
            'messages': [m.to_dict() for m in messages]
        }), HTTPStatus.OK

    box = request.args.get('type', 'inbox')
    if box not in ('inbox', 'sent'):
        return jsonify({'error': 'type must be inbox or sent'}), HTTPStatus.BAD_REQUEST

    messages, unread_count = list_messages(current_user.id, box)
    return jsonify({
        'messages': [m.to_dict() for m in messages],
        'unread_count': unread_count
    }), HTTPStatus.OK

@messages_bp.route('', methods=['POST'])
@token_required
@handle_errors
def post_message(current_user):
    data = request.get_json(silent=True) or {}
    receiver_uuid = parse_uuid(data.get('receiver_id') or data.get('receiverId'))
    content = data.get('content')

    if not receiver_uuid or not isinstance(content, str) or not content.strip():
        return jsonify({'error': 'Receiver and content are required'}), HTTPStatus.BAD_REQUEST
    content = content.strip()
    if len(content) > MAX_MESSAGE_LENGTH:
        return jsonify({'error': f'Messages are limited to {MAX_MESSAGE_LENGTH} characters'}), HTTPStatus.BAD_REQUEST
    if receiver_uuid == current_user.id:
        return jsonify({'error': 'You cannot send a message to yourself'}), HTTPStatus.BAD_REQUEST

    receiver = db.session.get(User, receiver_uuid)
    if not receiver:
        return jsonify({'error': 'Receiver not found'}), HTTPStatus.NOT_FOUND

    message = send_message(current_user, receiver, content)
    return jsonify({'message': message.to_dict()}), HTTPStatus.CREATED

@messages_bp.route('/read', methods=['POST'])
@token_required
@handle_errors
def read_messages(current_user):
    data = request.get_json(silent=True) or {}
    raw_ids = data.get('message_ids') or data.get('messageIds')
    if not isinstance(raw_ids, list):
        return jsonify({'error': 'message_ids must be a list'}), HTTPStatus.BAD_REQUEST

    message_ids = [m for m in (parse_uuid(raw) for raw in raw_ids) if m]
    updated = mark_messages_read(current_user.id, message_ids)
    return jsonify({'success': True, 'updated': updated}), HTTPStatus.OK
