from flask import Blueprint, request, jsonify
from http import HTTPStatus
from mediatank.extensions.extension import db
from mediatank.models.comment import Comment
from mediatank.models.media import Media
from mediatank.routes.media.media import can_view
from mediatank.utils.auth import token_required, current_user_optional
from mediatank.utils.errors import handle_errors

comments_bp = Blueprint('comments', __name__, url_prefix='/api/media')

MAX_COMMENT_LENGTH = 1000

def _comment_content(data):
    """Trimmed comment text, or None when it is missing, blank or too long"""
    content = data.get('content')
    if not isinstance(content, str):
        return None
    content = content.strip()
    if not content or len(content) > MAX_COMMENT_LENGTH:
        return None
    return content

def _find_comment(media_id, comment_id):
    comment = db.session.get(Comment, comment_id)
    if not comment or comment.media_id != media_id:
        return None
    return comment

@comments_bp.route('/<uuid:media_id>/comments', methods=['GET'])
@handle_errors
def get_comments(media_id):
    media = db.session.get(Media, media_id)
    if not media or not can_view(current_user_optional(), media):
        return jsonify({'error': 'Media not found'}), HTTPStatus.NOT_FOUND

    comments = Comment.query.filter_by(
        media_id=media.id
    ).order_by(
        Comment.created_at.desc()
    ).all()

    return jsonify({'comments': [c.to_dict() for c in comments]}), HTTPStatus.OK

@comments_bp.route('/<uuid:media_id>/comments', methods=['POST'])
@token_required
@handle_errors
def add_comment(current_user, media_id):
    media = db.session.get(Media, media_id)
    if not media or not can_view(current_user, media):
        return jsonify({'error': 'Media not found'}), HTTPStatus.NOT_FOUND

    content = _comment_content(request.get_json(silent=True) or {})
    if not content:
        return jsonify({
            'error': f'Comment must be between 1 and {MAX_COMMENT_LENGTH} characters'
        }), HTTPStatus.BAD_REQUEST

    comment = Comment(user_id=current_user.id, media_id=media.id, content=content)
    db.session.add(comment)
    db.session.commit()

    return jsonify({'comment': comment.to_dict()}), HTTPStatus.CREATED

@comments_bp.route('/<uuid:media_id>/comments/<uuid:comment_id>', methods=['PATCH'])
@token_required
@handle_errors
def edit_comment(current_user, media_id, comment_id):
    """Only the author can edit a comment"""
    comment = _find_comment(media_id, comment_id)
    if not comment:
        return jsonify({'error': 'Comment not found'}), HTTPStatus.NOT_FOUND
    if comment.user_id != current_user.id:
        return jsonify({'error': 'Forbidden'}), HTTPStatus.FORBIDDEN

    content = _comment_content(request.get_json(silent=True) or {})
    if not content:
        return jsonify({
            'error': f'Comment must be between 1 and {MAX_COMMENT_LENGTH} characters'
        }), HTTPStatus.BAD_REQUEST

    comment.content = content
    db.session.commit()

    return jsonify({'comment': comment.to_dict()}), HTTPStatus.OK

@comments_bp.route('/<uuid:media_id>/comments/<uuid:comment_id>', methods=['DELETE'])
@token_required
@handle_errors
def delete_comment(current_user, media_id, comment_id):
    """The author or an admin can delete a comment"""
    comment = _find_comment(media_id, comment_id)
    if not comment:
        return jsonify({'error': 'Comment not found'}), HTTPStatus.NOT_FOUND
    if comment.user_id != current_user.id and not current_user.is_admin:
        return jsonify({'error': 'Forbidden'}), HTTPStatus.FORBIDDEN

    db.session.delete(comment)
    db.session.commit()

    return jsonify({'success': True}), HTTPStatus.OK
