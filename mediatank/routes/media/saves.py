from flask import Blueprint, jsonify
from http import HTTPStatus
from mediatank.extensions.extension import db
from mediatank.models.media import Media
from mediatank.models.saved_media import SavedMedia
from mediatank.routes.media.media import can_view
from mediatank.utils.auth import token_required
from mediatank.utils.errors import handle_errors

saves_bp = Blueprint('saves', __name__, url_prefix='/api/media')

def _saved_entry(user, media_id):
    return SavedMedia.query.filter_by(user_id=user.id, media_id=media_id).first()

@saves_bp.route('/<uuid:media_id>/save', methods=['GET'])
@token_required
@handle_errors
def get_saved_state(current_user, media_id):
    return jsonify({'saved': _saved_entry(current_user, media_id) is not None}), HTTPStatus.OK

@saves_bp.route('/<uuid:media_id>/save', methods=['POST'])
@token_required
@handle_errors
def save_media(current_user, media_id):
    media = db.session.get(Media, media_id)
    if not media or not can_view(current_user, media):
        return jsonify({'error': 'Media not found'}), HTTPStatus.NOT_FOUND

    if _saved_entry(current_user, media.id):
        return jsonify({'error': 'Already saved', 'saved': True}), HTTPStatus.BAD_REQUEST

    db.session.add(SavedMedia(user_id=current_user.id, media_id=media.id))
    db.session.commit()

    return jsonify({'success': True, 'saved': True}), HTTPStatus.CREATED

@saves_bp.route('/<uuid:media_id>/save', methods=['DELETE'])
@token_required
@handle_errors
def unsave_media(current_user, media_id):
    saved = _saved_entry(current_user, media_id)
    if saved:
        db.session.delete(saved)
        db.session.commit()

    return jsonify({'success': True, 'saved': False}), HTTPStatus.OK
