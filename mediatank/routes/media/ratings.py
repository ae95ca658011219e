from flask import Blueprint, request, jsonify
from http import HTTPStatus
from mediatank.extensions.extension import db
from mediatank.models.media import Media
from mediatank.models.rating import Rating
from mediatank.routes.media.media import can_view
from mediatank.utils.auth import token_required, current_user_optional
from mediatank.utils.errors import handle_errors

ratings_bp = Blueprint('ratings', __name__, url_prefix='/api/media')

@ratings_bp.route('/<uuid:media_id>/rating', methods=['GET'])
@handle_errors
def get_rating(media_id):
    current_user = current_user_optional()
    media = db.session.get(Media, media_id)
    if not media or not can_view(current_user, media):
        return jsonify({'error': 'Media not found'}), HTTPStatus.NOT_FOUND

    user_score = None
    if current_user:
        rating = Rating.query.filter_by(user_id=current_user.id, media_id=media.id).first()
        user_score = rating.score if rating else None

    return jsonify({
        'avg_rating': media.average_rating(),
        'count': len(media.ratings),
        'user_rating': user_score
    }), HTTPStatus.OK

@ratings_bp.route('/<uuid:media_id>/rating', methods=['POST'])
@token_required
@handle_errors
def rate_media(current_user, media_id):
    """Create or replace the caller's 1-5 rating"""
    media = db.session.get(Media, media_id)
    if not media or not can_view(current_user, media):
        return jsonify({'error': 'Media not found'}), HTTPStatus.NOT_FOUND
    if media.owner_id == current_user.id:
        return jsonify({'error': 'You cannot rate your own media'}), HTTPStatus.BAD_REQUEST

    data = request.get_json(silent=True) or {}
    score = data.get('score')
    if not isinstance(score, int) or isinstance(score, bool) or not 1 <= score <= 5:
        return jsonify({'error': 'Score must be an integer between 1 and 5'}), HTTPStatus.BAD_REQUEST

    rating = Rating.query.filter_by(user_id=current_user.id, media_id=media.id).first()
    if rating:
        rating.score = score
    else:
        db.session.add(Rating(user_id=current_user.id, media_id=media.id, score=score))
    db.session.commit()
    db.session.refresh(media)

    return jsonify({
        'success': True,
        'avg_rating': media.average_rating(),
        'count': len(media.ratings)
    }), HTTPStatus.OK
