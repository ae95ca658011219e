from flask import Blueprint, request, jsonify
from http import HTTPStatus
from decimal import Decimal, InvalidOperation
from sqlalchemy import desc, or_
from mediatank.extensions.extension import db
from mediatank.middleware.subscriber_auth import subscriber_required
from mediatank.models.media import Media, MediaType
from mediatank.models.purchase import Purchase, PurchaseStatus
from mediatank.models.user import User
from mediatank.services.cleanup_service import purge_media
from mediatank.services.s3_service import get_storage
from mediatank.services.upload_credits import consume_upload
from mediatank.utils.auth import token_required, current_user_optional
from mediatank.utils.errors import handle_errors, StorageError, UploadNotAllowed
import logging

logger = logging.getLogger(__name__)

media_bp = Blueprint('media', __name__, url_prefix='/api/media')

MAX_PER_PAGE = 50

def has_purchased(user, media):
    if not user:
        return False
    return Purchase.query.filter_by(
        buyer_id=user.id,
        media_id=media.id,
        status=PurchaseStatus.completed
    ).first() is not None

def can_view(user, media):
    if media.is_public and media.is_approved:
        return True
    if not user:
        return False
    return user.is_admin or media.owner_id == user.id or has_purchased(user, media)

def parse_price(value):
    if value in (None, ''):
        return None
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise ValueError('Price must be a number')
    if price < 0:
        raise ValueError('Price cannot be negative')
    return price.quantize(Decimal('0.01'))

@media_bp.route('', methods=['GET'])
@handle_errors
def list_media():
    """Public catalogue with filtering, sorting and pagination"""
    page = request.args.get('page', 1, type=int)
    per_page = min(request.args.get('limit', 20, type=int), MAX_PER_PAGE)
    media_type = request.args.get('type')
    sort = request.args.get('sort', 'popular')
    search = request.args.get('search')
    username = request.args.get('user')

    query = Media.query.filter_by(is_public=True, is_approved=True)

    if username:
        query = query.join(User, Media.owner_id == User.id).filter(User.username == username)

    if media_type in MediaType.__members__:
        query = query.filter(Media.type == MediaType[media_type])

    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Media.title.ilike(pattern),
            Media.description.ilike(pattern),
            Media.ai_tool.ilike(pattern)
        ))

    if sort == 'recent':
        query = query.order_by(desc(Media.created_at))
    else:
        query = query.order_by(desc(Media.views), desc(Media.created_at))

    pagination = query.paginate(page=page, per_page=per_page, error_out=False)
    items = [m.to_dict() for m in pagination.items]

    if sort == 'rated':
        items.sort(key=lambda m: m['avg_rating'], reverse=True)

    return jsonify({
        'media': items,
        'pagination': {
            'page': page,
            'limit': per_page,
            'total': pagination.total,
            'total_pages': pagination.pages
        }
    }), HTTPStatus.OK

@media_bp.route('/<uuid:media_id>', methods=['GET'])
@handle_errors
def get_media(media_id):
    media = db.session.get(Media, media_id)
    current_user = current_user_optional()

    if not media or not can_view(current_user, media):
        return jsonify({'error': 'Media not found'}), HTTPStatus.NOT_FOUND

    media.increment_views()

    data = media.to_dict()
    data['purchased'] = has_purchased(current_user, media)
    data['is_owner'] = bool(current_user and current_user.id == media.owner_id)
    return jsonify({'media': data}), HTTPStatus.OK

@media_bp.route('', methods=['POST'])
@subscriber_required
@handle_errors
def create_media(current_user):
    """
    Register an upload once the file is in storage.
    Spends a free upload or a paid upload credit.
    """
    data = request.get_json(silent=True) or {}

    title = (data.get('title') or '').strip()
    media_type = data.get('type')
    url = data.get('url')

    if not title or not media_type or not url:
        return jsonify({'error': 'title, type, and url are required'}), HTTPStatus.BAD_REQUEST

    if media_type not in MediaType.__members__:
        return jsonify({'error': 'Invalid media type'}), HTTPStatus.BAD_REQUEST

    try:
        price = parse_price(data.get('price'))
    except ValueError as e:
        return jsonify({'error': str(e)}), HTTPStatus.BAD_REQUEST

    try:
        allowance = consume_upload(current_user)
    except UploadNotAllowed as e:
        db.session.rollback()
        payload = {'error': str(e)}
        if e.cost is not None:
            payload['cost'] = e.cost
        return jsonify(payload), HTTPStatus.PAYMENT_REQUIRED

    media = Media(
        owner_id=current_user.id,
        title=title,
        description=data.get('description') or '',
        type=MediaType[media_type],
        url=url,
        thumbnail_url=data.get('thumbnail_url') or None,
        ai_tool=data.get('ai_tool') or None,
        ai_prompt=data.get('ai_prompt') or None,
        price=price,
        is_public=bool(data.get('is_public', True)),
        is_approved=True
    )
    db.session.add(media)
    db.session.commit()

    logger.info(f"Media {media.id} uploaded by {current_user.id} using {allowance} allowance")
    return jsonify({'media': media.to_dict(), 'allowance': allowance}), HTTPStatus.CREATED

@media_bp.route('/<uuid:media_id>', methods=['PUT'])
@token_required
@handle_errors
def update_media(current_user, media_id):
    media = db.session.get(Media, media_id)
    if not media:
        return jsonify({'error': 'Media not found'}), HTTPStatus.NOT_FOUND

    if media.owner_id != current_user.id and not current_user.is_admin:
        return jsonify({'error': 'You can only edit your own media'}), HTTPStatus.FORBIDDEN

    if media.is_sold:
        return jsonify({'error': 'Sold media can no longer be edited'}), HTTPStatus.CONFLICT

    data = request.get_json(silent=True) or {}

    if 'title' in data:
        if not (data['title'] or '').strip():
            return jsonify({'error': 'Title cannot be empty'}), HTTPStatus.BAD_REQUEST
        media.title = data['title'].strip()
    if 'description' in data:
        media.description = data['description'] or ''
    if 'price' in data:
        try:
            media.price = parse_price(data['price'])
        except ValueError as e:
            return jsonify({'error': str(e)}), HTTPStatus.BAD_REQUEST
    if 'is_public' in data:
        media.is_public = bool(data['is_public'])

    db.session.commit()
    return jsonify({'media': media.to_dict()}), HTTPStatus.OK

@media_bp.route('/<uuid:media_id>', methods=['DELETE'])
@token_required
@handle_errors
def delete_media(current_user, media_id):
    media = db.session.get(Media, media_id)
    if not media:
        return jsonify({'error': 'Media not found'}), HTTPStatus.NOT_FOUND

    if not current_user.is_admin:
        if media.owner_id != current_user.id:
            return jsonify({'error': 'You can only delete your own media'}), HTTPStatus.FORBIDDEN
        if media.is_sold:
            return jsonify({
                'error': 'Sold media is removed automatically after its retention period'
            }), HTTPStatus.FORBIDDEN

    try:
        purge_media(media, get_storage())
    except StorageError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), HTTPStatus.BAD_GATEWAY

    return jsonify({'success': True}), HTTPStatus.OK

@media_bp.route('/<uuid:media_id>/download', methods=['GET'])
@token_required
@handle_errors
def download_media(current_user, media_id):
    """Short-lived download link for owners, buyers and free content"""
    media = db.session.get(Media, media_id)
    if not media:
        return jsonify({'error': 'Media not found'}), HTTPStatus.NOT_FOUND

    allowed = (
        current_user.is_admin
        or media.owner_id == current_user.id
        or has_purchased(current_user, media)
        or (not media.is_paid and media.is_public)
    )
    if not allowed:
        return jsonify({'error': 'Purchase required to download this media'}), HTTPStatus.FORBIDDEN

    download_url = get_storage().generate_download_url(media.url, filename=media.title)
    if not download_url:
        return jsonify({'error': 'File is no longer available'}), HTTPStatus.NOT_FOUND

    return jsonify({'url': download_url}), HTTPStatus.OK
