"""Purge sold media whose retention window has passed."""
import logging
from datetime import datetime
from mediatank.extensions.extension import db
from mediatank.models.media import Media
from mediatank.services.s3_service import get_storage

logger = logging.getLogger(__name__)


def find_expired_media(now=None):
    now = now or datetime.utcnow()
    return Media.query.filter(
        Media.is_sold.is_(True),
        Media.delete_after <= now
    ).order_by(Media.delete_after).all()


def purge_media(media, storage):
    """Remove stored files first, then the row; purchases keep their history."""
    storage.delete_media_files(media)

    for purchase in media.purchases:
        purchase.media_title = purchase.media_title or media.title
    db.session.delete(media)
    db.session.commit()


def sweep_expired_media(now=None, storage=None):
    """
    Delete every sold item past its deadline.

    Each item is handled on its own: a storage or database failure is logged,
    recorded in ``errors`` and the sweep moves on.

    Returns:
        dict: deleted, total and errors (only when there were any)
    """
    expired = find_expired_media(now)
    logger.info(f"Found {len(expired)} media items to delete")

    summary = {'deleted': 0, 'total': len(expired)}
    if not expired:
        return summary

    storage = storage or get_storage()
    errors = []

    for media in expired:
        media_id = media.id
        try:
            purge_media(media, storage)
            summary['deleted'] += 1
            logger.info(f"Purged expired media {media_id}")
        except Exception as e:
            db.session.rollback()
            logger.error(f"Failed to delete media {media_id}: {str(e)}")
            errors.append(f"{media_id}: {str(e)}")

    if errors:
        summary['errors'] = errors
    return summary
