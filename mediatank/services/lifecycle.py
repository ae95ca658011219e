"""Sold-state transitions for paid media.

A paid item that sells is hidden from browsing and given a fixed deletion
deadline. The reminder and cleanup jobs read the ``delete_after`` stamp set
here.
"""
import logging
import math
from datetime import datetime, timedelta
from flask import current_app
from mediatank.extensions.extension import db
from mediatank.models.media import Media
from mediatank.models.purchase import Purchase, PurchaseStatus

logger = logging.getLogger(__name__)

SOLD_RETENTION_DAYS = 10
SECONDS_PER_DAY = 24 * 60 * 60


def retention_period():
    return timedelta(days=current_app.config.get('SOLD_RETENTION_DAYS', SOLD_RETENTION_DAYS))


def days_left(delete_after, now=None):
    """Whole days until ``delete_after``, rounded up (a partial day counts as one)."""
    now = now or datetime.utcnow()
    return math.ceil((delete_after - now).total_seconds() / SECONDS_PER_DAY)


def mark_media_sold(media, purchase=None, now=None, commit=True):
    """
    Flip a media item into the sold state.

    Args:
        media (Media): the item that was bought
        purchase (Purchase): the completed purchase, its ``completed_at`` is the sale time
        now (datetime): fallback sale time when the purchase carries none
        commit (bool): commit the session after writing

    Returns:
        bool: True if the item was written, False if it was already sold
    """
    if media.is_sold:
        return False

    sold_at = (purchase.completed_at if purchase is not None else None) or now or datetime.utcnow()

    media.is_sold = True
    media.sold_at = sold_at
    media.delete_after = sold_at + retention_period()
    media.is_public = False

    if commit:
        db.session.commit()

    logger.info(f"Media {media.id} marked as sold, scheduled for deletion on {media.delete_after.isoformat()}")
    return True


def sync_sold_status(now=None):
    """Mark every media item that has a completed purchase but is not yet sold."""
    completed_purchases = Purchase.query.filter(
        Purchase.status == PurchaseStatus.completed,
        Purchase.media_id.isnot(None)
    ).order_by(Purchase.completed_at).all()

    results = []
    for purchase in completed_purchases:
        media = purchase.media
        entry = {
            'media_id': str(purchase.media_id),
            'title': media.title
        }

        if media.is_sold:
            entry['status'] = 'already_sold'
            results.append(entry)
            continue

        try:
            mark_media_sold(media, purchase, now=now)
            entry['status'] = 'marked_sold'
            entry['delete_after'] = media.delete_after.isoformat()
        except Exception as e:
            db.session.rollback()
            logger.error(f"Failed to mark media {purchase.media_id} as sold: {str(e)}")
            entry['status'] = 'error'
            entry['error'] = str(e)
        results.append(entry)

    return {
        'total_purchases': len(completed_purchases),
        'results': results
    }


def sync_status():
    completed_purchases = Purchase.query.filter_by(status=PurchaseStatus.completed).count()
    sold_media = Media.query.filter_by(is_sold=True).count()

    unsynced = Purchase.query.join(Media, Purchase.media_id == Media.id).filter(
        Purchase.status == PurchaseStatus.completed,
        Media.is_sold.is_(False)
    ).all()

    return {
        'completed_purchases': completed_purchases,
        'sold_media': sold_media,
        'unsynced_count': len(unsynced),
        'unsynced': [{
            'purchase_id': str(p.id),
            'media_id': str(p.media_id),
            'media_title': p.media.title,
            'is_sold': p.media.is_sold
        } for p in unsynced]
    }
