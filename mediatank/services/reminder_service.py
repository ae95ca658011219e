"""Daily download reminders for buyers whose purchases are about to be purged."""
import logging
from datetime import datetime
from flask import current_app
from sqlalchemy.exc import IntegrityError
from mediatank.extensions.extension import db
from mediatank.models.media import Media
from mediatank.models.purchase import Purchase, PurchaseStatus
from mediatank.models.reminder_log import ReminderLog
from mediatank.services.email_service import get_email_service
from mediatank.services.email_templates import generate_download_reminder_email, reminder_subject
from mediatank.services.lifecycle import days_left, SOLD_RETENTION_DAYS
from mediatank.services.notification_service import create_notification

logger = logging.getLogger(__name__)

REMINDER_THRESHOLDS = (7, 3, 1)
MAX_TITLES_IN_NOTIFICATION = 3


def group_purchases_by_buyer(purchases):
    grouped = {}
    for purchase in purchases:
        grouped.setdefault(purchase.buyer_id, []).append(purchase)
    return grouped


def reminder_items(purchases, now):
    """One entry per media item with the whole days left before deletion."""
    items = {}
    for purchase in purchases:
        media = purchase.media
        items[media.id] = {
            'media_id': str(media.id),
            'title': media.title,
            'days_left': days_left(media.delete_after, now)
        }
    return list(items.values())


def should_remind(min_days_remaining, thresholds=REMINDER_THRESHOLDS):
    return min_days_remaining in thresholds


def notification_text(min_days_remaining, items):
    titles = ', '.join(item['title'] for item in items[:MAX_TITLES_IN_NOTIFICATION])
    more = f" and {len(items) - MAX_TITLES_IN_NOTIFICATION} more" if len(items) > MAX_TITLES_IN_NOTIFICATION else ''
    title = f"{min_days_remaining} Day{'s' if min_days_remaining > 1 else ''} Left!"
    message = f'Download "{titles}"{more} before they are permanently deleted.'
    return title, message


def _already_reminded(buyer_id, threshold, run_date):
    return ReminderLog.query.filter_by(
        buyer_id=buyer_id,
        threshold=threshold,
        run_date=run_date
    ).first() is not None


def send_download_reminders(now=None, mailer=None):
    """
    Remind every buyer whose closest deletion deadline sits on a threshold day.

    A buyer gets at most one reminder per run, and at most one per threshold
    per day across runs. A failure for one buyer is recorded and the run
    carries on with the next.

    Returns:
        dict: reminders_sent, total_buyers and the per-buyer results
    """
    now = now or datetime.utcnow()
    mailer = mailer or get_email_service()
    thresholds = tuple(current_app.config.get('REMINDER_THRESHOLDS', REMINDER_THRESHOLDS))
    urgent_window = max(thresholds)
    retention_days = current_app.config.get('SOLD_RETENTION_DAYS', SOLD_RETENTION_DAYS)

    purchases = Purchase.query.join(
        Media, Purchase.media_id == Media.id
    ).filter(
        Purchase.status == PurchaseStatus.completed,
        Media.is_sold.is_(True),
        Media.delete_after > now
    ).all()

    purchases_by_buyer = group_purchases_by_buyer(purchases)
    results = []

    for buyer_id, buyer_purchases in purchases_by_buyer.items():
        buyer = buyer_purchases[0].buyer
        items = reminder_items(buyer_purchases, now)
        min_days_remaining = min(item['days_left'] for item in items)

        if not should_remind(min_days_remaining, thresholds):
            continue

        urgent_items = sorted(
            (item for item in items if item['days_left'] <= urgent_window),
            key=lambda item: item['days_left']
        )
        if not urgent_items:
            continue

        entry = {
            'buyer_id': str(buyer_id),
            'buyer_email': buyer.email,
            'item_count': len(urgent_items),
            'min_days_remaining': min_days_remaining,
            'email_sent': False
        }

        try:
            if _already_reminded(buyer_id, min_days_remaining, now.date()):
                entry['status'] = 'already_sent'
                results.append(entry)
                continue

            # Claim the slot first so a concurrent run trips the unique constraint
            db.session.add(ReminderLog(buyer_id=buyer_id, threshold=min_days_remaining, run_date=now.date()))
            db.session.flush()

            entry['email_sent'] = mailer.send_email(
                buyer.email,
                reminder_subject(min_days_remaining),
                generate_download_reminder_email(buyer.display_name, min_days_remaining, urgent_items, retention_days)
            )

            title, message = notification_text(min_days_remaining, urgent_items)
            create_notification(
                buyer_id,
                'download_reminder',
                title,
                message,
                link=f"/profile/{buyer.username}",
                commit=False
            )
            db.session.commit()
            entry['status'] = 'sent'
            logger.info(f"Sent {min_days_remaining}-day reminder to buyer {buyer_id} for {len(urgent_items)} items")
        except IntegrityError:
            db.session.rollback()
            entry['status'] = 'already_sent'
        except Exception as e:
            db.session.rollback()
            logger.error(f"Failed to send reminder to buyer {buyer_id}: {str(e)}")
            entry['status'] = 'error'
            entry['error'] = str(e)

        results.append(entry)

    reminders_sent = len([r for r in results if r['status'] == 'sent'])
    logger.info(
        f"Reminder run completed. Processed {len(purchases_by_buyer)} buyers, "
        f"sent {reminders_sent} reminders ({len([r for r in results if r['email_sent']])} emails)"
    )

    return {
        'reminders_sent': reminders_sent,
        'total_buyers': len(purchases_by_buyer),
        'results': results
    }
