from html import escape


def _plural(count, word):
    return f"{count} {word}{'' if count == 1 else 's'}"


def purchase_subject(item_count):
    return f"Purchase Confirmed - Download Your {_plural(item_count, 'Item')}"


def generate_purchase_email(buyer_name, items, retention_days=10):
    """items: iterable of dicts with ``title`` and ``price``"""
    items_list = ''.join(
        f"<li>{escape(item['title'])} - ${float(item['price'] or 0):.2f}</li>" for item in items
    )
    return f"""
    <p>Dear {escape(buyer_name)},</p>
    <p>Thank you for your purchase! Your payment has been confirmed.</p>
    <ul>{items_list}</ul>
    <p><strong>Please download your items within {retention_days} days.</strong>
    Purchased items are permanently deleted from our servers {retention_days} days after the purchase date.</p>
    <p>You can find them under <strong>My Contents - Purchased</strong>.</p>
    """


def reminder_subject(days_remaining):
    return f"{_plural(days_remaining, 'Day')} Left - Download Your Purchases Before Deletion"


def generate_download_reminder_email(buyer_name, days_remaining, items, retention_days=10):
    """items: iterable of dicts with ``title`` and ``days_left``"""
    items = list(items)
    items_list = ''.join(
        f"<li>{escape(item['title'])} - <strong>{_plural(item['days_left'], 'day')} left</strong></li>" for item in items
    )
    item_count = len(items)
    return f"""
    <p>Dear {escape(buyer_name)},</p>
    <p><strong>Your purchased items will be deleted in {_plural(days_remaining, 'day')}!</strong></p>
    <p>Please download your purchased items from <strong>My Contents - Purchased</strong> before they are removed
    from the server. Purchased items are permanently deleted {retention_days} days after the purchase date.</p>
    <p>Items requiring download:</p>
    <ul>{items_list}</ul>
    <p>You currently have <strong>{_plural(item_count, 'item')}</strong> that
    require{'s' if item_count == 1 else ''} your action to avoid losing access.</p>
    """


def generate_code_email(code, expiry_minutes, purpose='verification', username=None):
    greeting = f"Hello {escape(username)}," if username else "Hello,"
    if purpose == 'password_reset':
        intro = "We received a request to reset your password. Use the code below to reset it:"
        outro = "If you didn't request this password reset, please ignore this email. Your password will remain unchanged."
    else:
        intro = "Your verification code is:"
        outro = "If you didn't request this code, you can safely ignore this email."
    return f"""
    <p>{greeting}</p>
    <p>{intro}</p>
    <p style="font-size: 32px; letter-spacing: 8px; font-family: monospace;"><strong>{code}</strong></p>
    <p>This code will expire in <strong>{expiry_minutes} minutes</strong>.</p>
    <p>{outro}</p>
    """


def cancellation_subject(plan_name):
    return f"Your {plan_name} Subscription Has Been Cancelled"


def generate_cancellation_email(user_name, plan_name):
    return f"""
    <p>Dear {escape(user_name)},</p>
    <p>Your <strong>{escape(plan_name)}</strong> subscription has been cancelled.</p>
    <p>What happens now:</p>
    <ul>
        <li>Your account has been downgraded to Viewer (Free)</li>
        <li>Your existing uploads will remain on the platform</li>
        <li>You can still browse and enjoy all public content</li>
        <li>You can resubscribe anytime to upload new content</li>
    </ul>
    <p>We're sorry to see you go!</p>
    """
