# tests/conftest.py
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from mediatank import create_app
from mediatank.extensions.extension import db
from mediatank.models.media import Media, MediaType
from mediatank.models.purchase import Purchase, PurchaseStatus
from mediatank.models.user import User, UserRole, MembershipType
from mediatank.utils.errors import StorageError

NOW = datetime(2025, 1, 15, 12, 0, 0)


class FakeStorage:
    """Records deletions instead of talking to S3."""

    def __init__(self):
        self.deleted = []
        self.fail_on = set()

    def delete_media_files(self, media):
        if media.url in self.fail_on:
            raise StorageError(f"Failed to delete {media.url}")
        self.deleted.append(media.url)

    def generate_upload_url(self, user_id, filename, content_type=None, expires_in=3600):
        file_key = f"media/{user_id}/{filename}"
        return {
            'upload_url': f"https://uploads.example.com/{file_key}?signature=abc",
            'file_key': file_key,
            'file_url': f"https://bucket.example.com/{file_key}",
            'content_type': content_type or 'application/octet-stream'
        }

    def generate_download_url(self, url, filename=None, expires_in=3600):
        return f"{url}?download=1"


class FakeMailer:
    def __init__(self, succeed=True):
        self.sent = []
        self.succeed = succeed

    def send_email(self, recipient_email, subject, html_body, plain_body=None):
        self.sent.append({'to': recipient_email, 'subject': subject, 'html': html_body})
        return self.succeed


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        app.extensions['storage'] = FakeStorage()
        app.extensions['mailer'] = FakeMailer()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage(app):
    return app.extensions['storage']


@pytest.fixture
def mailer(app):
    return app.extensions['mailer']


@pytest.fixture
def make_user(app):
    counter = {'n': 0}

    def _make_user(username=None, role=UserRole.VIEWER, membership_type=MembershipType.VIEWER, **kwargs):
        counter['n'] += 1
        username = username or f"user{counter['n']}"
        user = User(
            username=username,
            email=kwargs.pop('email', f"{username}@example.com"),
            role=role,
            membership_type=membership_type,
            **kwargs
        )
        user.password = 'secret123'
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def make_media(app):
    def _make_media(owner, title='Sunset Loop', price='9.99', **kwargs):
        media = Media(
            owner_id=owner.id,
            title=title,
            type=kwargs.pop('type', MediaType.VIDEO),
            url=kwargs.pop('url', f"https://bucket.example.com/media/{title.replace(' ', '_')}.mp4"),
            price=Decimal(price) if price is not None else None,
            **kwargs
        )
        db.session.add(media)
        db.session.commit()
        return media

    return _make_media


@pytest.fixture
def make_purchase(app):
    def _make_purchase(buyer, media, status=PurchaseStatus.completed, completed_at=NOW, session_id='cs_test_1'):
        purchase = Purchase(
            buyer_id=buyer.id,
            seller_id=media.owner_id,
            media_id=media.id,
            media_title=media.title,
            amount=media.price or Decimal('0'),
            status=status,
            stripe_session_id=session_id,
            completed_at=completed_at if status == PurchaseStatus.completed else None
        )
        db.session.add(purchase)
        db.session.commit()
        return purchase

    return _make_purchase


@pytest.fixture
def make_sold(make_user, make_media, make_purchase):
    """A sold item bought by ``buyer`` with ``days`` left before deletion."""
    def _make_sold(buyer, title, days, now=NOW, seller=None):
        seller = seller or make_user(role=UserRole.SUBSCRIBER)
        media = make_media(seller, title=title)
        make_purchase(buyer, media)
        media.is_sold = True
        media.is_public = False
        media.delete_after = now + timedelta(days=days)
        media.sold_at = media.delete_after - timedelta(days=10)
        db.session.commit()
        return media

    return _make_sold


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user):
        return {'Authorization': f"Bearer {create_access_token(identity=str(user.id))}"}

    return _auth_headers


@pytest.fixture
def cron_headers(app):
    return {'X-Cron-Secret': app.config['CRON_SECRET']}
