from datetime import datetime

from mediatank.extensions.extension import db
from mediatank.models.media import Media, MediaType
from mediatank.models.purchase import PurchaseStatus
from mediatank.models.user import MembershipType, UserRole


def new_media_payload(**overrides):
    payload = {
        'title': 'Dream Sequence',
        'type': 'VIDEO',
        'url': 'https://bucket.example.com/media/dream.mp4',
        'price': '12.50',
        'ai_tool': 'Sora'
    }
    payload.update(overrides)
    return payload


def test_subscriber_upload_spends_free_quota(client, make_user, auth_headers):
    creator = make_user(role=UserRole.SUBSCRIBER, free_uploads_used=1)

    response = client.post('/api/media', json=new_media_payload(), headers=auth_headers(creator))

    assert response.status_code == 201
    assert response.json['allowance'] == 'free'
    assert response.json['media']['price'] == 12.5
    assert creator.free_uploads_used == 2


def test_viewer_role_cannot_upload(client, make_user, auth_headers):
    viewer = make_user()

    response = client.post('/api/media', json=new_media_payload(), headers=auth_headers(viewer))

    assert response.status_code == 403


def test_upload_needs_payment_after_free_quota(client, make_user, auth_headers):
    creator = make_user(role=UserRole.SUBSCRIBER, membership_type=MembershipType.BASIC, free_uploads_used=5)

    response = client.post('/api/media', json=new_media_payload(), headers=auth_headers(creator))

    assert response.status_code == 402
    assert response.json['cost'] == 1.0
    assert Media.query.count() == 0


def test_upload_validation(client, make_user, auth_headers):
    creator = make_user(role=UserRole.SUBSCRIBER)
    headers = auth_headers(creator)

    assert client.post('/api/media', json=new_media_payload(title=''), headers=headers).status_code == 400
    assert client.post('/api/media', json=new_media_payload(type='GIF'), headers=headers).status_code == 400
    assert client.post('/api/media', json=new_media_payload(price='-1'), headers=headers).status_code == 400
    assert creator.free_uploads_used == 0


def test_catalogue_hides_sold_media(client, make_user, make_media, make_sold):
    seller = make_user(role=UserRole.SUBSCRIBER)
    make_media(seller, title='On Sale')
    make_sold(make_user(), 'Gone', 5, seller=seller)

    response = client.get('/api/media')

    assert response.status_code == 200
    assert [m['title'] for m in response.json['media']] == ['On Sale']
    assert response.json['pagination']['total'] == 1


def test_catalogue_filters_by_type_and_search(client, make_user, make_media):
    seller = make_user(role=UserRole.SUBSCRIBER)
    make_media(seller, title='Ocean Waves')
    make_media(seller, title='Forest Track', type=MediaType.MUSIC)

    assert [m['title'] for m in client.get('/api/media?type=MUSIC').json['media']] == ['Forest Track']
    assert [m['title'] for m in client.get('/api/media?search=ocean').json['media']] == ['Ocean Waves']


def test_sold_media_detail_visible_to_buyer_only(client, make_user, make_sold, auth_headers):
    buyer = make_user()
    stranger = make_user()
    media = make_sold(buyer, 'Private Now', 4, now=datetime.utcnow())

    assert client.get(f'/api/media/{media.id}').status_code == 404
    assert client.get(f'/api/media/{media.id}', headers=auth_headers(stranger)).status_code == 404

    response = client.get(f'/api/media/{media.id}', headers=auth_headers(buyer))
    assert response.status_code == 200
    assert response.json['media']['purchased'] is True
    assert response.json['media']['days_remaining'] == 4


def test_owner_cannot_delete_sold_media(client, make_user, make_sold, auth_headers, storage):
    seller = make_user(role=UserRole.SUBSCRIBER)
    admin = make_user(role=UserRole.ADMIN)
    media = make_sold(make_user(), 'Sold Out', 6, seller=seller)
    media_id = media.id

    assert client.delete(f'/api/media/{media_id}', headers=auth_headers(seller)).status_code == 403

    response = client.delete(f'/api/media/{media_id}', headers=auth_headers(admin))
    assert response.status_code == 200
    assert Media.query.count() == 0
    assert len(storage.deleted) == 1


def test_owner_deletes_unsold_media(client, make_user, make_media, auth_headers):
    owner = make_user(role=UserRole.SUBSCRIBER)
    other = make_user(role=UserRole.SUBSCRIBER)
    media = make_media(owner)
    media_id = media.id

    assert client.delete(f'/api/media/{media_id}', headers=auth_headers(other)).status_code == 403
    assert client.delete(f'/api/media/{media_id}', headers=auth_headers(owner)).status_code == 200


def test_download_requires_purchase_for_paid_media(client, make_user, make_media, make_purchase, auth_headers):
    buyer = make_user()
    media = make_media(make_user(role=UserRole.SUBSCRIBER))
    path = f'/api/media/{media.id}/download'

    assert client.get(path, headers=auth_headers(buyer)).status_code == 403

    make_purchase(buyer, media, status=PurchaseStatus.completed)
    response = client.get(path, headers=auth_headers(buyer))
    assert response.status_code == 200
    assert response.json['url'].endswith('?download=1')


def test_rating_upsert(client, make_user, make_media, auth_headers):
    media = make_media(make_user(role=UserRole.SUBSCRIBER))
    rater = make_user()
    path = f'/api/media/{media.id}/rating'

    assert client.post(path, json={'score': 6}, headers=auth_headers(rater)).status_code == 400

    client.post(path, json={'score': 2}, headers=auth_headers(rater))
    response = client.post(path, json={'score': 4}, headers=auth_headers(rater))

    assert response.json['avg_rating'] == 4
    assert response.json['count'] == 1
    assert client.get(path, headers=auth_headers(rater)).json['user_rating'] == 4


def test_rating_hidden_media_is_not_found(client, make_user, make_media, auth_headers):
    media = make_media(make_user(role=UserRole.SUBSCRIBER), is_public=False)
    stranger = make_user()
    path = f'/api/media/{media.id}/rating'

    response = client.post(path, json={'score': 5}, headers=auth_headers(stranger))

    assert response.status_code == 404
    assert client.get(path).status_code == 404
    assert media.ratings == []


def test_rating_allowed_for_buyer_of_hidden_media(client, make_user, make_media, make_purchase, auth_headers):
    media = make_media(make_user(role=UserRole.SUBSCRIBER), is_public=False)
    buyer = make_user()
    make_purchase(buyer, media)

    response = client.post(f'/api/media/{media.id}/rating', json={'score': 5}, headers=auth_headers(buyer))

    assert response.status_code == 200
    assert response.json['count'] == 1


def test_owner_cannot_rate_own_media(client, make_user, make_media, auth_headers):
    owner = make_user(role=UserRole.SUBSCRIBER)
    media = make_media(owner)

    response = client.post(f'/api/media/{media.id}/rating', json={'score': 5}, headers=auth_headers(owner))

    assert response.status_code == 400
    assert media.ratings == []


def test_upload_url_and_status(client, make_user, auth_headers):
    creator = make_user(role=UserRole.SUBSCRIBER, membership_type=MembershipType.ADVANCED, free_uploads_used=5)
    headers = auth_headers(creator)

    status = client.get('/api/upload/status', headers=headers).json
    assert status['status_type'] == 'paid'

    response = client.post('/api/upload/url', json={'filename': 'clip.mp4', 'content_type': 'video/mp4'},
                           headers=headers)
    assert response.status_code == 402
    assert response.json['cost'] == 0.5

    creator.paid_upload_credits = 1
    db.session.commit()
    response = client.post('/api/upload/url', json={'filename': 'clip.mp4', 'content_type': 'video/mp4'},
                           headers=headers)
    assert response.status_code == 200
    assert response.json['file_key'].endswith('clip.mp4')

    response = client.post('/api/upload/url', json={'filename': 'notes.txt', 'content_type': 'text/plain'},
                           headers=headers)
    assert response.status_code == 400
