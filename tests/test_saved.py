from datetime import timedelta

from mediatank.extensions.extension import db
from mediatank.models.saved_media import SavedMedia
from mediatank.models.user import UserRole
from mediatank.services.cleanup_service import purge_media
from tests.conftest import NOW


def test_save_toggle_and_state(client, make_user, make_media, auth_headers):
    media = make_media(make_user(role=UserRole.SUBSCRIBER))
    user = make_user()
    headers = auth_headers(user)
    path = f'/api/media/{media.id}/save'

    assert client.get(path, headers=headers).json == {'saved': False}

    response = client.post(path, headers=headers)
    assert response.status_code == 201
    assert client.get(path, headers=headers).json == {'saved': True}

    again = client.post(path, headers=headers)
    assert again.status_code == 400
    assert again.json['saved'] is True
    assert SavedMedia.query.count() == 1

    assert client.delete(path, headers=headers).json == {'success': True, 'saved': False}
    assert client.get(path, headers=headers).json == {'saved': False}
    assert client.delete(path, headers=headers).status_code == 200


def test_cannot_save_hidden_or_missing_media(client, make_user, make_media, auth_headers):
    hidden = make_media(make_user(role=UserRole.SUBSCRIBER), is_public=False)
    headers = auth_headers(make_user())

    assert client.post(f'/api/media/{hidden.id}/save', headers=headers).status_code == 404
    assert client.post('/api/media/00000000-0000-0000-0000-000000000000/save', headers=headers).status_code == 404
    assert client.post(f'/api/media/{hidden.id}/save').status_code == 401
    assert SavedMedia.query.count() == 0


def test_saved_list_newest_first_and_visible_only(client, make_user, make_media, auth_headers):
    owner = make_user(role=UserRole.SUBSCRIBER)
    older = make_media(owner, title='Older')
    newer = make_media(owner, title='Newer')
    hidden_later = make_media(owner, title='Hidden Later')
    user = make_user()
    for minutes, media in enumerate((older, newer, hidden_later)):
        db.session.add(SavedMedia(user_id=user.id, media_id=media.id, created_at=NOW + timedelta(minutes=minutes)))
    hidden_later.is_public = False
    db.session.commit()

    response = client.get('/api/user/saved', headers=auth_headers(user))

    assert response.status_code == 200
    assert [m['title'] for m in response.json['media']] == ['Newer', 'Older']
    assert response.json['media'][0]['saved_at'] == (NOW + timedelta(minutes=1)).isoformat()


def test_purging_media_removes_saves(app, make_user, make_media, storage):
    media = make_media(make_user(role=UserRole.SUBSCRIBER))
    db.session.add(SavedMedia(user_id=make_user().id, media_id=media.id))
    db.session.commit()

    purge_media(media, storage)

    assert SavedMedia.query.count() == 0
