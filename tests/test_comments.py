from datetime import timedelta

from mediatank.extensions.extension import db
from mediatank.models.comment import Comment
from mediatank.models.media import Media
from mediatank.models.user import UserRole
from mediatank.services.cleanup_service import purge_media
from tests.conftest import NOW


def test_add_and_list_comments(client, make_user, make_media, auth_headers):
    media = make_media(make_user(role=UserRole.SUBSCRIBER))
    viewer = make_user()
    path = f'/api/media/{media.id}/comments'

    response = client.post(path, json={'content': ' Stunning colours '}, headers=auth_headers(viewer))
    assert response.status_code == 201
    assert response.json['comment']['content'] == 'Stunning colours'
    assert response.json['comment']['user']['id'] == str(viewer.id)

    comment = Comment.query.one()
    comment.created_at = NOW
    db.session.add(Comment(user_id=viewer.id, media_id=media.id, content='Again',
                           created_at=NOW + timedelta(minutes=5)))
    db.session.commit()

    listed = client.get(path).json['comments']
    assert [c['content'] for c in listed] == ['Again', 'Stunning colours']


def test_comment_validation_and_visibility(client, make_user, make_media, auth_headers):
    owner = make_user(role=UserRole.SUBSCRIBER)
    hidden = make_media(owner, title='Hidden', is_public=False)
    media = make_media(owner, title='Open')
    stranger = make_user()
    headers = auth_headers(stranger)

    assert client.post(f'/api/media/{media.id}/comments', json={'content': '  '}, headers=headers).status_code == 400
    assert client.post(f'/api/media/{media.id}/comments', json={'content': 'x' * 1001},
                       headers=headers).status_code == 400
    assert client.post(f'/api/media/{media.id}/comments', json={'content': 'hi'}).status_code == 401
    assert client.post(f'/api/media/{hidden.id}/comments', json={'content': 'hi'},
                       headers=headers).status_code == 404
    assert client.get(f'/api/media/{hidden.id}/comments').status_code == 404
    assert client.get(f'/api/media/{hidden.id}/comments', headers=auth_headers(owner)).status_code == 200
    assert Comment.query.count() == 0


def test_only_author_edits_comment(client, make_user, make_media, auth_headers):
    media = make_media(make_user(role=UserRole.SUBSCRIBER))
    author = make_user()
    other = make_user()
    comment = Comment(user_id=author.id, media_id=media.id, content='Nice')
    db.session.add(comment)
    db.session.commit()
    path = f'/api/media/{media.id}/comments/{comment.id}'

    assert client.patch(path, json={'content': 'Hijacked'}, headers=auth_headers(other)).status_code == 403

    response = client.patch(path, json={'content': 'Very nice'}, headers=auth_headers(author))
    assert response.status_code == 200
    assert comment.content == 'Very nice'


def test_author_or_admin_deletes_comment(client, make_user, make_media, auth_headers):
    media = make_media(make_user(role=UserRole.SUBSCRIBER))
    author = make_user()
    admin = make_user(role=UserRole.ADMIN)
    first = Comment(user_id=author.id, media_id=media.id, content='one')
    second = Comment(user_id=author.id, media_id=media.id, content='two')
    db.session.add_all([first, second])
    db.session.commit()
    first_id, second_id = first.id, second.id

    assert client.delete(f'/api/media/{media.id}/comments/{first_id}',
                         headers=auth_headers(make_user())).status_code == 403
    assert client.delete(f'/api/media/{media.id}/comments/{first_id}', headers=auth_headers(author)).status_code == 200
    assert client.delete(f'/api/media/{media.id}/comments/{second_id}', headers=auth_headers(admin)).status_code == 200
    assert client.delete(f'/api/media/{media.id}/comments/{second_id}', headers=auth_headers(admin)).status_code == 404
    assert Comment.query.count() == 0


def test_comment_must_belong_to_media_in_path(client, make_user, make_media, auth_headers):
    owner = make_user(role=UserRole.SUBSCRIBER)
    media = make_media(owner, title='One')
    other_media = make_media(owner, title='Two')
    author = make_user()
    comment = Comment(user_id=author.id, media_id=media.id, content='Nice')
    db.session.add(comment)
    db.session.commit()

    response = client.delete(f'/api/media/{other_media.id}/comments/{comment.id}', headers=auth_headers(author))

    assert response.status_code == 404
    assert Comment.query.count() == 1


def test_purging_media_removes_its_comments(app, make_user, make_media, storage):
    media = make_media(make_user(role=UserRole.SUBSCRIBER))
    db.session.add(Comment(user_id=make_user().id, media_id=media.id, content='bye'))
    db.session.commit()

    purge_media(media, storage)

    assert Media.query.count() == 0
    assert Comment.query.count() == 0
