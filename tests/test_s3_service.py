from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from mediatank.services.s3_service import S3Service
from mediatank.utils.errors import StorageError


def client_error(code, operation='DeleteObject'):
    return ClientError({'Error': {'Code': code, 'Message': code}}, operation)


@pytest.fixture
def s3_client():
    return MagicMock()


@pytest.fixture
def service(s3_client):
    with patch('mediatank.services.s3_service.boto3.client', return_value=s3_client):
        return S3Service('media-bucket', region='us-east-1')


@pytest.mark.parametrize('url, expected', [
    ('https://media-bucket.s3.us-east-1.amazonaws.com/media/u1/clip.mp4', 'media/u1/clip.mp4'),
    ('https://s3.us-east-1.amazonaws.com/media-bucket/media/u1/clip.mp4', 'media/u1/clip.mp4'),
    ('https://media-bucket.s3.amazonaws.com/media/u1/my%20clip.mp4', 'media/u1/my clip.mp4'),
    ('media/u1/clip.mp4', 'media/u1/clip.mp4'),
    ('/media/u1/clip.mp4', 'media/u1/clip.mp4'),
])
def test_object_key_from_url(service, url, expected):
    assert service.object_key_from_url(url) == expected


@pytest.mark.parametrize('url', [None, '', '/', 'https://', 'https://media-bucket.s3.amazonaws.com/'])
def test_object_key_from_unusable_url_is_none(service, url):
    assert service.object_key_from_url(url) is None


def test_delete_if_exists_deletes_object(service, s3_client):
    service.delete_if_exists('media/u1/clip.mp4')

    s3_client.delete_object.assert_called_once_with(Bucket='media-bucket', Key='media/u1/clip.mp4')


@pytest.mark.parametrize('code', ['NoSuchKey', '404', 'NotFound'])
def test_delete_if_exists_ignores_missing_object(service, s3_client, code):
    s3_client.delete_object.side_effect = client_error(code)

    service.delete_if_exists('media/u1/gone.mp4')

    s3_client.delete_object.assert_called_once()


@pytest.mark.parametrize('code', ['AccessDenied', 'InternalError'])
def test_delete_if_exists_wraps_other_errors(service, s3_client, code):
    s3_client.delete_object.side_effect = client_error(code)

    with pytest.raises(StorageError) as exc_info:
        service.delete_if_exists('media/u1/clip.mp4')

    assert 'media/u1/clip.mp4' in str(exc_info.value)


def test_delete_media_files_removes_file_and_thumbnail(service, s3_client):
    media = SimpleNamespace(
        url='https://media-bucket.s3.us-east-1.amazonaws.com/media/u1/clip.mp4',
        thumbnail_url='https://s3.us-east-1.amazonaws.com/media-bucket/thumbs/u1/clip.jpg'
    )

    service.delete_media_files(media)

    keys = [c.kwargs['Key'] for c in s3_client.delete_object.call_args_list]
    assert keys == ['media/u1/clip.mp4', 'thumbs/u1/clip.jpg']


def test_delete_media_files_skips_unparseable_urls(service, s3_client):
    media = SimpleNamespace(url='https://', thumbnail_url=None)

    service.delete_media_files(media)

    s3_client.delete_object.assert_not_called()


def test_delete_media_files_propagates_storage_error(service, s3_client):
    s3_client.delete_object.side_effect = client_error('AccessDenied')
    media = SimpleNamespace(url='media/u1/clip.mp4', thumbnail_url=None)

    with pytest.raises(StorageError):
        service.delete_media_files(media)
