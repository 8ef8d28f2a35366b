import io
from unittest.mock import MagicMock

import pytest

from gallery.storage.object_store import MinioObjectStore


@pytest.fixture
def minio_client():
    client = MagicMock()
    client.bucket_exists.return_value = True
    return client


@pytest.fixture
def store(minio_client):
    return MinioObjectStore(client=minio_client, public_url="http://cdn.test/")


@pytest.mark.asyncio
async def test_upload_puts_object_and_returns_public_url(store, minio_client):
    url = await store.upload("plugins-images", "logo0a1b.png", b"\x89PNG data", "image/png")

    assert url == "http://cdn.test/plugins-images/logo0a1b.png"
    minio_client.make_bucket.assert_not_called()

    args, kwargs = minio_client.put_object.call_args
    assert args[:2] == ("plugins-images", "logo0a1b.png")
    assert isinstance(args[2], io.BytesIO)
    assert args[2].getvalue() == b"\x89PNG data"
    assert kwargs == {"length": len(b"\x89PNG data"), "content_type": "image/png"}


@pytest.mark.asyncio
async def test_upload_creates_missing_bucket(store, minio_client):
    minio_client.bucket_exists.return_value = False

    await store.upload("plugins-images", "logo.png", b"data")

    minio_client.bucket_exists.assert_called_once_with("plugins-images")
    minio_client.make_bucket.assert_called_once_with("plugins-images")
    assert minio_client.put_object.call_args.kwargs["content_type"] == "application/octet-stream"


@pytest.mark.asyncio
async def test_upload_failure_propagates(store, minio_client):
    minio_client.put_object.side_effect = ConnectionError("minio down")

    with pytest.raises(ConnectionError):
        await store.upload("plugins-images", "logo.png", b"data")


@pytest.mark.asyncio
async def test_remove_deletes_object(store, minio_client):
    await store.remove("plugins-images", "logo0a1b.png")

    minio_client.remove_object.assert_called_once_with("plugins-images", "logo0a1b.png")


def test_object_url_uses_public_url(minio_client):
    store = MinioObjectStore(client=minio_client, public_url="http://localhost:9000")

    assert store.object_url("plugins-images", "a.png") == "http://localhost:9000/plugins-images/a.png"
