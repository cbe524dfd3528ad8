"""
Tests for asset storage.
"""

import httpx
import pytest
from shared.errors import StorageError
from shared.storage import AssetStore


def make_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_persist_downloads_and_writes(tmp_path):
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, content=b"mp4-bytes")

    async with make_client(handler) as client:
        store = AssetStore(str(tmp_path), "http://localhost:3000/", client)
        asset = await store.persist("https://cdn.kie.ai/tmp/abc.mp4", "job-1-scene1-video.mp4")

    assert requested == ["https://cdn.kie.ai/tmp/abc.mp4"]
    assert (tmp_path / "job-1-scene1-video.mp4").read_bytes() == b"mp4-bytes"
    assert asset.path == str(tmp_path.resolve() / "job-1-scene1-video.mp4")
    assert asset.public_url == "http://localhost:3000/assets/job-1-scene1-video.mp4"


@pytest.mark.asyncio
async def test_persist_http_error(tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="expired")

    async with make_client(handler) as client:
        store = AssetStore(str(tmp_path), "http://localhost:3000", client)
        with pytest.raises(StorageError) as exc_info:
            await store.persist("https://cdn.kie.ai/tmp/abc.mp4", "a.mp4")

    assert "403" in str(exc_info.value)
    assert not (tmp_path / "a.mp4").exists()


@pytest.mark.asyncio
async def test_persist_transport_error(tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        store = AssetStore(str(tmp_path), "http://localhost:3000", client)
        with pytest.raises(StorageError) as exc_info:
            await store.persist("https://cdn.kie.ai/tmp/abc.mp4", "a.mp4")

    assert "connection refused" in str(exc_info.value)


@pytest.mark.asyncio
async def test_persist_rejects_nested_filename(tmp_path):
    store = AssetStore(str(tmp_path), "http://localhost:3000")

    with pytest.raises(StorageError):
        await store.persist("https://cdn.kie.ai/tmp/abc.mp4", "../escape.mp4")


@pytest.mark.asyncio
async def test_persist_rejects_empty_url(tmp_path):
    store = AssetStore(str(tmp_path), "http://localhost:3000")

    with pytest.raises(StorageError):
        await store.persist("", "a.mp4")


def test_public_url(tmp_path):
    store = AssetStore(str(tmp_path), "https://render.example.com/")

    assert store.public_url("x.jpg") == "https://render.example.com/assets/x.jpg"
