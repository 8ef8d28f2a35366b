import httpx
import pytest
from pydantic import ValidationError

from gallery.integrations.github.service import GitHubClient


def _client(handler):
    return GitHubClient(
        api_url="https://api.github.test",
        raw_url="https://raw.github.test",
        owner="rcb",
        repo="themes",
        path="themes",
        branch="main",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_list_theme_folders_keeps_directories():
    def handler(request):
        assert request.url.path == "/repos/rcb/themes/contents/themes"
        assert request.url.params["ref"] == "main"
        return httpx.Response(200, json=[
            {"name": "minimal_midnight", "type": "dir"},
            {"name": "README.md", "type": "file"},
            {"name": "ocean", "type": "dir"},
        ])

    client = _client(handler)
    folders = await client.list_theme_folders()
    await client.close()

    assert folders == ["minimal_midnight", "ocean"]


@pytest.mark.asyncio
async def test_fetch_theme_meta():
    def handler(request):
        assert str(request.url) == "https://raw.github.test/rcb/themes/main/themes/ocean/meta.json"
        return httpx.Response(200, json={"name": "Ocean", "description": "Blue", "version": "1.2.0", "github": "octo"})

    meta = await _client(handler).fetch_theme_meta("ocean")

    assert meta.name == "Ocean"
    assert meta.version == "1.2.0"
    assert meta.github == "octo"


@pytest.mark.asyncio
async def test_fetch_theme_meta_requires_version():
    client = _client(lambda r: httpx.Response(200, json={"name": "Ocean"}))

    with pytest.raises(ValidationError):
        await client.fetch_theme_meta("ocean")


@pytest.mark.asyncio
async def test_listing_failure_raises():
    client = _client(lambda r: httpx.Response(500))

    with pytest.raises(httpx.HTTPStatusError):
        await client.list_theme_folders()


@pytest.mark.asyncio
async def test_get_user_id():
    def handler(request):
        if request.url.path == "/users/octo":
            return httpx.Response(200, json={"id": 4242, "login": "octo"})
        return httpx.Response(404, json={"message": "Not Found"})

    client = _client(handler)

    assert await client.get_user_id("octo") == "4242"
    assert await client.get_user_id("nobody") is None


@pytest.mark.asyncio
async def test_get_user_id_escapes_the_handle():
    seen = []

    def handler(request):
        seen.append(request.url.raw_path)
        return httpx.Response(404, json={"message": "Not Found"})

    assert await _client(handler).get_user_id("octo/../admin") is None
    assert seen == [b"/users/octo%2F..%2Fadmin"]


@pytest.mark.asyncio
async def test_list_contributors_keeps_profile_fields():
    def handler(request):
        assert request.url.path == "/repos/react-chatbotify/gallery-api/contributors"
        return httpx.Response(200, json=[
            {
                "login": "octo",
                "id": 1,
                "avatar_url": "https://avatars.test/octo",
                "html_url": "https://github.test/octo",
                "contributions": 42,
            },
        ])

    contributors = await _client(handler).list_contributors("react-chatbotify/gallery-api")

    assert [c.model_dump() for c in contributors] == [
        {"login": "octo", "avatar_url": "https://avatars.test/octo", "html_url": "https://github.test/octo"},
    ]


@pytest.mark.asyncio
async def test_list_contributors_failure_raises():
    client = _client(lambda r: httpx.Response(403, json={"message": "rate limited"}))

    with pytest.raises(httpx.HTTPStatusError):
        await client.list_contributors("react-chatbotify/gallery-api")
