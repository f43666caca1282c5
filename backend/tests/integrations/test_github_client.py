import base64
import json

import httpx
import pytest

from shop_assistant.core.errors import ConflictError, NotFoundError, TransportError
from shop_assistant.integrations.github_client import GitHubContentsClient


CONTENTS_URL = "https://api.github.com/repos/acme/shop/contents/prompts.json"
RAW_URL = "https://raw.githubusercontent.com/acme/shop/main/prompts.json"


def _client(handler, **kwargs) -> GitHubContentsClient:
    return GitHubContentsClient(
        owner="acme",
        repo="shop",
        token=kwargs.pop("token", "ghp_test"),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_fetch_document_reads_metadata_then_raw_content() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        if str(request.url) == CONTENTS_URL:
            assert request.headers["Accept"] == "application/vnd.github.v3+json"
            return httpx.Response(200, json={"sha": "T1", "download_url": RAW_URL})
        if str(request.url) == RAW_URL:
            return httpx.Response(200, content=b'[{"id": "a"}]')
        return httpx.Response(500)

    stored = _client(handler).fetch_document("prompts.json")

    assert stored.version == "T1"
    assert stored.content == b'[{"id": "a"}]'
    assert seen == [CONTENTS_URL, RAW_URL]


def test_fetch_version_uses_branch_ref() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["ref"] == "staging"
        return httpx.Response(200, json={"sha": "T2", "download_url": RAW_URL})

    assert _client(handler, branch="staging").fetch_version("prompts.json") == "T2"


def test_missing_file_raises_not_found() -> None:
    client = _client(lambda request: httpx.Response(404, json={"message": "Not Found"}))

    with pytest.raises(NotFoundError):
        client.fetch_document("prompts.json")


def test_server_error_surfaces_status_and_body() -> None:
    client = _client(lambda request: httpx.Response(502, text="bad gateway"))

    with pytest.raises(TransportError) as excinfo:
        client.fetch_version("prompts.json")

    assert excinfo.value.status == 502
    assert excinfo.value.body == "bad gateway"
    assert "502 - bad gateway" in excinfo.value.message


def test_connection_failure_is_a_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(TransportError) as excinfo:
        _client(handler).fetch_version("prompts.json")

    assert excinfo.value.status is None


def test_write_sends_base64_content_with_expected_sha() -> None:
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        assert request.headers["Authorization"] == "token ghp_test"
        captured.update(json.loads(request.content))
        return httpx.Response(200, json={"content": {"sha": "T2"}})

    new_sha = _client(handler).write_document(
        "prompts.json",
        "[\"привет\"]".encode("utf-8"),
        expected_version="T1",
        message="Update prompts.json from Admin Panel",
    )

    assert new_sha == "T2"
    assert captured["sha"] == "T1"
    assert captured["message"] == "Update prompts.json from Admin Panel"
    assert base64.b64decode(captured["content"]).decode("utf-8") == "[\"привет\"]"
    assert "branch" not in captured


def test_stale_sha_on_write_raises_conflict() -> None:
    client = _client(lambda request: httpx.Response(409, json={"message": "prompts.json does not match T0"}))

    with pytest.raises(ConflictError) as excinfo:
        client.write_document("prompts.json", b"[]", expected_version="T0", message="m")

    assert excinfo.value.status == 409
    assert "does not match" in excinfo.value.body


def test_bad_credential_on_write_is_a_transport_error() -> None:
    client = _client(lambda request: httpx.Response(401, json={"message": "Bad credentials"}))

    with pytest.raises(TransportError, match="Failed to commit to GitHub: 401"):
        client.write_document("prompts.json", b"[]", expected_version="T1", message="m")


def test_non_json_metadata_is_a_transport_error() -> None:
    client = _client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

    with pytest.raises(TransportError) as excinfo:
        client.fetch_version("prompts.json")

    assert excinfo.value.status == 200
    assert "maintenance" in excinfo.value.body


def test_non_object_write_response_is_a_transport_error() -> None:
    client = _client(lambda request: httpx.Response(200, json=["unexpected"]))

    with pytest.raises(TransportError, match="Unexpected GitHub response: 200"):
        client.write_document("prompts.json", b"[]", expected_version="T1", message="m")
