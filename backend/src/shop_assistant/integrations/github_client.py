from __future__ import annotations

import base64
from dataclasses import dataclass
import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from ..core.errors import ConflictError, NotFoundError, TransportError


log = logging.getLogger("assistant.integrations.github")

# GitHub answers a stale blob SHA with 409; some proxies turn it into 412
_CONFLICT_STATUSES = {409, 412}


@dataclass(frozen=True)
class StoredDocument:
    content: bytes
    version: str


class DocumentStore(Protocol):
    def fetch_document(self, path: str) -> StoredDocument: ...

    def fetch_version(self, path: str) -> str: ...

    def write_document(self, path: str, content: bytes, *, expected_version: str, message: str) -> str: ...


class GitHubContentsClient:
    """Versioned document store backed by the GitHub contents API.

    The blob SHA returned with a file is its version token; a PUT carrying an
    outdated SHA is rejected by GitHub, which gives a conditional write.
    """

    def __init__(
        self,
        *,
        owner: str,
        repo: str,
        api_url: str = "https://api.github.com",
        token: Optional[str] = None,
        branch: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = f"{api_url.rstrip('/')}/repos/{owner}/{repo}/contents"
        self.token = token
        self.branch = branch
        self.client = httpx.Client(timeout=timeout_s, transport=transport)

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    def _metadata(self, path: str) -> Dict[str, Any]:
        url = self._url(path)
        params = {"ref": self.branch} if self.branch else None
        log.debug("GET %s", url)
        resp = self._send("GET", url, headers=self._headers(), params=params)
        data = self._json_object(resp)
        if not isinstance(data.get("sha"), str):
            raise TransportError(
                f"Unexpected GitHub metadata for '{path}' (not a file?)",
                status=resp.status_code,
                body=resp.text,
            )
        return data

    def fetch_version(self, path: str) -> str:
        return self._metadata(path)["sha"]

    def fetch_document(self, path: str) -> StoredDocument:
        meta = self._metadata(path)
        download_url = meta.get("download_url")
        if not isinstance(download_url, str) or not download_url:
            raise TransportError(f"GitHub metadata for '{path}' has no download_url")
        headers = {"Authorization": f"token {self.token}"} if self.token else None
        resp = self._send("GET", download_url, headers=headers)
        return StoredDocument(content=resp.content, version=meta["sha"])

    def write_document(self, path: str, content: bytes, *, expected_version: str, message: str) -> str:
        url = self._url(path)
        body: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "sha": expected_version,
        }
        if self.branch:
            body["branch"] = self.branch
        log.info("PUT %s (expected sha=%s)", url, expected_version)
        resp = self._send("PUT", url, headers=self._headers(), json=body)
        content_meta = self._json_object(resp).get("content")
        new_sha = content_meta.get("sha") if isinstance(content_meta, dict) else None
        log.info("Committed %s (sha %s -> %s)", path, expected_version, new_sha)
        return str(new_sha) if new_sha else ""

    def _json_object(self, resp: httpx.Response) -> Dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as exc:
            log.error("GitHub returned a non-JSON body for %s: %.200s", resp.request.url, resp.text)
            raise TransportError(
                f"Unexpected GitHub response: {resp.status_code} - {resp.text}",
                status=resp.status_code,
                body=resp.text,
            ) from exc
        if not isinstance(data, dict):
            raise TransportError(
                f"Unexpected GitHub response: {resp.status_code} - {resp.text}",
                status=resp.status_code,
                body=resp.text,
            )
        return data

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = self.client.request(method, url, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            body = exc.response.text
            log.error("GitHub returned %s for %s %s: %s", status, method, url, body)
            if status == 404:
                raise NotFoundError(f"GitHub resource not found: {status} - {body}") from exc
            if method == "PUT" and status in _CONFLICT_STATUSES:
                raise ConflictError(
                    f"Failed to commit to GitHub (version conflict): {status} - {body}",
                    status=status,
                    body=body,
                ) from exc
            verb = "commit to" if method == "PUT" else "fetch from"
            raise TransportError(f"Failed to {verb} GitHub: {status} - {body}", status=status, body=body) from exc
        except httpx.HTTPError as exc:
            log.error("GitHub request failed for %s %s: %s", method, url, exc)
            raise TransportError(f"GitHub request failed: {exc}") from exc
        return resp

    def close(self) -> None:
        self.client.close()
