"""LEDGIS API client."""

import re
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import unquote

import requests

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_DOWNLOAD_NAME = "ledger-download.bin"
INVALID_FILENAME_CHARACTERS = re.compile(r'[\\/:*?"<>|]')

_UTF8_FILENAME = re.compile(r"filename\*=UTF-8''([^;]+)", re.IGNORECASE)
_PLAIN_FILENAME = re.compile(r'filename="?([^";]+)"?', re.IGNORECASE)


class ApiError(Exception):
    """Raised for non-2xx responses."""

    def __init__(self, message: str, status: int, details: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details


@dataclass
class DownloadResponse:
    """Downloaded file; file_name is already safe to write to disk."""

    content: bytes
    file_name: str = DEFAULT_DOWNLOAD_NAME
    content_type: Optional[str] = None


def resolve_error_message(payload: Any, status: int) -> str:
    """Pick a human-readable message out of an error payload."""
    if isinstance(payload, dict):
        for key in ("message", "detail"):
            if isinstance(payload.get(key), str):
                return payload[key]

    if isinstance(payload, str) and payload.strip():
        return payload

    return f"Request failed with status {status}"


def parse_file_name_from_disposition(disposition: Optional[str]) -> Optional[str]:
    """Extract the file name from a Content-Disposition header."""
    if not disposition:
        return None

    utf8_match = _UTF8_FILENAME.search(disposition)
    if utf8_match:
        return unquote(utf8_match.group(1))

    plain_match = _PLAIN_FILENAME.search(disposition)
    if plain_match:
        return plain_match.group(1)

    return None


def sanitise_file_name(raw_name: Optional[str], fallback: str = DEFAULT_DOWNLOAD_NAME) -> str:
    """Make a server-supplied name safe to write to disk."""
    trimmed = (raw_name or "").strip()
    if not trimmed:
        return fallback
    return INVALID_FILENAME_CHARACTERS.sub("-", trimmed)


class LedgisClient:
    """Client for LEDGIS API."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        node_id: Optional[str] = None,
        node_name: Optional[str] = None,
    ):
        """Initialize client."""
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        if node_id:
            self.session.headers["x-ledgis-node-id"] = node_id
        if node_name:
            self.session.headers["x-ledgis-node-name"] = node_name

    def _url(self, path: str) -> str:
        return path if path.startswith("http") else f"{self.base_url}{path}"

    @staticmethod
    def _payload(response: requests.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        if "application/json" in response.headers.get("content-type", ""):
            try:
                return response.json()
            except ValueError:
                return response.text
        return response.text

    def _request(self, method: str, path: str, **kwargs) -> Any:
        response = self.session.request(method, self._url(path), **kwargs)
        payload = self._payload(response)
        if not response.ok:
            raise ApiError(resolve_error_message(payload, response.status_code), response.status_code, payload)
        return payload

    def commit_evidence(
        self,
        case_id: str,
        file_name: str,
        file_size: int,
        description: str,
        file_type: str = "",
    ) -> dict:
        """Anchor evidence metadata in a new block."""
        payload = {
            "case_id": case_id,
            "file_name": file_name,
            "file_size": file_size,
            "file_type": file_type,
            "description": description,
        }
        return self._request("POST", "/v1/evidence", json=payload)

    def search_evidence(self, query: Optional[str] = None) -> list[dict]:
        """List evidence, optionally filtered."""
        params = {"q": query} if query else None
        return self._request("GET", "/v1/evidence", params=params)

    def get_evidence(self, evidence_id: str) -> dict:
        """Get an evidence record."""
        return self._request("GET", f"/v1/evidence/{evidence_id}")

    def get_chunks(self, evidence_id: str) -> dict:
        """Get derived chunk and node telemetry."""
        return self._request("GET", f"/v1/evidence/{evidence_id}/chunks")

    def list_blocks(self) -> list[dict]:
        """List the chain."""
        return self._request("GET", "/v1/blocks")

    def get_block(self, block_id: str) -> dict:
        """Get a block and its evidence."""
        return self._request("GET", f"/v1/blocks/{block_id}")

    def ledger_stats(self) -> dict:
        """Get ledger statistics."""
        return self._request("GET", "/v1/ledger/stats")

    def verify_chain(self) -> dict:
        """Verify the chain."""
        return self._request("GET", "/v1/ledger/verify")

    def network_overview(self) -> dict:
        """Get the replication map statistics."""
        return self._request("GET", "/v1/network/overview")

    def list_locations(self) -> list[dict]:
        """List the node universe in index order."""
        return self._request("GET", "/v1/network/locations")

    def summarise_reports(self, nodes: list[dict]) -> dict:
        """Aggregate node telemetry reports into a network overview."""
        return self._request("POST", "/v1/network/reports", json={"nodes": nodes})

    def health(self) -> dict:
        """Check API health."""
        return self._request("GET", "/health")

    def download_evidence(self, evidence_id: str) -> DownloadResponse:
        """Download an evidence summary."""
        response = self.session.get(self._url(f"/v1/evidence/{evidence_id}/download"))
        if not response.ok:
            payload = self._payload(response)
            raise ApiError(resolve_error_message(payload, response.status_code), response.status_code, payload)

        suggested = parse_file_name_from_disposition(response.headers.get("content-disposition"))
        return DownloadResponse(
            content=response.content,
            file_name=sanitise_file_name(suggested),
            content_type=response.headers.get("content-type"),
        )
