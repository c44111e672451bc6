# =============================================================================
# core/upstream.py  —  Upstream Request Client
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Wraps every HTTP call the gateway makes to its single upstream API.
#   One UpstreamClient carries one caller's credential; the underlying
#   httpx.AsyncClient (connection pool) is shared by the whole process.
#
# ENDPOINTS USED:
#   GET  /zone/get_active_zones     list zones        (provisioning)
#   POST /zone                      create a zone     (provisioning)
#   POST /request                   universal scrape  (single-call tools)
#   POST /datasets/v3/trigger       start a dataset   (snapshot tools)
#   GET  /datasets/v3/snapshot/{id} poll a snapshot   (snapshot tools)
#   GET  /status, /zone/passwords   browser CDP credentials
#
# ERRORS:
#   Non-2xx responses raise httpx.HTTPStatusError via raise_for_status().
#   They are not translated here: the invocation wrapper normalizes them
#   for single-call tools and the poller treats them as transient.
#
#   Wrong-shaped 2xx bodies raise UpstreamProtocolError.
# =============================================================================

import logging
from typing import Any, Optional

import httpx

from core.errors import UpstreamProtocolError


logger = logging.getLogger(__name__)


class UpstreamClient:
    """HTTP client for the upstream API, bound to one credential."""

    def __init__(
        self,
        api_token: str,
        http: httpx.AsyncClient,
        base_url: str,
        user_agent: str,
    ):
        self.api_token = api_token
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._user_agent = user_agent

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------
    @property
    def headers(self) -> dict[str, str]:
        return {
            "user-agent": self._user_agent,
            "authorization": f"Bearer {self.api_token}",
        }

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        response = await self._http.request(
            method, f"{self._base_url}{path}", headers=self.headers, **kwargs
        )
        response.raise_for_status()
        return response

    @staticmethod
    def _json(response: httpx.Response, what: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamProtocolError(
                f"Unparseable JSON from {what}: {exc}"
            ) from exc

    # -------------------------------------------------------------------------
    # Zone provisioning
    # -------------------------------------------------------------------------
    async def list_zones(self) -> list[dict]:
        response = await self._send("GET", "/zone/get_active_zones")
        return self._json(response, "zone listing") or []

    async def create_zone(self, name: str, zone_type: str = "unblocker") -> None:
        await self._send(
            "POST",
            "/zone",
            json={"zone": {"name": name, "type": zone_type}, "plan": {"type": zone_type}},
        )

    async def ensure_zone(self, name: str) -> bool:
        """Create the unlocker zone ``name`` if it does not exist yet.

        Returns True when the zone had to be created.
        """
        zones = await self.list_zones()
        if any(zone.get("name") == name for zone in zones):
            logger.info(f'Required zone "{name}" already exists')
            return False

        logger.info(f'Required zone "{name}" not found, creating it...')
        await self.create_zone(name)
        logger.info(f'Zone "{name}" created successfully')
        return True

    # -------------------------------------------------------------------------
    # Single-call scraping
    # -------------------------------------------------------------------------
    async def request(self, url: str, zone: str, markdown: bool = False) -> str:
        """Fetch ``url`` through ``zone`` and return the raw body text.

        With ``markdown=True`` the upstream converts the page to markdown.
        """
        payload = {"url": url, "zone": zone, "format": "raw"}
        if markdown:
            payload["data_format"] = "markdown"
        response = await self._send("POST", "/request", json=payload)
        return response.text

    # -------------------------------------------------------------------------
    # Structured datasets
    # -------------------------------------------------------------------------
    async def trigger_dataset(self, dataset_id: str, inputs: dict[str, str]) -> str:
        """Start a dataset collection and return its snapshot id."""
        response = await self._send(
            "POST",
            "/datasets/v3/trigger",
            params={"dataset_id": dataset_id, "include_errors": "true"},
            json=[inputs],
        )
        data = self._json(response, "dataset trigger")
        snapshot_id = data.get("snapshot_id") if isinstance(data, dict) else None
        if not snapshot_id:
            raise UpstreamProtocolError("No snapshot ID returned from request")
        return snapshot_id

    async def get_snapshot(self, snapshot_id: str) -> tuple[Any, str]:
        """Fetch a snapshot.  Returns (parsed JSON, raw body text)."""
        response = await self._send(
            "GET", f"/datasets/v3/snapshot/{snapshot_id}", params={"format": "json"}
        )
        return self._json(response, "snapshot"), response.text

    # -------------------------------------------------------------------------
    # Browser credentials
    # -------------------------------------------------------------------------
    async def get_customer_id(self) -> str:
        data = self._json(await self._send("GET", "/status"), "account status")
        customer = data.get("customer") if isinstance(data, dict) else None
        if not customer:
            raise UpstreamProtocolError("No customer ID in account status")
        return customer

    async def get_zone_password(self, zone: str) -> str:
        response = await self._send("GET", "/zone/passwords", params={"zone": zone})
        data = self._json(response, "zone passwords")
        passwords: Optional[list] = data.get("passwords") if isinstance(data, dict) else None
        if not passwords:
            raise UpstreamProtocolError(f'No password returned for zone "{zone}"')
        return passwords[0]
