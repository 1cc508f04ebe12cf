"""Outbound HTTP clients for third-party platforms.

Each platform gets a small async check that proves the stored credentials
work. ``SplynxClient`` also carries the scheduling calls used by bookings.
"""
import base64
import logging
import re
from typing import Any, Awaitable, Callable
import httpx
from app.core.config import settings
from app.core.errors import UpstreamError

log = logging.getLogger("integrations.clients")

XERO_API = "https://api.xero.com/"
AIRTABLE_API = "https://api.airtable.com/v0/"
VAPI_API = "https://api.vapi.ai/"
GOOGLE_MAPS_API = "https://maps.googleapis.com/maps/api/"
OPENAI_API = "https://api.openai.com/v1/"

FIREBASE_PROJECT_ID_RE = re.compile(r"^[a-z0-9-]+$")
SERVICE_ACCOUNT_FIELDS = ("project_id", "private_key", "client_email")

class ConnectionCheckError(Exception):
    """Credentials are missing, malformed or rejected by the platform."""

def _client(base_url: str, headers: dict | None = None, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=base_url, headers=headers or {}, timeout=settings.HTTP_TIMEOUT_SECONDS, transport=transport)

def _flatten_params(params: dict[str, Any], prefix: str = "") -> list[tuple[str, str]]:
    # PHP style nested query string: main_attributes[status]=new
    out: list[tuple[str, str]] = []
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if isinstance(value, dict):
            out.extend(_flatten_params(value, name))
        elif isinstance(value, (list, tuple)):
            out.extend(_flatten_params({str(i): v for i, v in enumerate(value)}, name))
        elif value is not None:
            out.append((name, str(value)))
    return out

def _require(credentials: dict, key: str, label: str) -> str:
    value = credentials.get(key)
    if not value:
        raise ConnectionCheckError(f"Missing {label}")
    return str(value)

# ---- Splynx ----

def splynx_auth_header(credentials: dict) -> str:
    if credentials.get("auth_header"):
        return str(credentials["auth_header"])
    key = _require(credentials, "api_key", "API key")
    secret = _require(credentials, "api_secret", "API secret")
    return "Basic " + base64.b64encode(f"{key}:{secret}".encode()).decode()

class SplynxClient:
    def __init__(self, base_url: str, auth_header: str, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = base_url
        self.auth_header = auth_header
        self.transport = transport

    @classmethod
    def from_credentials(cls, credentials: dict, transport: httpx.AsyncBaseTransport | None = None) -> "SplynxClient":
        base_url = _require(credentials, "base_url", "base URL")
        return cls(base_url, splynx_auth_header(credentials), transport=transport)

    def build_url(self, endpoint: str) -> str:
        endpoint = endpoint.lstrip("/")
        if self.base_url.endswith("/"):
            return f"{self.base_url}{endpoint}"
        return f"{self.base_url}/{endpoint}"

    async def _request(self, method: str, endpoint: str, *, params: dict | None = None, json: dict | None = None) -> httpx.Response:
        headers = {"Authorization": self.auth_header, "Content-Type": "application/json"}
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS, transport=self.transport) as client:
            return await client.request(method, self.build_url(endpoint), headers=headers,
                                        params=_flatten_params(params) if params else None, json=json)

    async def get_administrators(self) -> list[dict]:
        resp = await self._request("GET", "admin/administration/administrators")
        resp.raise_for_status()
        data = resp.json()
        return data if isinstance(data, list) else data.get("items", [])

    async def get_scheduling_tasks(self, *, start_date: str | None = None, end_date: str | None = None,
                                   project_id: int | None = None, limit: int = 1000) -> list[dict]:
        attrs: dict[str, Any] = {}
        if project_id:
            attrs["project_id"] = project_id
        if start_date and end_date:
            attrs["scheduled_from"] = ["BETWEEN", start_date, end_date]
        try:
            resp = await self._request("GET", "admin/scheduling/tasks", params={"main_attributes": attrs, "limit": limit})
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamError(f"Failed to fetch scheduling tasks from Splynx: {e}")
        data = resp.json()
        if isinstance(data, list):
            return data
        return data.get("items", []) if isinstance(data, dict) else []

    async def create_task(self, *, title: str, project_id: int, workflow_status_id: int, customer_id: str | int | None = None,
                          address: str | None = None, description: str | None = None, scheduled_from: str | None = None,
                          duration: str | None = None, travel_time_to: int | None = None, travel_time_from: int | None = None) -> dict:
        payload: dict[str, Any] = {
            "title": title,
            "project_id": project_id,
            "partner_id": 1,
            "workflow_status_id": workflow_status_id,
            "is_archived": "0",
            "closed": "0",
        }
        if customer_id:
            # Splynx ids are numeric; free-text ids from ticket metadata pass through untouched
            cid = str(customer_id).strip()
            payload["related_customer_id"] = int(cid) if cid.isdigit() else cid
        if address:
            payload["address"] = address
        if description:
            payload["description"] = description
        if scheduled_from:
            payload["scheduled_from"] = scheduled_from
            payload["is_scheduled"] = "1"
        if duration:
            payload["formatted_duration"] = duration
        if travel_time_to is not None:
            payload["travel_time_to"] = travel_time_to
        if travel_time_from is not None:
            payload["travel_time_from"] = travel_time_from
        try:
            resp = await self._request("POST", "admin/scheduling/tasks", json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamError(f"Failed to create Splynx task: {e}")
        return resp.json()

    async def get_customer(self, customer_id: str | int) -> dict | None:
        try:
            resp = await self._request("GET", f"admin/customers/customer/{customer_id}")
        except httpx.HTTPError as e:
            raise UpstreamError(f"Failed to fetch customer details: {e}")
        if resp.status_code == 404:
            return None
        if resp.is_error:
            raise UpstreamError(f"Failed to fetch customer details: HTTP {resp.status_code}")
        customer = resp.json()
        if not customer or not customer.get("id"):
            return None
        name = customer.get("name") or f"{customer.get('first_name', '')} {customer.get('last_name', '')}".strip()
        return {
            "id": customer["id"],
            "name": name or "Unknown",
            "email": customer.get("email") or "",
            "phone": customer.get("phone") or customer.get("phone_mobile") or "",
            "address": customer.get("street") or customer.get("full_address") or "",
        }

# ---- Connection checks ----

def _check_status(resp: httpx.Response) -> None:
    if resp.is_error:
        raise ConnectionCheckError(f"HTTP {resp.status_code}: {resp.reason_phrase or 'Request failed'}")

async def check_splynx(credentials: dict, transport=None) -> str:
    client = SplynxClient.from_credentials(credentials, transport=transport)
    try:
        admins = await client.get_administrators()
    except httpx.HTTPStatusError as e:
        raise ConnectionCheckError(f"HTTP {e.response.status_code}: {e.response.reason_phrase or 'Request failed'}")
    return f"Connected to Splynx ({len(admins)} administrators)"

async def check_xero(credentials: dict, transport=None) -> str:
    token = _require(credentials, "access_token", "access token")
    async with _client(XERO_API, {"Authorization": f"Bearer {token}"}, transport) as client:
        resp = await client.get("connections")
    _check_status(resp)
    tenants = resp.json()
    return f"Connected to Xero ({len(tenants) if isinstance(tenants, list) else 0} tenants)"

async def check_airtable(credentials: dict, transport=None) -> str:
    key = _require(credentials, "api_key", "API key")
    async with _client(AIRTABLE_API, {"Authorization": f"Bearer {key}"}, transport) as client:
        resp = await client.get("meta/whoami")
    _check_status(resp)
    return "Connected to Airtable"

async def check_vapi(credentials: dict, transport=None) -> str:
    key = _require(credentials, "api_key", "API key")
    async with _client(VAPI_API, {"Authorization": f"Bearer {key}"}, transport) as client:
        resp = await client.get("assistant", params={"limit": 1})
    _check_status(resp)
    return "Successfully connected to Vapi"

async def check_google_maps(credentials: dict, transport=None) -> str:
    key = _require(credentials, "api_key", "API key")
    async with _client(GOOGLE_MAPS_API, transport=transport) as client:
        resp = await client.get("geocode/json", params={"address": "1600 Amphitheatre Parkway, Mountain View, CA", "key": key})
    _check_status(resp)
    body = resp.json()
    if body.get("status") not in ("OK", "ZERO_RESULTS"):
        raise ConnectionCheckError(body.get("error_message") or f"Geocoding failed: {body.get('status')}")
    return "Google Maps API key validated"

async def check_firebase(credentials: dict, transport=None) -> str:
    project_id = _require(credentials, "project_id", "Project ID")
    _require(credentials, "api_key", "API Key")
    if not FIREBASE_PROJECT_ID_RE.match(project_id):
        raise ConnectionCheckError("Invalid Project ID format")
    service_account = credentials.get("service_account")
    if not service_account:
        return "Firebase configuration validated (client-side only)"
    missing = [f for f in SERVICE_ACCOUNT_FIELDS if not service_account.get(f)]
    if missing:
        raise ConnectionCheckError(f"Service account is missing: {', '.join(missing)}")
    return "Firebase service account validated"

async def check_openai(credentials: dict, transport=None) -> str:
    key = _require(credentials, "api_key", "API key")
    async with _client(OPENAI_API, {"Authorization": f"Bearer {key}"}, transport) as client:
        resp = await client.get("models")
    _check_status(resp)
    return f"Connected to OpenAI ({len(resp.json().get('data', []))} models available)"

PLATFORM_CHECKS: dict[str, Callable[..., Awaitable[str]]] = {
    "splynx": check_splynx,
    "xero": check_xero,
    "airtable": check_airtable,
    "vapi": check_vapi,
    "google_maps": check_google_maps,
    "firebase": check_firebase,
    "openai": check_openai,
}

async def check_connection(platform_type: str, credentials: dict, transport: httpx.AsyncBaseTransport | None = None) -> tuple[bool, str]:
    check = PLATFORM_CHECKS.get(platform_type)
    if check is None:
        return False, f"Unknown platform type: {platform_type}"
    try:
        return True, await check(credentials, transport=transport)
    except ConnectionCheckError as e:
        return False, str(e)
    except httpx.HTTPError as e:
        log.warning("Connection check for %s failed: %s", platform_type, e)
        return False, f"Request failed: {e}"
