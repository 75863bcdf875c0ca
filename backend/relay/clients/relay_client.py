# relay/clients/relay_client.py

import secrets
from datetime import datetime, timezone

import requests

from relay.core.tokens import TOKEN_LENGTH, is_valid_token

# =========================
# CONFIGURATION
# =========================

TOR_PROXY = {
    'http': 'socks5h://127.0.0.1:9050',
    'https': 'socks5h://127.0.0.1:9050'
}

DEFAULT_SERVER_URL = "http://127.0.0.1:3001"
REQUEST_TIMEOUT = 10  # seconds

# =========================
# DEVICE KEYS
# =========================

def generate_device_key() -> str:
    """16 random decimal digits; the relay's only notion of identity"""
    return "".join(str(secrets.randbelow(10)) for _ in range(TOKEN_LENGTH))


def create_tor_session():
    """Create a requests session that routes through Tor (needs PySocks)"""
    session = requests.Session()
    session.proxies = TOR_PROXY
    return session


class RelayClientError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message

# =========================
# RELAY CLIENT
# =========================

class RelayClient:
    """
    Polling client for the relay HTTP API.

    The session only needs requests-style get/post/delete, so a FastAPI
    TestClient can stand in for a real requests.Session.
    """

    def __init__(self, base_url: str = DEFAULT_SERVER_URL, device_key: str | None = None,
                 session=None, use_tor: bool = False):
        self.base_url = base_url.rstrip("/")
        self.device_key = device_key or generate_device_key()
        if not is_valid_token(self.device_key):
            raise ValueError("device key must be 16 digits")

        if session is not None:
            self.session = session
        else:
            self.session = create_tor_session() if use_tor else requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _check(self, resp):
        if resp.status_code >= 400:
            try:
                message = resp.json().get("error", resp.text)
            except ValueError:
                message = resp.text
            raise RelayClientError(resp.status_code, message)
        return resp.json()

    def health(self) -> dict:
        return self._check(self.session.get(self._url("/api/health"), timeout=REQUEST_TIMEOUT))

    def send(self, recipient_key: str, text: str, timestamp: datetime | None = None) -> dict:
        """Post a payload from this device to recipient_key"""
        if not is_valid_token(recipient_key):
            raise ValueError("recipient key must be 16 digits")

        moment = timestamp or datetime.now(timezone.utc)
        body = {
            "senderKey": self.device_key,
            "recipientKey": recipient_key,
            "encryptedData": text,
            "timestamp": moment.isoformat(),
        }
        return self._check(
            self.session.post(self._url("/api/message"), json=body, timeout=REQUEST_TIMEOUT)
        )

    def inbox(self) -> list:
        """Every recent record touching this device, newest first"""
        return self._check(
            self.session.get(self._url(f"/api/messages/{self.device_key}"), timeout=REQUEST_TIMEOUT)
        )

    def conversation(self, peer_key: str) -> list:
        """Records exchanged with one peer, in either direction"""
        me = self.device_key
        return [
            m for m in self.inbox()
            if (m["senderKey"] == me and m["recipientKey"] == peer_key)
            or (m["senderKey"] == peer_key and m["recipientKey"] == me)
        ]

    def purge(self) -> dict:
        return self._check(
            self.session.delete(self._url(f"/api/messages/{self.device_key}"), timeout=REQUEST_TIMEOUT)
        )

    def active_nodes(self) -> int:
        data = self._check(self.session.get(self._url("/api/nodes/count"), timeout=REQUEST_TIMEOUT))
        return data["activeNodes"]
