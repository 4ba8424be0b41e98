"""Signed access to the Codeforces API."""

from __future__ import annotations

import hashlib
import json
import os
import random
import time
from typing import Any, Callable, Mapping, Optional, Union
from urllib.parse import quote_plus, urlencode
from urllib.request import urlopen

from cohorthub.models import Contest, Rating
from cohorthub.rating import rankings_from_standings

Fetch = Callable[[str], Union[str, bytes]]

BASE_URL = "https://codeforces.com/api"


class CodeforcesError(Exception):
    """The Codeforces API could not be reached or refused the request."""


def generate_signature(
    method: str,
    params: Mapping[str, Any],
    api_key: str,
    api_secret: str,
    nonce: Optional[Union[int, str]] = None,
    timestamp: Optional[int] = None,
) -> str:
    """Return the ``apiSig`` value for a call to ``method``."""
    if nonce is None:
        nonce = random.randrange(1_000_000)
    if isinstance(nonce, int):
        nonce = f"{nonce:06d}"
    if timestamp is None:
        timestamp = int(time.time())
    signed = {key: str(value) for key, value in params.items()}
    signed["apiKey"] = api_key
    signed["time"] = str(timestamp)
    query = "&".join(f"{key}={quote_plus(signed[key])}" for key in sorted(signed))
    text = f"{nonce}/{method}?{query}#{api_secret}"
    return nonce + hashlib.sha512(text.encode("utf-8")).hexdigest()


def _default_fetch(url: str) -> bytes:
    with urlopen(url) as response:
        return response.read()


def _decode(body: str) -> dict[str, Any]:
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise CodeforcesError(f"error unmarshaling response: {exc}") from exc
    if not isinstance(data, dict):
        raise CodeforcesError("error unmarshaling response: expected a JSON object")
    return data


class CodeforcesClient:
    """Performs signed requests against the API."""

    def __init__(
        self,
        api_key: str = "",
        api_secret: str = "",
        fetch: Optional[Fetch] = None,
        base_url: str = BASE_URL,
    ) -> None:
        self.api_key = api_key
        self.api_secret = api_secret
        self.fetch = fetch or _default_fetch
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_env(cls, fetch: Optional[Fetch] = None) -> "CodeforcesClient":
        """Build a client from CODEFORCES_API_KEY and CODEFORCES_API_SECRET."""
        return cls(
            api_key=os.environ.get("CODEFORCES_API_KEY", ""),
            api_secret=os.environ.get("CODEFORCES_API_SECRET", ""),
            fetch=fetch,
        )

    def validate_credentials(self) -> None:
        """Raise CodeforcesError unless both key and secret are set."""
        if not self.api_key or not self.api_secret:
            raise CodeforcesError(
                "missing Codeforces API credentials. Please set CODEFORCES_API_KEY "
                "and CODEFORCES_API_SECRET environment variables"
            )

    def signed_params(self, method: str, params: Mapping[str, Any]) -> dict[str, str]:
        """Return ``params`` with apiKey, time and apiSig added."""
        timestamp = int(time.time())
        signed = {key: str(value) for key, value in params.items()}
        signed["apiSig"] = generate_signature(
            method, signed, self.api_key, self.api_secret, timestamp=timestamp
        )
        signed["apiKey"] = self.api_key
        signed["time"] = str(timestamp)
        return signed

    def _fetch_text(self, url: str, what: str) -> str:
        try:
            body = self.fetch(url)
        except OSError as exc:
            raise CodeforcesError(f"failed to fetch {what}: {exc}") from exc
        return body.decode("utf-8") if isinstance(body, bytes) else body

    def _request_json(self, url: str, what: str) -> dict[str, Any]:
        return _decode(self._fetch_text(url, what))

    def get(self, method: str, params: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        """Call ``method`` with signed ``params`` and return the decoded reply."""
        query = urlencode(sorted(self.signed_params(method, params or {}).items()))
        body = self._fetch_text(f"{self.base_url}/{method}?{query}", method)
        if "<!DOCTYPE html>" in body:
            raise CodeforcesError("received HTML error page from Codeforces API")
        data = _decode(body)
        status = data.get("status", "")
        if status == "FAILED":
            raise CodeforcesError(f"codeforces API error: {data.get('comment', '')}")
        if status != "OK":
            raise CodeforcesError(f"codeforces returned status: {status}")
        return data


def fetch_contests_by_type(client: CodeforcesClient, is_gym: bool) -> list[Contest]:
    """Return the regular or the gym contests listed by the API."""
    data = client.get("contest.list", {"gym": "true" if is_gym else "false"})
    return [
        Contest(id=item.get("id", 0), name=item.get("name", ""), type=item.get("type", ""))
        for item in data.get("result") or []
    ]


def fetch_contests(client: CodeforcesClient) -> list[Contest]:
    """Return regular contests followed by gym contests."""
    return fetch_contests_by_type(client, False) + fetch_contests_by_type(client, True)


def fetch_rankings_for_contest(client: CodeforcesClient, contest_id: int) -> list[Rating]:
    """Fetch public standings of a contest and rank every row."""
    url = (
        f"{client.base_url}/contest.standings?contestId={contest_id}"
        "&from=1&count=10000&showUnofficial=true"
    )
    return rankings_from_standings(contest_id, client._request_json(url, "contest.standings"))