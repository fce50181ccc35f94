"""GitHub Actions secrets REST API client."""
import base64
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from .config_loader import Credentials
from .models import ApiResult, make_result

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.github.com"


class TransportError(Exception):
    """Request could not be sent or no response was received."""
    pass


def process_response(response: requests.Response) -> ApiResult:
    """
    Normalize an HTTP response into an ApiResult.

    The body is parsed as JSON when the content type says so, otherwise it is
    kept as text. Only 2xx statuses produce an ApiSuccess.
    """
    content_type = response.headers.get("content-type", "")

    result: Any = response.text
    if "application/json" in content_type:
        try:
            result = response.json()
        except ValueError:
            # Proxies and outages can send HTML under a JSON content type
            logger.debug(f"Response labelled JSON is not JSON, keeping text ({response.status_code})")

    return make_result(response.status_code, result)


class GitHubSecretClient:
    """Wrapper around the GitHub Actions secrets endpoints."""

    def __init__(
        self,
        credentials: Credentials,
        base_url: str = API_BASE_URL,
        session: Optional[requests.Session] = None,
    ):
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self._session = session

    @property
    def session(self) -> requests.Session:
        """Lazy-initialize session."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def _headers(self) -> Dict[str, str]:
        token = f"{self.credentials.username}:{self.credentials.token}"
        encoded = base64.b64encode(token.encode("utf-8")).decode("ascii")
        return {
            "Authorization": f"Basic {encoded}",
            "Content-Type": "application/json",
            "Accept": "application/vnd.github+json",
        }

    def _secrets_url(self, path_slice: str, name: Optional[str] = None) -> str:
        url = f"{self.base_url}/{path_slice}/actions/secrets"
        if name is not None:
            url = f"{url}/{quote(name, safe='')}"
        return url

    def _request(self, method: str, url: str, **kwargs) -> ApiResult:
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(method, url, headers=self._headers(), **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        result = process_response(response)
        logger.debug(f"{method} {url} -> {result.status_code}")
        return result

    def fetch_public_key(self, path_slice: str) -> ApiResult:
        """Get the public key used to encrypt secrets of the target."""
        return self._request("GET", self._secrets_url(path_slice, "public-key"))

    def list_secrets(self, path_slice: str) -> ApiResult:
        """List secret names of the target; values are never returned."""
        return self._request("GET", self._secrets_url(path_slice))

    def fetch_secret(self, path_slice: str, name: str) -> ApiResult:
        """Get a single secret's metadata; the value is never returned."""
        return self._request("GET", self._secrets_url(path_slice, name))

    def put_secret(
        self,
        path_slice: str,
        name: str,
        encrypted_value: str,
        key_id: str,
        visibility: Optional[str] = None,
    ) -> ApiResult:
        """
        Create or update a secret with an already encrypted value.

        Args:
            path_slice: 'orgs/<owner>' or 'repos/<owner>/<repo>'
            name: Secret name
            encrypted_value: Base64 sealed-box ciphertext
            key_id: Id of the public key used for encryption
            visibility: Organization secrets only ('all', 'private' or 'selected')
        """
        body = {
            "encrypted_value": encrypted_value,
            "key_id": key_id,
        }
        if visibility is not None:
            body["visibility"] = visibility

        return self._request("PUT", self._secrets_url(path_slice, name), json=body)

    def delete_secret(self, path_slice: str, name: str) -> ApiResult:
        """Delete a secret by name."""
        return self._request("DELETE", self._secrets_url(path_slice, name))
