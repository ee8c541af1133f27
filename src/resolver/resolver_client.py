"""
Alchemy NFT metadata API client.

Issues single getNFTMetadata calls for CryptoPunks and extracts the cached
image URL. Retrying and rate limiting are the caller's concern.
"""

import json
import time
from typing import Any, Dict, Optional, Union
from urllib.parse import urlencode

import requests

from ..config.config_module import ConfigError, get_config
from ..config.logger_module import log_debug, log_info, log_warning
from .resolver_errors import ProviderError, ProviderTimeoutError
from .resolver_store import normalize_id


CRYPTOPUNKS_CONTRACT = "0xb47e3cd837ddf8e4c57f05d70ab865de6e193bbb"

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
)

PNG_CONVERSION_BASE_URL = (
    "https://res.cloudinary.com/alchemyapi/image/upload/convert-png/eth-mainnet"
)

BODY_CHUNK_SIZE = 1


class AlchemyClient:
    """
    Wraps the Alchemy NFT v3 metadata endpoint.

    fetch_metadata() returns the image URL on success, None when a 2xx
    response has no image.cachedUrl, and raises ProviderError or
    ProviderTimeoutError for failed calls.
    """

    BASE_URL = "https://eth-mainnet.g.alchemy.com"

    def __init__(self,
                 api_key: str = None,
                 contract_address: str = CRYPTOPUNKS_CONTRACT,
                 base_url: str = None,
                 request_timeout: float = 10.0,
                 session: requests.Session = None):
        """
        Initialize the Alchemy client.

        Args:
            api_key: Alchemy API key (loaded from config if not provided)
            contract_address: Collection contract queried for metadata
            base_url: Provider host, overridable for testing
            request_timeout: Total deadline in seconds for one call
            session: Optional preconfigured requests session
        """
        self.api_key = api_key or get_config("ALCHEMY_API_KEY")
        if not self.api_key:
            raise ConfigError("ALCHEMY_API_KEY not provided or found in config")

        self.contract_address = contract_address
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.request_timeout = request_timeout

        self._session = session or requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
            "User-Agent": BROWSER_USER_AGENT,
        })

        log_info(
            f"AlchemyClient initialized (key={self.api_key[:8]}..., "
            f"timeout={request_timeout}s)"
        )

    def build_metadata_url(self, punk_id: Union[str, int], redact: bool = False) -> str:
        """
        Build the getNFTMetadata URL for an id.

        Args:
            punk_id: Item identifier
            redact: Mask the API key (for logging)

        Returns:
            Complete request URL
        """
        key = "***" if redact else self.api_key
        params = {
            "contractAddress": self.contract_address,
            "tokenId": normalize_id(punk_id),
        }
        return f"{self.base_url}/nft/v3/{key}/getNFTMetadata?{urlencode(params)}"

    @staticmethod
    def extract_image_url(payload: Any) -> Optional[str]:
        """Return image.cachedUrl from a decoded metadata body, if present."""
        if not isinstance(payload, dict):
            return None
        image = payload.get("image")
        if not isinstance(image, dict):
            return None
        cached_url = image.get("cachedUrl")
        if isinstance(cached_url, str) and cached_url:
            return cached_url
        return None

    def fetch_metadata(self, punk_id: Union[str, int]) -> Optional[str]:
        """
        Fetch the cached image URL for one punk.

        Args:
            punk_id: Item identifier

        Returns:
            Image URL, or None when the response has no usable image field

        Raises:
            ProviderTimeoutError: If the call exceeds request_timeout
            ProviderError: On non-2xx status or transport failure
        """
        url = self.build_metadata_url(punk_id)
        log_debug(f"GET {self.build_metadata_url(punk_id, redact=True)}")

        deadline = time.monotonic() + self.request_timeout
        try:
            response = self._session.get(url, timeout=self.request_timeout, stream=True)
        except requests.exceptions.Timeout:
            raise self._timeout_error(punk_id)
        except requests.exceptions.RequestException as e:
            raise ProviderError(f"Request failed for punk {punk_id}: {e}")

        try:
            if not 200 <= response.status_code < 300:
                raise ProviderError(
                    f"HTTP {response.status_code} fetching punk {punk_id}",
                    status_code=response.status_code
                )
            body = self._read_body(response, deadline, punk_id)
        finally:
            response.close()

        try:
            payload = json.loads(body)
        except ValueError:
            log_warning(f"Undecodable metadata body for punk {punk_id}")
            return None

        image_url = self.extract_image_url(payload)
        if image_url:
            log_info(f"Found image URL for punk {punk_id}")
        return image_url

    def _timeout_error(self, punk_id: Union[str, int]) -> ProviderTimeoutError:
        return ProviderTimeoutError(
            f"Timeout after {self.request_timeout}s fetching punk {punk_id}"
        )

    def _read_body(self, response: requests.Response, deadline: float,
                   punk_id: Union[str, int]) -> bytes:
        """
        Read a streamed body, giving up once the call deadline has passed.

        requests' timeout only bounds each socket read, so a body trickled
        in slowly is cut off here. Reads are single bytes so that no read
        waits for more data than the server has sent.
        """
        if time.monotonic() >= deadline:
            raise self._timeout_error(punk_id)

        chunks = []
        try:
            for chunk in response.iter_content(chunk_size=BODY_CHUNK_SIZE):
                chunks.append(chunk)
                if time.monotonic() >= deadline:
                    raise self._timeout_error(punk_id)
        except requests.exceptions.Timeout:
            raise self._timeout_error(punk_id)
        except requests.exceptions.RequestException as e:
            raise ProviderError(f"Reading response failed for punk {punk_id}: {e}")
        return b"".join(chunks)

    @staticmethod
    def png_url_for(svg_url: str) -> str:
        """
        Derive the Cloudinary PNG conversion URL for an Alchemy CDN URL.

        The asset hash is the last path segment of the cached URL.
        """
        asset_hash = svg_url.rstrip("/").split("/")[-1]
        return f"{PNG_CONVERSION_BASE_URL}/{asset_hash}"

    def probe_url(self, url: str) -> bool:
        """
        Check with a HEAD request whether a URL currently resolves.

        Returns:
            True on a 2xx response, False on any other status or error
        """
        try:
            response = self._session.head(url, timeout=self.request_timeout)
        except requests.exceptions.RequestException as e:
            log_warning(f"HEAD {url} failed: {e}")
            return False
        return 200 <= response.status_code < 300

    def get_status(self) -> Dict[str, Any]:
        """Describe the client configuration without exposing the key."""
        return {
            "base_url": self.base_url,
            "contract_address": self.contract_address,
            "request_timeout": self.request_timeout,
        }
