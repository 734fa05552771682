"""
Cloudinary image host.

Produces signed upload parameters for the browser and deletes hosted images
through the Cloudinary REST API using the shared httpx client.
"""

import hashlib
import logging
import re
import time
from typing import Any

import httpx

from vimarsh.core.config import Settings
from vimarsh.core.errors import ServerError

logger = logging.getLogger(__name__)

# https://res.cloudinary.com/<cloud>/image/upload/v1712345678/<folder>/<id>.<ext>
PUBLIC_ID_PATTERN = re.compile(r"/v\d+/(.+?)\.")


class ImageHostError(Exception):
    """Image host request failed."""


def extract_public_id(url: str | None) -> str | None:
    """Extract the Cloudinary public id from a delivery URL, if present."""
    if not url:
        return None
    match = PUBLIC_ID_PATTERN.search(url)
    return match.group(1) if match else None


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    """
    Compute a Cloudinary request signature.

    Parameters are sorted by name, joined as ``key=value`` pairs with ``&``,
    suffixed with the API secret and hashed with SHA-1.
    """
    to_sign = "&".join(
        f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, "")
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryImageHost:
    """Cloudinary signing and deletion."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self._http_client = http_client

    @property
    def is_configured(self) -> bool:
        return bool(
            self.settings.cloudinary_cloud_name
            and self.settings.cloudinary_api_key
            and self.settings.cloudinary_api_secret
        )

    def _require_credentials(self) -> None:
        if not self.is_configured:
            raise ServerError("Cloudinary credentials are not configured on the server")

    def upload_signature(self) -> dict[str, Any]:
        """
        Signed parameters for a direct browser upload into the configured folder.

        Raises:
            ServerError: If Cloudinary credentials are missing.
        """
        self._require_credentials()
        timestamp = int(time.time())
        folder = self.settings.images.upload_folder
        signature = sign_params(
            {"timestamp": timestamp, "folder": folder},
            self.settings.cloudinary_api_secret,
        )
        return {
            "timestamp": timestamp,
            "signature": signature,
            "apiKey": self.settings.cloudinary_api_key,
            "cloudName": self.settings.cloudinary_cloud_name,
            "folder": folder,
        }

    async def destroy(self, public_id: str) -> None:
        """
        Delete a hosted image.

        Raises:
            ServerError: If Cloudinary credentials are missing.
            ImageHostError: If the API call fails.
        """
        self._require_credentials()
        timestamp = int(time.time())
        data = {
            "public_id": public_id,
            "timestamp": timestamp,
            "api_key": self.settings.cloudinary_api_key,
            "signature": sign_params(
                {"public_id": public_id, "timestamp": timestamp},
                self.settings.cloudinary_api_secret,
            ),
        }
        url = (
            f"{self.settings.images.api_base_url.rstrip('/')}/"
            f"{self.settings.cloudinary_cloud_name}/image/destroy"
        )
        try:
            response = await self._http_client.post(url, data=data)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ImageHostError(f"Failed to delete image {public_id}: {e}") from e

        result = response.json().get("result")
        if result not in ("ok", "not found"):
            raise ImageHostError(f"Unexpected destroy result for {public_id}: {result}")
        logger.info(f"Deleted hosted image {public_id} ({result})")
