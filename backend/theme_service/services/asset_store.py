"""Logo asset storage: local filesystem or Cloudflare R2.

Stores return a stable public path for an uploaded file; the theme service
only ever sees that path string.
"""

import asyncio
import logging
from functools import lru_cache
from io import BytesIO
from pathlib import Path
from typing import Protocol
from uuid import uuid4

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError, EndpointConnectionError

from theme_service.core.config import settings

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
}


class AssetStoreError(Exception):
    """Raised when an asset store operation fails."""

    pass


class AssetStore(Protocol):
    """Asset store collaborator contract."""

    async def save(self, content: bytes, content_type: str) -> str:
        ...

    async def delete(self, path: str) -> None:
        ...


def generate_asset_name(content_type: str) -> str:
    """Unique file name for a logo of the given MIME type."""
    return f"logo-{uuid4().hex}{EXTENSIONS.get(content_type, '')}"


class LocalAssetStore:
    """Stores assets in a directory served by the app as static files."""

    def __init__(self, root: str, url_prefix: str):
        """Initialize the local store.

        Args:
            root: Directory the files are written to
            url_prefix: URL prefix the directory is mounted under
        """
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def _path_for(self, public_path: str) -> Path:
        # Only the final component is used so paths cannot escape the root
        return self.root / Path(public_path).name

    async def save(self, content: bytes, content_type: str) -> str:
        """Write the file and return its public path."""
        name = generate_asset_name(content_type)
        target = self.root / name
        try:
            await asyncio.get_event_loop().run_in_executor(
                None, lambda: self._write(target, content)
            )
        except OSError as e:
            raise AssetStoreError(f"Failed to store asset: {e}") from e
        return f"{self.url_prefix}/{name}"

    def _write(self, target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    async def delete(self, path: str) -> None:
        """Remove a previously saved file (missing files are ignored)."""
        if not path.startswith(f"{self.url_prefix}/"):
            logger.warning(f"Not deleting asset outside upload prefix: {path}")
            return
        target = self._path_for(path)
        try:
            await asyncio.get_event_loop().run_in_executor(
                None, lambda: target.unlink(missing_ok=True)
            )
        except OSError as e:
            raise AssetStoreError(f"Failed to delete asset: {e}") from e


class R2AssetStore:
    """Stores assets in a public Cloudflare R2 bucket."""

    def __init__(self, bucket_name: str, public_url: str):
        """Initialize R2 asset store with a lazily created boto3 client."""
        self.bucket_name = bucket_name
        self.public_url = public_url.rstrip("/")
        self._client = None

    @property
    def client(self):
        """Get or create boto3 S3 client for R2."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=settings.R2_ENDPOINT_URL,
                aws_access_key_id=settings.R2_ACCESS_KEY_ID,
                aws_secret_access_key=settings.R2_SECRET_ACCESS_KEY,
                config=Config(signature_version="s3v4"),
                region_name="auto",  # R2 uses 'auto' region
            )
        return self._client

    async def save(self, content: bytes, content_type: str, max_retries: int = 3) -> str:
        """
        Upload an asset with retry logic and return its public URL.

        Raises:
            AssetStoreError: If upload fails after all retries
        """
        key = f"themes/{generate_asset_name(content_type)}"

        last_error = None
        for attempt in range(max_retries):
            try:
                # Create fresh BytesIO for each retry attempt
                file_obj = BytesIO(content)
                await asyncio.get_event_loop().run_in_executor(
                    None,
                    lambda: self.client.upload_fileobj(
                        file_obj,
                        self.bucket_name,
                        key,
                        ExtraArgs={"ContentType": content_type},
                    ),
                )
                return f"{self.public_url}/{key}"
            except (ClientError, EndpointConnectionError) as e:
                last_error = e
                if attempt < max_retries - 1:
                    # Exponential backoff: 1s, 2s, 4s
                    await asyncio.sleep(2**attempt)

        raise AssetStoreError(
            f"Failed to upload asset to R2 after {max_retries} attempts: {last_error}"
        )

    async def delete(self, path: str) -> None:
        """Delete an asset previously returned by ``save``."""
        if not path.startswith(f"{self.public_url}/"):
            logger.warning(f"Not deleting asset outside bucket URL: {path}")
            return
        key = path[len(self.public_url) + 1 :]
        try:
            await asyncio.get_event_loop().run_in_executor(
                None,
                lambda: self.client.delete_object(Bucket=self.bucket_name, Key=key),
            )
        except ClientError as e:
            raise AssetStoreError(f"Failed to delete asset from R2: {e}") from e


@lru_cache
def get_asset_store() -> AssetStore:
    """
    Get the configured asset store instance (cached).

    Returns:
        LocalAssetStore or R2AssetStore depending on ASSET_BACKEND
    """
    if settings.ASSET_BACKEND == "r2":
        return R2AssetStore(settings.R2_BUCKET_ASSETS, settings.R2_PUBLIC_URL)
    return LocalAssetStore(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)
