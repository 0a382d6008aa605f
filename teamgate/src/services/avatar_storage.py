"""
Re-hosting of externally hosted avatars to S3.

Team logos initially point at third-party services. Before a Team is saved
they are copied into our own bucket so the product does not hotlink. A
failed copy is never fatal: the previous URL is kept and the copy is
attempted again on the next save.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Optional

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

from teamgate.src.config.settings import AppSettings
from teamgate.src.services.exceptions import AvatarFetchError
from teamgate.src.utils.logging_config import get_logger


logger = get_logger("services")

MAX_AVATAR_BYTES = 5 * 1024 * 1024


@dataclass
class AvatarUploadResult:
    """
    Outcome of a re-host attempt.

    Attributes:
        success: Whether the avatar now lives in our storage
        url: URL to keep on the record (new URL on success, previous otherwise)
        error: Error message (if failed)
        error_code: Machine-readable reason (if failed)
    """
    success: bool
    url: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class AvatarStorage:
    """
    Copies avatar images into the public upload bucket.

    Usage:
        >>> storage = AvatarStorage(get_settings())
        >>> result = storage.rehost("https://logo.clearbit.com/acme.com", "avatars/ten_x/1234")
        >>> result.url
        'https://s3.amazonaws.com/uploads/avatars/ten_x/1234'
    """

    def __init__(self, settings: AppSettings, **client_kwargs: Any):
        """
        Args:
            settings: Application settings (bucket and credentials)
            **client_kwargs: Extra httpx client options used for downloads
        """
        self.settings = settings
        self._client_kwargs = client_kwargs

    @property
    def public_endpoint(self) -> str:
        return self.settings.public_storage_endpoint

    def is_hosted(self, url: Optional[str]) -> bool:
        """True when the URL already points at our storage."""
        return bool(url) and self.settings.storage_configured and url.startswith(self.public_endpoint)

    @staticmethod
    def avatar_key(owner_guid: str) -> str:
        """Object key for a new avatar, namespaced by owner with a random component."""
        return f"avatars/{owner_guid}/{uuid.uuid4()}"

    def _s3_client(self):
        return boto3.client(
            "s3",
            aws_access_key_id=self.settings.aws_access_key_id,
            aws_secret_access_key=self.settings.aws_secret_access_key,
            region_name=self.settings.aws_region,
            endpoint_url=self.settings.aws_s3_upload_bucket_url,
        )

    def _download(self, url: str) -> tuple[bytes, str]:
        try:
            with httpx.Client(timeout=10.0, follow_redirects=True, **self._client_kwargs) as client:
                response = client.get(url)
                response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise AvatarFetchError(url, str(e)) from e

        content = response.content
        if not content:
            raise AvatarFetchError(url, "empty response body")
        if len(content) > MAX_AVATAR_BYTES:
            raise AvatarFetchError(url, f"image larger than {MAX_AVATAR_BYTES} bytes")

        content_type = response.headers.get("content-type", "image/png").split(";")[0]
        return content, content_type

    def upload_from_url(self, url: str, key: str) -> str:
        """
        Download an image and store it under key.

        Returns:
            Public URL of the stored object

        Raises:
            AvatarFetchError: If the download or upload fails
        """
        content, content_type = self._download(url)

        try:
            self._s3_client().put_object(
                Bucket=self.settings.aws_s3_upload_bucket_name,
                Key=key,
                Body=content,
                ContentType=content_type,
                ContentLength=len(content),
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as e:
            raise AvatarFetchError(url, f"upload failed: {e}") from e

        return f"{self.public_endpoint}/{key}"

    def rehost(self, url: Optional[str], owner_guid: str) -> AvatarUploadResult:
        """
        Re-host an avatar if it is not already in our storage.

        Never raises; failures are logged and reported in the result with
        the original URL preserved.
        """
        if not url:
            return AvatarUploadResult(success=False, url=url, error_code="no_avatar")

        if not self.settings.storage_configured:
            return AvatarUploadResult(
                success=False,
                url=url,
                error="Avatar storage is not configured",
                error_code="storage_not_configured",
            )

        if self.is_hosted(url):
            return AvatarUploadResult(success=True, url=url)

        try:
            new_url = self.upload_from_url(url, self.avatar_key(owner_guid))
        except AvatarFetchError as e:
            logger.warning(
                f"Avatar re-host failed, keeping {url}: {e.message}",
                extra={"event": "avatar.rehost.failed", "owner_guid": owner_guid},
            )
            return AvatarUploadResult(
                success=False,
                url=url,
                error=e.message,
                error_code="rehost_failed",
            )

        logger.info(
            "Avatar re-hosted",
            extra={"event": "avatar.rehost.success", "owner_guid": owner_guid},
        )
        return AvatarUploadResult(success=True, url=new_url)
