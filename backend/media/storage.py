"""
Object storage for storefront media, backed by Azure Blob Storage.

Each storage bucket is one blob container. Container names may not contain
underscores, so `customization_options` is stored in the
`customization-options` container.
"""
import os
import logging
from typing import List, Optional
from urllib.parse import quote
from django.conf import settings

logger = logging.getLogger(__name__)

ITEM_PICTURES = 'item-pictures'
CATEGORIES_PICTURES = 'categories-pictures'
WEBSITE_PICTURES = 'website-pictures'
CUSTOMIZATION_ITEM = 'customization-item'
CUSTOMIZATION_OPTIONS = 'customization_options'

BUCKETS = (ITEM_PICTURES, CATEGORIES_PICTURES, WEBSITE_PICTURES, CUSTOMIZATION_ITEM, CUSTOMIZATION_OPTIONS)

AZURE_STORAGE_ACCOUNT_NAME = getattr(
    settings,
    'AZURE_STORAGE_ACCOUNT_NAME',
    os.getenv('AZURE_STORAGE_ACCOUNT_NAME', '')
)

AZURE_STORAGE_ACCOUNT_KEY = getattr(
    settings,
    'AZURE_STORAGE_ACCOUNT_KEY',
    os.getenv('AZURE_STORAGE_ACCOUNT_KEY', '')
)

AZURE_STORAGE_CONNECTION_STRING = getattr(
    settings,
    'AZURE_STORAGE_CONNECTION_STRING',
    os.getenv('AZURE_STORAGE_CONNECTION_STRING', '')
)


class StorageError(Exception):
    """Raised when a storage operation fails or storage is not configured"""


def container_name(bucket: str) -> str:
    return bucket.replace('_', '-')


class ObjectStorage:
    def __init__(self, client=None, account_name=None, account_key=None, connection_string=None):
        self.account_name = account_name if account_name is not None else AZURE_STORAGE_ACCOUNT_NAME
        self.account_key = account_key if account_key is not None else AZURE_STORAGE_ACCOUNT_KEY
        self.connection_string = connection_string if connection_string is not None else AZURE_STORAGE_CONNECTION_STRING
        self._client = client

    @property
    def client(self):
        """BlobServiceClient, created on first use"""
        if self._client is None:
            from azure.storage.blob import BlobServiceClient

            if self.connection_string:
                self._client = BlobServiceClient.from_connection_string(self.connection_string)
            elif self.account_name and self.account_key:
                self._client = BlobServiceClient(
                    account_url=f"https://{self.account_name}.blob.core.windows.net",
                    credential=self.account_key
                )
            else:
                raise StorageError("Azure storage is not configured")
        return self._client

    def base_url(self) -> str:
        if self.account_name:
            return f"https://{self.account_name}.blob.core.windows.net"
        return self.client.url.rstrip('/')

    def get_public_url(self, bucket: str, path: str) -> str:
        # Keep forward slashes, they are folder separators in blob names
        return f"{self.base_url()}/{container_name(bucket)}/{quote(path.lstrip('/'), safe='/')}"

    def list_files(self, bucket: str, folder: str = '', limit: int = 1000) -> List[str]:
        """
        Names of the files directly inside `folder`, sorted ascending.

        Nested blobs are not included.
        """
        from azure.core.exceptions import AzureError

        prefix = folder.strip('/')
        prefix = f"{prefix}/" if prefix else ''
        try:
            container = self.client.get_container_client(container_name(bucket))
            names = []
            for blob in container.list_blobs(name_starts_with=prefix or None):
                name = blob.name[len(prefix):]
                if not name or '/' in name:
                    continue
                names.append(name)
                if len(names) >= limit:
                    break
        except AzureError as e:
            raise StorageError(f"Could not list {bucket}/{prefix}: {str(e)}") from e

        return sorted(names)

    def upload(self, bucket: str, path: str, data: bytes, content_type: Optional[str] = None,
               overwrite: bool = True) -> str:
        """Upload bytes and return the public url"""
        from azure.core.exceptions import AzureError
        from azure.storage.blob import ContentSettings

        try:
            blob_client = self.client.get_blob_client(container_name(bucket), path)
            blob_client.upload_blob(
                data,
                overwrite=overwrite,
                content_settings=ContentSettings(content_type=content_type) if content_type else None
            )
        except AzureError as e:
            logger.error(f"Upload to {bucket}/{path} failed: {str(e)}")
            raise StorageError(f"Could not upload {bucket}/{path}: {str(e)}") from e

        logger.info(f"Uploaded {len(data)} bytes to {bucket}/{path}")
        return self.get_public_url(bucket, path)

    def delete(self, bucket: str, path: str):
        from azure.core.exceptions import AzureError, ResourceNotFoundError

        try:
            self.client.get_blob_client(container_name(bucket), path).delete_blob()
        except ResourceNotFoundError:
            logger.info(f"Blob {bucket}/{path} already deleted")
        except AzureError as e:
            raise StorageError(f"Could not delete {bucket}/{path}: {str(e)}") from e


_default_storage = None


def get_storage() -> ObjectStorage:
    global _default_storage
    if _default_storage is None:
        _default_storage = ObjectStorage()
    return _default_storage
