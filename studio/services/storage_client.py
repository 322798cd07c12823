"""Object storage helper for rendered lesson media."""

from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import quote, urlparse, urlunparse

from google.auth.credentials import AnonymousCredentials
from google.cloud import storage
from starlette.concurrency import run_in_threadpool

from studio.config import Settings


class StorageClient:
  """Thin wrapper over GCS and emulator access for media uploads."""

  def __init__(self, settings: Settings, client: storage.Client | None = None) -> None:
    self._bucket_name = settings.media_bucket
    self._storage_host = settings.gcs_storage_host
    self._public_base_url = settings.public_base_url
    self._emulator_endpoint: str | None = None
    if client is not None:
      self._client = client
    elif self._storage_host:
      # Ensure emulator endpoint is visible to the SDK in local development.
      self._emulator_endpoint = _normalize_emulator_endpoint(self._storage_host)
      os.environ["STORAGE_EMULATOR_HOST"] = self._emulator_endpoint
      self._client = storage.Client(project=settings.gcp_project_id or "local-dev", credentials=AnonymousCredentials(), client_options={"api_endpoint": self._emulator_endpoint})
    else:
      self._client = storage.Client(project=settings.gcp_project_id)

  @property
  def bucket_name(self) -> str:
    """Return the bucket that receives published media."""
    return self._bucket_name

  async def ensure_bucket(self) -> None:
    """Create the bucket when missing in emulator mode only."""
    if not self._storage_host:
      return
    bucket = self._client.bucket(self._bucket_name)

    def _create_if_missing() -> None:
      if not bucket.exists(client=self._client):
        self._client.create_bucket(bucket)

    await run_in_threadpool(_create_if_missing)

  async def upload_file(self, local_path: Path, object_name: str, content_type: str, cache_control: str = "public, max-age=31536000") -> None:
    """Upload a local file to the bucket."""
    blob = self._client.bucket(self._bucket_name).blob(object_name)
    blob.cache_control = cache_control
    await run_in_threadpool(blob.upload_from_filename, str(local_path), content_type=content_type)

  def public_url(self, object_name: str) -> str:
    """Resolve the durable public URL for an uploaded object."""
    if self._public_base_url:
      return f"{self._public_base_url.rstrip('/')}/{quote(object_name)}"
    if self._emulator_endpoint:
      return f"{self._emulator_endpoint}/{self._bucket_name}/{quote(object_name)}"
    return self._client.bucket(self._bucket_name).blob(object_name).public_url


def build_storage_client(settings: Settings) -> StorageClient:
  """Create a storage client instance with environment-aware credentials."""
  return StorageClient(settings)


def _normalize_emulator_endpoint(raw_endpoint: str) -> str:
  """Normalize emulator endpoint so the SDK receives scheme+host+port only."""
  parsed = urlparse(raw_endpoint)
  if not parsed.scheme or not parsed.netloc:
    return raw_endpoint.rstrip("/")
  return urlunparse((parsed.scheme, parsed.netloc, "", "", "", "")).rstrip("/")
