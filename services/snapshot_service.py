"""
services/snapshot_service.py
----------------------------
Read-only access to the bundled JSON snapshots (tools.json, guides.json,
blog.json). The base may be a local directory or an http(s) URL.

One attempt per fetch: no retry, no backoff. Every failure is logged as a
warning and reported as None.
"""

import json
from pathlib import Path
from typing import Optional

import requests

from config import FETCH_TIMEOUT_SECONDS, SNAPSHOT_BASE
from models.datasets import DatasetSpec
from utils.logger import get_logger

logger = get_logger(__name__)


class SnapshotSource:
    """Fetches the published JSON array of a collection."""

    def __init__(self, base: str = SNAPSHOT_BASE, timeout: float = FETCH_TIMEOUT_SECONDS,
                 session: Optional[requests.Session] = None):
        self.base = str(base)
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def is_remote(self) -> bool:
        return self.base.startswith(("http://", "https://"))

    def location(self, spec: DatasetSpec) -> str:
        if self.is_remote:
            return f"{self.base.rstrip('/')}/{spec.snapshot_file}"
        return str(Path(self.base) / spec.snapshot_file)

    def fetch(self, spec: DatasetSpec) -> Optional[list]:
        """
        Load the snapshot of `spec`.

        Returns:
            The decoded JSON array, or None if it could not be loaded.
        """
        location = self.location(spec)
        try:
            data = self._fetch_remote(location) if self.is_remote else self._fetch_local(location)
        except (OSError, ValueError, requests.RequestException) as e:
            logger.warning(f"Fetch failed for {location}: {e}")
            return None
        if not isinstance(data, list):
            logger.warning(f"Fetch failed for {location}: expected a JSON array")
            return None
        return data

    def _fetch_remote(self, url: str):
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _fetch_local(path: str):
        return json.loads(Path(path).read_text(encoding="utf-8"))
