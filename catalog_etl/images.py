"""
Catalog Image Harvesting

Downloads images referenced by the item catalog into a local directory and
rewrites item and sub-item image references to the local filenames.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, Optional, Set

import requests

from catalog_etl.exceptions import FetchError, MissingRedirectError
from catalog_etl.models import Item

logger = logging.getLogger(__name__)

MIME_TO_EXTENSION = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
}
DEFAULT_EXTENSION = ".jpg"


def extension_for_content_type(content_type: Optional[str]) -> str:
    """
    Map a Content-Type header to a file extension.

    Parameters such as charset are ignored; unknown or missing types fall back to .jpg.
    """
    if not content_type:
        return DEFAULT_EXTENSION
    mime = content_type.split(";", 1)[0].strip().lower()
    return MIME_TO_EXTENSION.get(mime, DEFAULT_EXTENSION)


def collect_image_ids(items: Dict[str, Item]) -> Set[str]:
    """Distinct image identifiers across all items and their sub-items."""
    image_ids = set()
    for item in items.values():
        if item.image:
            image_ids.add(item.image)
        for sub_item in item.sub:
            if sub_item.image:
                image_ids.add(sub_item.image)
    return image_ids


class ImageHarvester:
    """
    Downloads catalog images by file identifier.

    Follows at most two redirect hops per download. The output directory is
    owned by the harvester and cleared before each run.
    """

    DOWNLOAD_URL_TEMPLATE = "https://drive.google.com/uc?export=download&id={file_id}"
    REDIRECT_CODES = (301, 302, 303, 307)
    MAX_REDIRECT_HOPS = 2

    def __init__(
        self,
        output_dir: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ):
        """
        Initialize the harvester.

        Args:
            output_dir: Directory that receives <identifier><ext> files
            session: HTTP session to reuse (default: a new requests.Session)
            timeout: Per-request timeout in seconds
        """
        self.output_dir = output_dir
        self.session = session or requests.Session()
        self.timeout = timeout
        self.metrics = {"requested": 0, "downloaded": 0, "failed": 0}

    def reset_output_dir(self) -> int:
        """
        Remove every file in the output directory, creating it if absent.

        Returns:
            Number of files removed
        """
        if not os.path.isdir(self.output_dir):
            os.makedirs(self.output_dir, exist_ok=True)
            logger.info(f"Created directory: {self.output_dir}")
            return 0

        removed = 0
        for name in os.listdir(self.output_dir):
            path = os.path.join(self.output_dir, name)
            if os.path.isfile(path) or os.path.islink(path):
                os.remove(path)
                removed += 1

        logger.info(f"Cleared {removed} old images")
        return removed

    def download(self, file_id: str) -> Optional[str]:
        """
        Download one image.

        Args:
            file_id: Remote file identifier

        Returns:
            Path of the written file, or None if file_id is empty

        Raises:
            MissingRedirectError: If a redirect has no Location header
            FetchError: On transport failure, a third redirect or a non-200 final status
        """
        if not file_id:
            return None

        url = self.DOWNLOAD_URL_TEMPLATE.format(file_id=file_id)
        response = self._get(url)

        for hop in range(1, self.MAX_REDIRECT_HOPS + 1):
            if response.status_code not in self.REDIRECT_CODES:
                break
            location = response.headers.get("Location")
            if not location:
                raise MissingRedirectError(
                    f"Redirect URL not found (hop {hop}) for {file_id}",
                    status_code=response.status_code,
                    reason=response.reason,
                )
            response = self._get(location)

        if response.status_code != 200:
            raise FetchError(
                f"Failed to download image: {response.status_code}",
                status_code=response.status_code,
                reason=response.reason,
            )

        extension = extension_for_content_type(response.headers.get("Content-Type"))
        path = os.path.join(self.output_dir, f"{file_id}{extension}")
        with open(path, "wb") as f:
            f.write(response.content)

        return path

    def download_all(self, image_ids: Iterable[str], max_workers: Optional[int] = None) -> Dict[str, str]:
        """
        Download every identifier concurrently, isolating failures.

        Args:
            image_ids: Distinct identifiers to download
            max_workers: Thread pool size (default: one thread per identifier)

        Returns:
            Mapping of identifier to local filename for successful downloads
        """
        image_ids = sorted(set(image_ids))
        self.metrics["requested"] = len(image_ids)
        logger.info(f"Found {len(image_ids)} unique images to download")

        if not image_ids:
            return {}

        filenames: Dict[str, str] = {}
        with ThreadPoolExecutor(max_workers=max_workers or len(image_ids)) as executor:
            futures = {file_id: executor.submit(self.download, file_id) for file_id in image_ids}
            for file_id, future in futures.items():
                try:
                    path = future.result()
                except Exception as e:
                    self.metrics["failed"] += 1
                    logger.warning(f"Failed to download {file_id}: {e}")
                    continue
                filenames[file_id] = os.path.basename(path)
                self.metrics["downloaded"] += 1
                logger.info(f"Downloaded {filenames[file_id]}")

        return filenames

    def harvest(self, items: Dict[str, Item], max_workers: Optional[int] = None) -> Dict[str, str]:
        """
        Reset the output directory, download all referenced images and
        rewrite image references in place.

        References whose download failed keep the bare identifier.

        Args:
            items: Item catalog, modified in place
            max_workers: Thread pool size

        Returns:
            Mapping of identifier to local filename
        """
        logger.info("Downloading images...")
        self.reset_output_dir()

        filenames = self.download_all(collect_image_ids(items), max_workers=max_workers)

        for item in items.values():
            if item.image in filenames:
                item.image = filenames[item.image]
            for sub_item in item.sub:
                if sub_item.image in filenames:
                    sub_item.image = filenames[sub_item.image]

        logger.info(
            f"Image download complete: {self.metrics['downloaded']} downloaded, "
            f"{self.metrics['failed']} failed"
        )
        return filenames

    def _get(self, url: str) -> requests.Response:
        try:
            return self.session.get(url, allow_redirects=False, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Request to {url} failed: {e}") from e

