"""
Published Sheet Extraction

Fetches tabs of a published spreadsheet as CSV and converts them to ordered records.
The spreadsheet is published read-only, so no authentication is involved.
"""

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

import pandas as pd
import requests

from catalog_etl.exceptions import (
    FetchError,
    InsecureRedirectError,
    ParseError,
    RedirectLoopError,
)

logger = logging.getLogger(__name__)

Record = Dict[str, str]
SheetTable = Dict[str, List[Record]]


class PublishedSheetExtractor:
    """
    Extracts tabs from a spreadsheet published to the web.

    Each tab is exported independently through the CSV publish endpoint.
    """

    CSV_URL_TEMPLATE = (
        "https://docs.google.com/spreadsheets/d/e/{spreadsheet_id}/pub"
        "?gid={gid}&single=true&output=csv"
    )
    REDIRECT_CODES = (301, 307)
    MAX_REDIRECTS = 5

    def __init__(
        self,
        spreadsheet_id: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ):
        """
        Initialize the extractor.

        Args:
            spreadsheet_id: Published spreadsheet identifier
            session: HTTP session to reuse (default: a new requests.Session)
            timeout: Per-request timeout in seconds
        """
        self.spreadsheet_id = spreadsheet_id
        self.session = session or requests.Session()
        self.timeout = timeout

    def build_csv_url(self, gid: str) -> str:
        return self.CSV_URL_TEMPLATE.format(spreadsheet_id=self.spreadsheet_id, gid=gid)

    def fetch_csv(self, url: str) -> str:
        """
        Download CSV text, following 301/307 redirects.

        Args:
            url: Initial export URL

        Returns:
            Response body decoded as UTF-8, invalid bytes replaced with U+FFFD

        Raises:
            RedirectLoopError: If more than MAX_REDIRECTS redirects are followed
            InsecureRedirectError: If a redirect target is missing or not https
            FetchError: On transport failure or any other non-200 status
        """
        for _ in range(self.MAX_REDIRECTS + 1):
            response = self._get(url)

            if response.status_code in self.REDIRECT_CODES:
                location = response.headers.get("Location")
                if not location or not location.startswith("https://"):
                    raise InsecureRedirectError(
                        f"Invalid or insecure redirect URL: {location!r}",
                        status_code=response.status_code,
                        reason=response.reason,
                    )
                logger.debug(f"Following {response.status_code} redirect to {location}")
                url = location
                continue

            if response.status_code != 200:
                raise FetchError(
                    f"HTTP {response.status_code}: {response.reason}",
                    status_code=response.status_code,
                    reason=response.reason,
                )

            # Invalid byte sequences become U+FFFD rather than aborting the tab
            return response.content.decode("utf-8", errors="replace")

        raise RedirectLoopError(
            f"Too many redirects (more than {self.MAX_REDIRECTS}). Possible redirect loop."
        )

    def extract(self, sheet_name: str, gid: str) -> List[Record]:
        """
        Fetch one tab and parse it into records.

        Args:
            sheet_name: Logical tab name (used for logging)
            gid: Tab identifier within the published spreadsheet

        Returns:
            Ordered list of column-keyed records
        """
        logger.info(f"Fetching {sheet_name} sheet...")
        try:
            csv_text = self.fetch_csv(self.build_csv_url(gid))
            records = parse_csv(csv_text)
        except Exception as e:
            logger.error(f"Failed to fetch {sheet_name}: {e}")
            raise

        logger.info(f"Fetched {sheet_name}: {len(records)} records")
        return records

    def extract_all(self, sheets: Dict[str, str], max_workers: Optional[int] = None) -> SheetTable:
        """
        Fetch every configured tab concurrently.

        Any single tab failure aborts the whole fetch phase.

        Args:
            sheets: Mapping of tab name to gid
            max_workers: Thread pool size (default: one thread per tab)

        Returns:
            Mapping of tab name to records, in configuration order
        """
        if not sheets:
            return {}

        logger.info(f"Fetching {len(sheets)} sheets...")
        with ThreadPoolExecutor(max_workers=max_workers or len(sheets)) as executor:
            futures = {
                name: executor.submit(self.extract, name, gid)
                for name, gid in sheets.items()
            }
            return {name: future.result() for name, future in futures.items()}

    def _get(self, url: str) -> requests.Response:
        try:
            return self.session.get(url, allow_redirects=False, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Request to {url} failed: {e}") from e


def _unique_headers(raw_headers: List[str]) -> List[str]:
    """Trim header cells and suffix duplicates with .1, .2 so columns stay addressable."""
    seen: Dict[str, int] = {}
    headers = []
    for header in raw_headers:
        name = header.strip()
        if name in seen:
            seen[name] += 1
            headers.append(f"{name}.{seen[name]}")
        else:
            seen[name] = 0
            headers.append(name)
    return headers


def parse_csv(csv_text: str) -> List[Record]:
    """
    Parse CSV text into column-keyed records.

    The first row supplies the headers, blank lines are skipped and every
    cell is trimmed. No semantic validation happens here.

    Args:
        csv_text: Raw CSV text

    Returns:
        List of records whose key order follows the source column order

    Raises:
        ParseError: If the CSV is malformed
    """
    try:
        df = pd.read_csv(
            io.StringIO(csv_text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        return []
    except (pd.errors.ParserError, ValueError) as e:
        raise ParseError(f"Malformed CSV: {e}") from e

    if df.empty:
        return []

    df = df.fillna("").apply(lambda column: column.str.strip())
    rows = df.values.tolist()
    headers = _unique_headers(rows[0])

    records = [dict(zip(headers, row)) for row in rows[1:]]
    logger.debug(f"Parsed {len(records)} records with columns: {headers}")
    return records

