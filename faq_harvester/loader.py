"""
Document loader: fetch a page (or read a pinned local copy) and parse it.

Pipeline position: first stage, feeding every adapter.
Input:  URL, optionally a local file standing in for it
Output: LoadResult holding a BeautifulSoup tree, or the error message

Pages are decoded from raw bytes: a charset in the Content-Type header
first, then the page's <meta> declaration, then UTF-8.

Never raises to the caller. Any network, HTTP, I/O or parse problem is
logged as a warning and reported as a failed LoadResult.
"""

import codecs
import re
from pathlib import Path
from typing import Optional, Union

import requests
import urllib3
from bs4 import BeautifulSoup

from .config import HarvesterConfig
from .exceptions import FetchError
from .logger import get_module_logger
from .schemas import LoadResult

logger = get_module_logger("loader")

DEFAULT_CHARSET = "utf-8"

# Labels browsers decode with a superset codec
WHATWG_CHARSET_MAP = {
    "iso-8859-1": "windows-1252",
    "iso8859-1": "windows-1252",
    "iso88591": "windows-1252",
    "latin-1": "windows-1252",
    "latin1": "windows-1252",
    "us-ascii": "windows-1252",
    "ascii": "windows-1252",
    "iso-8859-9": "windows-1254",
    "iso-8859-11": "windows-874",
}

META_CHARSET_PATTERN = re.compile(r'<meta[^>]+charset=["\']?\s*([^\s"\';>]+)', re.IGNORECASE)
META_CONTENT_TYPE_PATTERN = re.compile(
    r'<meta[^>]+content=["\'][^"\']*charset=([^\s"\';>]+)', re.IGNORECASE
)
HEADER_CHARSET_PATTERN = re.compile(r'charset=["\']?([^\s"\';]+)', re.IGNORECASE)


def detect_charset(raw_bytes: bytes, declared: Optional[str] = None) -> str:
    """
    Pick the charset to decode a page with.

    A charset declared by the server wins. Otherwise the first 2048 bytes
    are scanned for <meta charset=...> or the http-equiv Content-Type form.
    Labels are mapped the way browsers map them (iso-8859-1 → windows-1252);
    unknown labels and pages declaring nothing fall back to UTF-8.
    """
    charset = declared.strip().lower() if declared else None

    if not charset:
        head = raw_bytes[:2048].decode("ascii", errors="ignore")
        m = META_CHARSET_PATTERN.search(head) or META_CONTENT_TYPE_PATTERN.search(head)
        if m:
            charset = m.group(1).strip().lower()

    if not charset:
        return DEFAULT_CHARSET

    charset = WHATWG_CHARSET_MAP.get(charset, charset)
    try:
        codecs.lookup(charset)
    except LookupError:
        logger.warning(f"Unknown charset {charset!r}, decoding as {DEFAULT_CHARSET}")
        return DEFAULT_CHARSET
    return charset


def decode_document(raw_bytes: bytes, declared: Optional[str] = None) -> str:
    return raw_bytes.decode(detect_charset(raw_bytes, declared), errors="replace")


def header_charset(content_type: Optional[str]) -> Optional[str]:
    """charset parameter of a Content-Type header, if any."""
    m = HEADER_CHARSET_PATTERN.search(content_type or "")
    return m.group(1) if m else None


def parse_document(html: str) -> BeautifulSoup:
    """
    Parse HTML with the html5lib → lxml → html.parser fallback chain.

    html5lib follows the WHATWG algorithm and copes with the worst markup;
    lxml and the built-in parser are tried only if it fails.
    """
    try:
        return BeautifulSoup(html, "html5lib")
    except Exception as e:
        logger.warning(f"html5lib parsing failed, trying lxml: {e}")

    try:
        return BeautifulSoup(html, "lxml")
    except Exception as e:
        logger.warning(f"lxml parsing also failed: {e}")
        return BeautifulSoup(html, "html.parser")


class DocumentLoader:
    """Blocking HTTPS loader with a local-file override."""

    def __init__(self, config: Optional[HarvesterConfig] = None,
                 session: Optional[requests.Session] = None):
        self.config = config or HarvesterConfig()
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": self.config.user_agent})

        if not self.config.verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def _fetch(self, url: str) -> str:
        try:
            resp = self.session.get(
                url,
                timeout=self.config.request_timeout,
                verify=self.config.verify_tls,
            )
            resp.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Request failed: {e}", url=url) from e
        return decode_document(resp.content, header_charset(resp.headers.get("Content-Type")))

    def _read(self, url: str, local_file: Union[str, Path]) -> str:
        try:
            raw_bytes = Path(local_file).read_bytes()
        except OSError as e:
            raise FetchError(f"Cannot read {local_file}: {e}", url=url,
                             details={"local_file": str(local_file)}) from e
        return decode_document(raw_bytes)

    def load(self, url: str, local_file: Optional[Union[str, Path]] = None) -> LoadResult:
        """
        Load and parse a document.

        Args:
            url: Page URL (used for the request, or only as provenance
                 when local_file is given)
            local_file: Pinned local copy to read instead of fetching

        Returns:
            LoadResult; check .ok before using .document
        """
        try:
            if local_file is not None:
                logger.debug(f"Reading pinned document {local_file} for {url}")
                html = self._read(url, local_file)
            else:
                logger.debug(f"Fetching {url}")
                html = self._fetch(url)

            try:
                document = parse_document(html)
            except Exception as e:
                raise FetchError(f"Parse error: {e}", url=url) from e

        except FetchError as e:
            logger.warning(f"Can't get URL: {url} ({e.message})")
            return LoadResult.failure(url, e.message)

        return LoadResult.success(url, document)
