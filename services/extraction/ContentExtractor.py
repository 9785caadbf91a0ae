"""Content extractor.

Fetches a product page with browser-like headers, parses it with
BeautifulSoup and derives name, description, body text, candidate tags and
the creator/site identity handles used for ownership verification.
"""

from urllib.parse import urlsplit

import httpx
from bs4 import BeautifulSoup

from services.extraction.heuristics import detect_categories, domain_tag, extract_keywords
from shared.errors.product_errors import ExtractionBlockedError, ExtractionUnreachableError, InvalidURLError
from shared.helper.HelperConfig import HelperConfig
from shared.helper.url_helper import normalize_handle, validate_url
from shared.models.extraction import ExtractedContent, PricingInfo

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "max-age=0",
}

PRICING_PATHS = ("/pricing", "/plans", "/buy", "/purchase", "/pricing-plans", "/price")
NON_CONTENT_TAGS = ["script", "style", "nav", "header", "footer", "aside", "iframe", "noscript"]

MAX_TAGS = 10
MAX_FULL_TEXT = 2000
MAX_FALLBACK_DESCRIPTION = 300
MAX_PRICING_TEXT = 500


def _meta(soup: BeautifulSoup, key: str) -> str | None:
    """Content of a <meta> tag matched by property= or name=, None if absent or blank."""
    for attr in ("property", "name"):
        tag = soup.find("meta", attrs={attr: key})
        if tag and tag.get("content") and tag["content"].strip():
            return tag["content"].strip()
    return None


def _collapse(text: str) -> str:
    return " ".join(text.split())


def _main_text(soup: BeautifulSoup) -> str:
    """Cleaned text of the main content area. Removes non-content elements from soup."""
    for tag in soup(NON_CONTENT_TAGS):
        tag.decompose()
    for candidate in (soup.find("main"), soup.find("article"), soup.find(attrs={"role": "main"}), soup.body):
        if candidate is None:
            continue
        text = _collapse(candidate.get_text(" "))
        if text:
            return text
    return ""


def _is_pricing_element(tag) -> bool:
    markers = list(tag.get("class") or []) + [tag.get("id") or ""]
    return any("price" in marker.lower() or "pricing" in marker.lower() for marker in markers)


def parse_page(html: str, url: str) -> ExtractedContent:
    """Turn raw HTML into ExtractedContent.

    Args:
        html (str): The page markup.
        url (str): The URL the markup was fetched from (used for the domain tag).

    Returns:
        ExtractedContent: Resolved name/description, body text, tags and handles.
    """
    soup = BeautifulSoup(html, "lxml")

    # metadata first, _main_text() strips elements from the tree
    og_title = _meta(soup, "og:title")
    og_description = _meta(soup, "og:description")
    og_type = _meta(soup, "og:type")
    meta_description = _meta(soup, "description")
    meta_keywords = _meta(soup, "keywords")
    creator = normalize_handle(_meta(soup, "twitter:creator"))
    site = normalize_handle(_meta(soup, "twitter:site"))

    title_tag = soup.find("title")
    h1_tag = soup.find("h1")
    title = _collapse(title_tag.get_text()) if title_tag else ""
    if not title and h1_tag:
        title = _collapse(h1_tag.get_text())

    main_text = _main_text(soup)

    name = og_title or title or "Untitled"
    description = og_description or meta_description or main_text[:MAX_FALLBACK_DESCRIPTION]

    return ExtractedContent(
        name=name.strip(),
        description=description.strip(),
        full_text=main_text[:MAX_FULL_TEXT].strip(),
        tags=derive_tags(name, description, url, meta_keywords=meta_keywords, og_type=og_type),
        url=url,
        creator_handle=creator,
        site_handle=site,
    )


def derive_tags(
    name: str,
    description: str,
    url: str,
    meta_keywords: str | None = None,
    og_type: str | None = None,
) -> list[str]:
    """Best-effort candidate tags, in priority order, capped at MAX_TAGS.

    Sources: meta keywords, a non-"website" og:type, the first domain segment,
    top-5 content words and regex-detected category labels.
    """
    tags: dict[str, None] = {}

    if meta_keywords:
        for keyword in meta_keywords.split(","):
            cleaned = keyword.strip().lower()
            if len(cleaned) > 2:
                tags[cleaned] = None

    if og_type and og_type.strip().lower() != "website":
        tags[og_type.strip().lower()] = None

    domain = domain_tag(urlsplit(url).hostname)
    if domain:
        tags[domain] = None

    text = f"{name} {description}"
    for keyword in extract_keywords(text):
        tags[keyword] = None
    for category in detect_categories(text):
        tags[category] = None

    return list(tags)[:MAX_TAGS]


class ContentExtractor:
    """Fetches and parses product pages."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self.timeout = helper_config.get_float_val("EXTRACTOR_TIMEOUT", default=15.0)
        self.max_redirects = helper_config.get_int_val("EXTRACTOR_MAX_REDIRECTS", default=5)
        self._client: httpx.AsyncClient | None = None

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialise the HTTP client used for page fetches."""
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=BROWSER_HEADERS,
            follow_redirects=True,
            max_redirects=self.max_redirects,
            transport=transport,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _fetch_html(self, url: str) -> str:
        """GET a page and return its markup.

        Raises:
            ExtractionBlockedError: On any 4xx/5xx answer.
            ExtractionUnreachableError: On DNS, connection, timeout or redirect-limit failures.
            InvalidURLError: If the HTTP client cannot encode the URL.
        """
        if self._client is None:
            raise RuntimeError("HTTP client not initialised. Call boot() before fetching pages.")
        try:
            response = await self._client.get(url)
        except httpx.InvalidURL as exc:
            raise InvalidURLError(f"Invalid hostname in URL: {url}") from exc
        except httpx.RequestError as exc:
            self.logging.warning("Fetching %s failed: %s", url, exc.__class__.__name__)
            raise ExtractionUnreachableError(f"Invalid or unreachable URL: {url}") from exc

        status = response.status_code
        if status == 403:
            raise ExtractionBlockedError("Access forbidden - website is blocking automated access", status_code=status)
        if status == 401:
            raise ExtractionBlockedError("Authentication required - website requires login", status_code=status)
        if status >= 400:
            raise ExtractionBlockedError(f"HTTP {status}: Unable to access website", status_code=status)
        return response.text

    ##########################################
    ############### EXTRACTION ###############
    ##########################################

    async def fetch_page_content(self, url: str) -> ExtractedContent:
        """Fetch a product page and extract its normalized content.

        Args:
            url (str): http(s) URL of the page.

        Returns:
            ExtractedContent: The extracted name, description, text, tags and handles.

        Raises:
            InvalidURLError: If the URL is not a valid http(s) URL.
            ExtractionBlockedError: If the site refuses access.
            ExtractionUnreachableError: If the site cannot be reached.
        """
        url = validate_url(url)
        html = await self._fetch_html(url)
        content = parse_page(html, url)
        self.logging.info(
            "Extracted %s: name=%r, %d tags, creator=%s",
            url, content.name[:60], len(content.tags), content.creator_handle,
        )
        return content

    async def fetch_creator_handle(self, url: str) -> str | None:
        """Fetch a page and return only its normalized twitter:creator handle."""
        content = await self.fetch_page_content(url)
        return content.creator_handle

    async def fetch_pricing_info(self, url: str) -> PricingInfo:
        """Try common pricing paths below the site's origin.

        Informational only: a path that fails to load is skipped, and no
        pricing markup anywhere yields has_pricing=False.

        Raises:
            InvalidURLError: If the URL is not a valid http(s) URL.
        """
        parts = urlsplit(validate_url(url))
        origin = f"{parts.scheme}://{parts.netloc}"
        for path in PRICING_PATHS:
            pricing_url = f"{origin}{path}"
            try:
                html = await self._fetch_html(pricing_url)
            except (ExtractionBlockedError, ExtractionUnreachableError) as exc:
                self.logging.debug("No pricing page at %s: %s", pricing_url, exc.message)
                continue

            soup = BeautifulSoup(html, "lxml")
            elements = soup.find_all(_is_pricing_element)
            if elements:
                text = _collapse(" ".join(el.get_text(" ") for el in elements))[:MAX_PRICING_TEXT]
                self.logging.info("Found pricing info at: %s", pricing_url)
                return PricingInfo(has_pricing=True, pricing_info=text or None)
        return PricingInfo(has_pricing=False, pricing_info=None)
