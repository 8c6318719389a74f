"""
Site Analyzer - Scanner
Fetches a single page, parses it, and runs the heuristic rule checks
(SEO, performance, accessibility, links, security, mobile) against it.
Every check returns a flat list of Finding records.
"""

import logging
import sys
import urllib.parse
from dataclasses import dataclass, field
from typing import Optional
from concurrent.futures import ThreadPoolExecutor, as_completed

import cssutils
import requests
from bs4 import BeautifulSoup, FeatureNotFound
from bs4.builder import ParserRejectedMarkup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter
from PIL import ImageColor

from site_config import AnalyzerConfig

# cssutils is noisy about modern CSS (var(), calc(), etc.)
cssutils.log.setLevel(logging.CRITICAL)
_CSS_PARSER = cssutils.CSSParser(raiseExceptions=False, validate=False)

MAX_TITLE_LENGTH = 60
MAX_DESCRIPTION_LENGTH = 160
MIN_CONTRAST_RATIO = 4.5
IMAGE_CHECK_WORKERS = 5

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


class SourceOrderFormatter(HTMLFormatter):
    """Writes attributes in source order instead of bs4's alphabetical order."""

    def attributes(self, tag):
        if tag.attrs is None:
            return []
        return list(tag.attrs.items())


# Same escaping as bs4's "minimal" formatter, but void elements are written
# the way HTML sources usually write them (<img src="..."> not <img src="..."/>)
_SOURCE_FORMATTER = SourceOrderFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)


# =============================================================================
# ERRORS
# =============================================================================

class SiteAnalysisError(Exception):
    """Base class for errors that abort an analysis run."""


class FetchError(SiteAnalysisError):
    """The page GET failed (network, DNS, timeout, non-2xx)."""


class ParseError(SiteAnalysisError):
    """The HTML could not be turned into a document tree."""


class ReportWriteError(SiteAnalysisError):
    """The report file could not be written."""


class ResourceCheckError(Exception):
    """A per-resource sub-check failed. Never aborts the run."""


# =============================================================================
# CONSOLE OUTPUT
# =============================================================================

def log_info(message: str):
    print(f"  {message}")


def log_success(message: str):
    print(f"✅ {message}")


def log_error(message: str):
    print(f"❌ {message}", file=sys.stderr)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class Finding:
    category: str  # "SEO", "Performance", "Accessibility", "Link", "Security", "Mobile"
    issue: str
    solution: str
    location: str  # fixed label ("Document head") or "Line N"
    resource: Optional[str] = None
    hierarchy: Optional[str] = None
    size: Optional[str] = None
    contrast_ratio: Optional[str] = None

    def __post_init__(self):
        for name in ("category", "issue", "solution", "location"):
            if not getattr(self, name):
                raise ValueError(f"Finding.{name} must not be empty")


@dataclass
class PageData:
    url: str
    status_code: int
    html: str = ""
    soup: Optional[BeautifulSoup] = None
    lines: list = field(default_factory=list)
    base_url: str = ""


# =============================================================================
# FETCHER / PARSER
# =============================================================================

def new_session(config: AnalyzerConfig) -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": config.user_agent})
    return session


class SiteFetcher:
    """Fetches the one page an analysis run looks at."""

    def __init__(self, config: AnalyzerConfig):
        self.config = config
        self.session = new_session(config)

    def fetch(self, url: str) -> requests.Response:
        """GET the page. Raises FetchError on any network failure or non-2xx status."""
        try:
            resp = self.session.get(url, timeout=self.config.request_timeout, allow_redirects=True)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Could not fetch {url}: {e}") from e
        return resp

    def fetch_page(self, url: str) -> PageData:
        resp = self.fetch(url)
        # requests assumes ISO-8859-1 for text/html without a charset
        if "charset" not in resp.headers.get("content-type", "").lower():
            resp.encoding = resp.apparent_encoding
        page = parse_page(resp.url or url, resp.text)
        page.status_code = resp.status_code
        return page


def parse_page(url: str, html: str) -> PageData:
    """Parse raw HTML into a PageData (tree + source lines)."""
    try:
        soup = BeautifulSoup(html, "lxml")
    except (ParserRejectedMarkup, FeatureNotFound) as e:
        raise ParseError(f"Could not parse HTML from {url}: {e}") from e

    base_url = url
    base_tag = soup.find("base", href=True)
    if base_tag:
        try:
            base_url = urllib.parse.urljoin(url, base_tag["href"])
        except ValueError:
            log_error(f"Ignoring malformed <base href>: {base_tag['href']}")

    return PageData(
        url=url,
        status_code=200,
        html=html,
        soup=soup,
        lines=html.split("\n"),
        base_url=base_url,
    )


def inline_style(element, prop: str) -> str:
    """Value of a CSS property from the element's style attribute, or ""."""
    style = element.get("style")
    if not style:
        return ""
    declaration = _CSS_PARSER.parseStyle(style)
    return declaration.getPropertyValue(prop).strip()


# =============================================================================
# ELEMENT HELPERS
# =============================================================================

def element_hierarchy(element) -> str:
    """Ancestor path like 'html > body > div#main.card.wide > img'."""
    parts = []
    current = element
    while current is not None and not isinstance(current, BeautifulSoup) and current.name:
        label = current.name.lower()
        element_id = current.get("id")
        if element_id:
            label += f"#{element_id}"
        classes = current.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        if classes:
            label += "." + ".".join(classes)
        parts.insert(0, label)
        current = current.parent
    return " > ".join(parts)


def serialize_element(element) -> str:
    return element.decode(formatter=_SOURCE_FORMATTER)


def find_line(element, lines: list) -> int:
    """
    1-based number of the first source line containing the element's markup,
    or 0 when no line does. Best effort: the re-serialised markup does not
    always match the source byte for byte (quoting, escaping, elements that
    span several lines), in which case the element is reported as not found.
    """
    markup = serialize_element(element)
    for index, line in enumerate(lines):
        if markup in line:
            return index + 1
    return 0


def line_location(element, lines: list) -> str:
    return f"Line {find_line(element, lines)}"


def format_size(num_bytes: int) -> str:
    return f"{num_bytes / 1024:.2f} KB"


# =============================================================================
# COLOR CONTRAST
# =============================================================================

def parse_color(value: str) -> Optional[tuple]:
    """(r, g, b) for any CSS color Pillow understands, else None. Alpha is ignored."""
    try:
        return ImageColor.getrgb(value.strip())[:3]
    except ValueError:
        return None


def relative_luminance(rgb: tuple) -> float:
    """sRGB relative luminance per WCAG 2.x."""
    def channel(c):
        v = c / 255.0
        return v / 12.92 if v <= 0.03928 else ((v + 0.055) / 1.055) ** 2.4
    r, g, b = rgb
    return 0.2126 * channel(r) + 0.7152 * channel(g) + 0.0722 * channel(b)


def contrast_ratio(color1: str, color2: str) -> Optional[float]:
    """WCAG contrast ratio between two CSS colors, 1.0 to 21.0. None if either is unparseable."""
    rgb1 = parse_color(color1)
    rgb2 = parse_color(color2)
    if rgb1 is None or rgb2 is None:
        return None
    l1 = relative_luminance(rgb1)
    l2 = relative_luminance(rgb2)
    lighter = max(l1, l2)
    darker = min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


# =============================================================================
# CHECK FUNCTIONS
# =============================================================================

def check_seo(page: PageData, config: AnalyzerConfig) -> list[Finding]:
    """Title, meta description and heading checks."""
    results = []
    soup = page.soup

    title_tag = soup.find("title")
    title = title_tag.get_text().strip() if title_tag else ""
    if not title:
        results.append(Finding(
            category="SEO",
            issue="Missing page title",
            solution="Add a <title> tag inside the HTML <head>.",
            location="Document head",
        ))
    elif len(title) > MAX_TITLE_LENGTH:
        results.append(Finding(
            category="SEO",
            issue="Page title too long",
            solution=f"Shorten the title to {MAX_TITLE_LENGTH} characters or fewer.",
            location="Document head",
        ))

    meta = soup.find("meta", attrs={"name": "description"})
    description = (meta.get("content") or "").strip() if meta else ""
    if not description:
        results.append(Finding(
            category="SEO",
            issue="Missing meta description",
            solution='Add a <meta name="description"> tag inside the HTML <head>.',
            location="Document head",
        ))
    elif len(description) > MAX_DESCRIPTION_LENGTH:
        results.append(Finding(
            category="SEO",
            issue="Meta description too long",
            solution=f"Shorten the meta description to {MAX_DESCRIPTION_LENGTH} characters or fewer.",
            location="Document head",
        ))

    if not soup.find_all(HEADING_TAGS):
        results.append(Finding(
            category="SEO",
            issue="No headings found",
            solution="Add headings (h1, h2, etc.) to structure the content.",
            location="Document body",
        ))

    return results


def _head_content_length(session: requests.Session, base_url: str, src: str,
                         timeout: int) -> Optional[int]:
    """Content-Length of an image from a HEAD request, or None if the server omits it."""
    try:
        img_url = urllib.parse.urljoin(base_url, src)
    except ValueError as e:
        raise ResourceCheckError(f"Malformed image URL {src!r}: {e}") from e

    try:
        r = session.head(img_url, timeout=timeout, allow_redirects=True)
        r.raise_for_status()
    except requests.RequestException as e:
        raise ResourceCheckError(f"HEAD {img_url} failed: {e}") from e

    raw = r.headers.get("content-length")
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ResourceCheckError(f"Bad Content-Length {raw!r} for {img_url}") from e


def check_performance(page: PageData, config: AnalyzerConfig) -> list[Finding]:
    """Render-blocking scripts and oversized images."""
    results = []

    for script in page.soup.find_all("script"):
        src = script.get("src")
        if src and not script.has_attr("async") and not script.has_attr("defer"):
            results.append(Finding(
                category="Performance",
                issue="Render-blocking script",
                solution='Add the "async" or "defer" attribute to the script.',
                location=line_location(script, page.lines),
                resource=src,
            ))

    images = []
    for img in page.soup.find_all("img"):
        src = img.get("src")
        if src and not src.startswith("data:"):
            images.append((img, src))
    if not images:
        return results

    session = new_session(config)
    oversized = {}

    # Every HEAD request is joined before returning
    with ThreadPoolExecutor(max_workers=IMAGE_CHECK_WORKERS) as executor:
        futures = {
            executor.submit(
                _head_content_length, session, page.base_url, src, config.request_timeout,
            ): index
            for index, (_, src) in enumerate(images)
        }
        for future in as_completed(futures):
            index = futures[future]
            try:
                length = future.result()
            except ResourceCheckError as e:
                log_error(f"Could not check image: {images[index][1]} ({e})")
                continue
            if length is not None and length > config.max_image_size_bytes:
                oversized[index] = length

    for index in sorted(oversized):
        img, src = images[index]
        results.append(Finding(
            category="Performance",
            issue="Image too large",
            solution=f"Reduce the image size to under {config.max_image_size_kb} KB.",
            location=line_location(img, page.lines),
            resource=src,
            size=format_size(oversized[index]),
        ))

    return results


def check_accessibility(page: PageData, config: AnalyzerConfig) -> list[Finding]:
    """Images without alt text and low-contrast inline colors."""
    results = []

    for img in page.soup.find_all("img"):
        if not img.get("alt"):
            results.append(Finding(
                category="Accessibility",
                issue="Image missing alt attribute",
                solution='Add a descriptive "alt" attribute to the image.',
                location=line_location(img, page.lines),
                resource=img.get("src"),
                hierarchy=element_hierarchy(img),
            ))

    for element in page.soup.find_all(True):
        background = inline_style(element, "background-color")
        color = inline_style(element, "color")
        if not background or not color:
            continue
        ratio = contrast_ratio(background, color)
        if ratio is None:
            continue
        if ratio < MIN_CONTRAST_RATIO:
            results.append(Finding(
                category="Accessibility",
                issue="Insufficient color contrast",
                solution="Increase the contrast between the text and its background.",
                location=line_location(element, page.lines),
                resource=serialize_element(element),
                contrast_ratio=f"{ratio:.2f}",
            ))

    return results


def check_links(page: PageData, config: AnalyzerConfig) -> list[Finding]:
    """Empty and fragment-only links."""
    results = []
    for link in page.soup.find_all("a", href=True):
        href = link["href"]
        if href == "" or href.startswith("#"):
            results.append(Finding(
                category="Link",
                issue="Broken or empty link",
                solution="Fix the link target or remove the link.",
                location=line_location(link, page.lines),
                resource=href,
            ))
    return results


def check_security(page: PageData, config: AnalyzerConfig) -> list[Finding]:
    """HTTPS check on the configured site URL (redirects are not followed for this)."""
    if config.site_url.startswith("https://"):
        return []
    return [Finding(
        category="Security",
        issue="Site does not use HTTPS",
        solution="Configure the site to be served over HTTPS.",
        location="Site URL",
    )]


def check_mobile(page: PageData, config: AnalyzerConfig) -> list[Finding]:
    """Viewport meta tag check."""
    viewport = page.soup.find("meta", attrs={"name": "viewport"})
    if viewport and (viewport.get("content") or "").strip():
        return []
    return [Finding(
        category="Mobile",
        issue="Viewport not configured",
        solution='Add a <meta name="viewport"> tag inside the HTML <head>.',
        location="Document head",
    )]


# =============================================================================
# CHECK FUNCTION REGISTRY
# =============================================================================

# Run (and reported) in this order
CHECK_FUNCTIONS = {
    "SEO": check_seo,
    "Performance": check_performance,
    "Accessibility": check_accessibility,
    "Link": check_links,
    "Security": check_security,
    "Mobile": check_mobile,
}
