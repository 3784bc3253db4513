"""URL helpers shared by the crawler and analyzers.

None of these raise on malformed input; they return a neutral value instead.
"""

import ipaddress
from urllib.parse import parse_qsl, urldefrag, urlencode, urljoin, urlsplit, urlunsplit

import validators


BLOCKED_HOSTS = {"localhost", "0.0.0.0"}


def ensure_scheme(url: str) -> str:
    """Ensure URL has a scheme."""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url.lstrip("/")
    return url


def _is_private_host(hostname: str) -> bool:
    if hostname in BLOCKED_HOSTS:
        return True
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return ip.is_private or ip.is_loopback or ip.is_unspecified


def is_valid_url(url: str) -> bool:
    """True for absolute http(s) URLs that do not point at local or private hosts."""
    if not url or not isinstance(url, str):
        return False
    if not validators.url(url):
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return False
    return not _is_private_host(parts.hostname.lower())


def normalize_url(url: str) -> str:
    """Canonical form: https, no trailing slash (except root), sorted query, no fragment."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.netloc:
        return url

    scheme = "https" if parts.scheme in ("http", "https") else parts.scheme
    path = parts.path or "/"
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    query = urlencode(sorted(parse_qsl(parts.query, keep_blank_values=True)))
    return urlunsplit((scheme, parts.netloc, path, query, ""))


def strip_fragment(url: str) -> str:
    return urldefrag(url)[0]


def extract_domain(url: str) -> str:
    """Hostname of a URL, or an empty string."""
    try:
        return urlsplit(url).hostname or ""
    except ValueError:
        return ""


def resolve_url(base_url: str, relative_url: str) -> str:
    try:
        return urljoin(base_url, relative_url)
    except ValueError:
        return relative_url


def is_same_domain(url1: str, url2: str) -> bool:
    domain1 = extract_domain(url1)
    return bool(domain1) and domain1 == extract_domain(url2)


def extract_path(url: str) -> str:
    """Path plus query string, without the host."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return "/"
    path = parts.path or "/"
    return f"{path}?{parts.query}" if parts.query else path


def _root_file_url(domain_or_url: str, filename: str) -> str:
    url = ensure_scheme(domain_or_url)
    try:
        parts = urlsplit(url)
    except ValueError:
        return ""
    if not parts.netloc:
        return ""
    return urlunsplit((parts.scheme, parts.netloc, f"/{filename}", "", ""))


def build_sitemap_url(domain_or_url: str) -> str:
    return _root_file_url(domain_or_url, "sitemap.xml")


def build_robots_txt_url(domain_or_url: str) -> str:
    return _root_file_url(domain_or_url, "robots.txt")
