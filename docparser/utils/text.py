"""
Text and URL helpers shared by strategies, validators and the fetcher.
"""
import ipaddress
import re
import socket
from typing import Optional
from urllib.parse import urlparse

# Common entities only; anything else is left for the browser to render
_HTML_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&nbsp;", " "),
)

# Control characters except tab, newline and carriage return
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_WHITESPACE = re.compile(r"\s+")

_PRIVATE_HOST_PREFIXES = (
    "192.168.",
    "10.",
    "172.16.",
    "172.17.",
    "172.18.",
    "172.19.",
    "172.2",
    "172.30.",
    "172.31.",
)
_LOOPBACK_HOSTS = {"localhost", "127.0.0.1", "0.0.0.0", "[::1]", "::1"}

# Last label of a host that browsers and inet_aton read as an IPv4 number
_IPV4_NUMBER = re.compile(r"^(0x[0-9a-f]*|[0-9]+)$")


def generate_node_id(label: str, node_type: str) -> str:
    """
    Generate a deterministic node ID from label and type.

    "Getting Started!" / "feature" -> "feature-getting-started"
    """
    if not label or not isinstance(label, str):
        raise ValueError("Label must be a non-empty string")
    if not node_type or not isinstance(node_type, str):
        raise ValueError("Type must be a non-empty string")

    slug = label.lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    slug = slug.strip("-")

    return f"{node_type}-{slug}"


def sanitize_text(text: Optional[str]) -> str:
    """Decode common HTML entities, drop control characters and collapse whitespace."""
    if not text or not isinstance(text, str):
        return ""

    for entity, replacement in _HTML_ENTITIES:
        text = text.replace(entity, replacement)

    text = _CONTROL_CHARS.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def truncate_description(text: Optional[str], max_length: int = 200) -> str:
    """
    Sanitize and truncate text to max_length, adding an ellipsis when cut.

    Breaks at the last word boundary when it falls within the final 20% of the
    limit, otherwise cuts hard at max_length.
    """
    if not text or not isinstance(text, str):
        return ""
    if max_length <= 0:
        raise ValueError("max_length must be greater than 0")

    sanitized = sanitize_text(text)
    if len(sanitized) <= max_length:
        return sanitized

    truncated = sanitized[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.8:
        return truncated[:last_space] + "..."

    return truncated + "..."


def is_valid_url(url: Optional[str]) -> bool:
    """
    Check that a URL is HTTPS and does not point at localhost or a private range.

    The host is normalized first, so numeric spellings of a private address
    are rejected as well.

    Used to vet links stored on nodes. The fetcher applies its own, stricter
    blocklist on top of this check.
    """
    if not url or not isinstance(url, str):
        return False

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return False

    if parsed.scheme != "https" or not hostname:
        return False

    host = normalize_host(hostname)
    return bool(host) and not is_private_host(host)


def normalize_host(hostname: str) -> Optional[str]:
    """
    Canonical form of a URL host.

    Numeric hosts are read the way socket.inet_aton and browsers read them, so
    short, decimal, octal and hex forms ("127.1", "2130706433", "0x7f000001")
    come back dotted-quad. IPv6 literals are compressed and names lowercased.
    Returns None for a numeric host that is not a valid address.
    """
    host = hostname.lower().strip("[]")
    if host.endswith("."):
        host = host[:-1]

    if ":" in host:
        try:
            return ipaddress.IPv6Address(host).compressed
        except ValueError:
            return None

    if not _IPV4_NUMBER.match(host.rsplit(".", 1)[-1]):
        return host

    try:
        packed = socket.inet_aton(host)
    except OSError:
        return None
    return str(ipaddress.IPv4Address(packed))


def is_private_host(host: str) -> bool:
    """True for loopback, private, link-local or unspecified hosts (expects normalize_host output)."""
    if host in _LOOPBACK_HOSTS or host.startswith(_PRIVATE_HOST_PREFIXES):
        return True

    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False

    mapped = getattr(address, "ipv4_mapped", None)
    if mapped is not None:
        address = mapped

    return (
        address.is_loopback
        or address.is_private
        or address.is_link_local
        or address.is_unspecified
    )


def hash_url(url: str) -> str:
    """
    Hash a URL with djb2 into a positive hex string (32-bit, not collision resistant).

    Arithmetic wraps to a signed 32-bit integer on every step and iterates over
    UTF-16 code units, so keys match those produced by browser-side tooling.
    """
    if not url or not isinstance(url, str):
        raise ValueError("URL must be a non-empty string")

    encoded = url.encode("utf-16-le", errors="surrogatepass")
    value = 5381
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        value = _to_int32(value * 33 + code_unit)

    return format(abs(value), "x")


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value
