"""
SSRF guard for outbound fetches.

Validates a URL before any connection is made: https only, no embedded
credentials, and every resolved address (all families) must be publicly
routable. Resolution failures block the request.

Dependencies: ipaddress, socket, asyncio (stdlib)
System role: Network-level defense for the remote URL source kind
"""

import asyncio
import ipaddress
import logging
import socket
from typing import Awaitable, Callable
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from content_ingestion.core.exceptions import SecurityBlockedError

logger = logging.getLogger(__name__)

Resolver = Callable[[str, int], Awaitable[list[str]]]

ALLOWED_SCHEMES = {"https"}
DEFAULT_HTTPS_PORT = 443
MAX_URL_LENGTH = 2048

# Cloud instance metadata endpoints
METADATA_ADDRESSES = {
    ipaddress.ip_address("169.254.169.254"),
    ipaddress.ip_address("fd00:ec2::254"),
}
# Well-known NAT64 prefix; the last 32 bits are the IPv4 target
NAT64_PREFIX = ipaddress.ip_network("64:ff9b::/96")


class ParsedTarget(BaseModel):
    """Syntactically valid https target, not yet resolved."""

    url: str = Field(description="Original URL")
    hostname: str = Field(description="ASCII hostname or numeric address")
    port: int = Field(description="Destination port")
    path: str = Field(description="Path and query to request")
    literal_address: str | None = Field(
        default=None,
        description="Set when the host is a numeric address",
    )


class ValidatedTarget(ParsedTarget):
    """A target whose host resolved only to public addresses."""

    addresses: list[str] = Field(description="Validated numeric addresses")

    @property
    def host_header(self) -> str:
        """Host header value for the pinned request."""
        host = self.hostname
        if self.literal_address and ":" in host:
            host = f"[{host}]"
        if self.port == DEFAULT_HTTPS_PORT:
            return host
        return f"{host}:{self.port}"

    def pinned_url(self) -> str:
        """URL that targets the first validated address directly."""
        address = self.addresses[0]
        if ":" in address:
            address = f"[{address}]"
        return f"https://{address}:{self.port}{self.path}"


async def default_resolver(hostname: str, port: int) -> list[str]:
    """
    Resolve a hostname to every numeric address using the event loop.

    Args:
        hostname: ASCII hostname
        port: Destination port

    Returns:
        list[str]: Unique addresses in resolution order
    """
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, port, type=socket.SOCK_STREAM)
    addresses: list[str] = []
    for info in infos:
        address = info[4][0]
        if address not in addresses:
            addresses.append(address)
    return addresses


def is_public_address(address: str) -> bool:
    """
    Check that an address is globally routable and not a metadata endpoint.

    IPv6 addresses that carry an IPv4 target (IPv4-mapped, NAT64, 6to4,
    Teredo) are checked as that IPv4 address.

    Args:
        address: Numeric IPv4 or IPv6 address (zone suffix allowed)

    Returns:
        bool: True only for public unicast addresses
    """
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False

    if isinstance(ip, ipaddress.IPv6Address):
        ip = _embedded_ipv4(ip) or ip

    if ip in METADATA_ADDRESSES:
        return False
    if (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_multicast
        or ip.is_reserved
        or ip.is_unspecified
    ):
        return False
    if isinstance(ip, ipaddress.IPv6Address) and ip.is_site_local:
        return False
    return ip.is_global


def _embedded_ipv4(ip: ipaddress.IPv6Address) -> ipaddress.IPv4Address | None:
    if ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    if ip in NAT64_PREFIX:
        return ipaddress.IPv4Address(int(ip) & 0xFFFFFFFF)
    if ip.sixtofour is not None:
        return ip.sixtofour
    if ip.teredo is not None:
        return ip.teredo[1]
    return None


def _literal_address(hostname: str) -> str | None:
    try:
        return str(ipaddress.ip_address(hostname.split("%", 1)[0]))
    except ValueError:
        return None


def _ensure_public(target: ParsedTarget, addresses: list[str]) -> None:
    blocked = [address for address in addresses if not is_public_address(address)]
    if blocked:
        logger.warning(
            f"{__name__}:_ensure_public - Blocked non-public destination",
            extra={"hostname": target.hostname, "blocked": ",".join(blocked)},
        )
        raise SecurityBlockedError(
            "URL resolves to a private or reserved address",
            url=target.url,
            details={"hostname": target.hostname},
        )


def parse_target(url: str) -> ParsedTarget:
    """
    Run the network-free URL checks.

    Rejects non-https schemes, embedded credentials, missing hosts,
    over-long URLs and numeric hosts that are not public.

    Args:
        url: URL to check

    Returns:
        ParsedTarget: Normalized target

    Raises:
        SecurityBlockedError: When any check fails
    """
    url = url.strip()
    if len(url) > MAX_URL_LENGTH:
        raise SecurityBlockedError("URL is too long", details={"length": len(url)})

    try:
        parts = urlsplit(url)
        port = parts.port or DEFAULT_HTTPS_PORT
    except ValueError as e:
        raise SecurityBlockedError(f"Malformed URL: {e}", url=url) from e

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise SecurityBlockedError("Only https URLs are allowed", url=url)
    if parts.username or parts.password:
        raise SecurityBlockedError("URLs with embedded credentials are not allowed", url=url)
    if not parts.hostname:
        raise SecurityBlockedError("URL has no host", url=url)

    hostname = parts.hostname.rstrip(".")
    literal = _literal_address(hostname)
    if literal is None:
        try:
            hostname = hostname.encode("idna").decode("ascii").lower()
        except UnicodeError as e:
            raise SecurityBlockedError("Invalid hostname", url=url) from e
    else:
        hostname = literal

    path = parts.path or "/"
    if parts.query:
        path = f"{path}?{parts.query}"

    target = ParsedTarget(
        url=url,
        hostname=hostname,
        port=port,
        path=path,
        literal_address=literal,
    )
    if literal is not None:
        _ensure_public(target, [literal])
    return target


async def validate_url(url: str, resolver: Resolver = default_resolver) -> ValidatedTarget:
    """
    Validate a URL and resolve it to public addresses.

    Args:
        url: URL to validate
        resolver: Async resolver returning every address for a host

    Returns:
        ValidatedTarget: Hostname, port and validated addresses

    Raises:
        SecurityBlockedError: When any check fails
    """
    target = parse_target(url)

    if target.literal_address is not None:
        addresses = [target.literal_address]
    else:
        try:
            addresses = await resolver(target.hostname, target.port)
        except (OSError, UnicodeError) as e:
            logger.warning(
                f"{__name__}:validate_url - Resolution failed",
                extra={"hostname": target.hostname, "error_type": type(e).__name__},
            )
            raise SecurityBlockedError("Host could not be resolved", url=url) from e

        if not addresses:
            raise SecurityBlockedError("Host resolved to no addresses", url=url)
        _ensure_public(target, addresses)

    return ValidatedTarget(**target.model_dump(), addresses=addresses)
