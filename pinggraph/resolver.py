"""Turn a user-entered address string into one concrete endpoint."""

import ipaddress
import logging
import re
import socket

from pinggraph.models import InvalidAddressError, ResolutionFailedError

logger = logging.getLogger(__name__)

_LABEL_PATTERN = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
_MAX_HOSTNAME_LENGTH = 253


def validate_hostname(host: str) -> str:
    """Check that host is a syntactically valid hostname (pure function).

    Unicode hostnames are IDNA-encoded first, so "bücher.example" passes and
    comes back as its ASCII form.

    Args:
        host: Stripped, non-empty address string that is not an IP literal

    Returns:
        ASCII hostname suitable for the system resolver

    Raises:
        InvalidAddressError: If the string cannot be a hostname
    """
    try:
        ascii_host = host.encode("idna").decode("ascii")
    except UnicodeError:
        raise InvalidAddressError(f"Invalid address: {host}") from None

    # A single trailing dot marks a fully qualified name
    name = ascii_host[:-1] if ascii_host.endswith(".") else ascii_host
    if not name or len(name) > _MAX_HOSTNAME_LENGTH:
        raise InvalidAddressError(f"Invalid address: {host}")

    for label in name.split("."):
        if not _LABEL_PATTERN.match(label):
            raise InvalidAddressError(f"Invalid address: {host}")

    return ascii_host


def resolve_address(address: str) -> str:
    """Resolve an address string to a single IP address.

    IP literals are returned without touching DNS. Hostnames are validated
    and then looked up with socket.getaddrinfo; the first result in resolver
    order wins.

    Args:
        address: Arbitrary user input

    Returns:
        IP address string (IPv4 or IPv6)

    Raises:
        InvalidAddressError: If the string cannot be parsed into a host
        ResolutionFailedError: If the resolver returns no endpoint

    Examples:
        >>> resolve_address("8.8.8.8")
        '8.8.8.8'
        >>> resolve_address("!!!")
        Traceback (most recent call last):
        ...
        pinggraph.models.InvalidAddressError: Invalid address: !!!
    """
    host = address.strip()
    if not host:
        raise InvalidAddressError("Invalid address: (empty)")

    try:
        return str(ipaddress.ip_address(host))
    except ValueError:
        pass

    ascii_host = validate_hostname(host)

    try:
        results = socket.getaddrinfo(ascii_host, None)
    except (socket.gaierror, UnicodeError, OSError) as e:
        logger.debug("Resolution failed: host=%s, error=%s", ascii_host, e)
        raise ResolutionFailedError(f"Could not resolve address: {host} ({e})") from e

    if not results:
        raise ResolutionFailedError(f"Could not resolve address: {host}")

    # (family, type, proto, canonname, sockaddr); sockaddr[0] is the IP
    endpoint = results[0][4][0]
    logger.debug("Resolved: host=%s, endpoint=%s", ascii_host, endpoint)
    return endpoint
