# backend/answer_engine/core/security.py
import ipaddress
import socket
from urllib.parse import urlparse

# Cloud metadata endpoint, blocked even if a resolver reports it as public
METADATA_IP = "169.254.169.254"


def validate_url(url: str) -> None:
    """
    Validate URL is safe to fetch. Raises ValueError if not.

    Blocks:
    - Non-http/https schemes
    - URLs without a hostname
    - Private IP ranges (10.x, 172.16-31.x, 192.168.x)
    - Localhost and loopback addresses
    - Link-local addresses
    - Reserved addresses
    - Cloud metadata endpoints (169.254.169.254)

    Performs a blocking DNS lookup; call it off the event loop.
    """
    parsed = urlparse(url)

    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Invalid URL scheme: {parsed.scheme}. Only http/https allowed.")

    if not parsed.hostname:
        raise ValueError("URL must have a hostname")

    hostname = parsed.hostname.lower()

    try:
        ip_str = socket.gethostbyname(hostname)
        ip = ipaddress.ip_address(ip_str)
    except socket.gaierror:
        raise ValueError(f"Cannot resolve hostname: {hostname}")

    if str(ip) == METADATA_IP:
        raise ValueError("Blocked: cloud metadata endpoint")
    if ip.is_private:
        raise ValueError(f"Blocked: private IP range ({ip})")
    if ip.is_loopback:
        raise ValueError(f"Blocked: loopback address ({ip})")
    if ip.is_link_local:
        raise ValueError(f"Blocked: link-local address ({ip})")
    if ip.is_reserved:
        raise ValueError(f"Blocked: reserved address ({ip})")
