"""
Network error helpers for the Redmine client.

This module turns low level ``urllib`` failures into readable messages
and recognises failures that usually mean the VPN/proxy is not up.
"""

import socket
import ssl
import urllib.error


def describe_url_error(error: Exception, timeout: float) -> str:
    """
    Describe a transport failure in one line.

    Args:
        error: The exception raised by ``urllib.request.urlopen``
        timeout: Timeout that was used, in seconds

    Returns:
        Human readable error message

    Examples:
        >>> describe_url_error(urllib.error.URLError(socket.timeout()), 10)
        'Connection timeout after 10s'
    """
    if isinstance(error, urllib.error.HTTPError):
        return f"HTTP {error.code}: {error.reason}"

    reason = error.reason if isinstance(error, urllib.error.URLError) else error

    if isinstance(reason, socket.timeout):
        return f"Connection timeout after {timeout:g}s"
    if isinstance(reason, socket.gaierror):
        return f"DNS resolution failed: {reason}"
    if isinstance(reason, ssl.SSLError):
        return f"SSL certificate error: {reason}"
    if isinstance(reason, ConnectionRefusedError):
        return f"Connection refused: {reason}"
    if isinstance(reason, OSError):
        return f"Network error: {reason}"
    return str(reason)


def is_vpn_proxy_error(error_message: str) -> bool:
    """
    Determine if error is likely VPN/proxy related.

    Examples:
        >>> is_vpn_proxy_error("DNS resolution failed")
        True
        >>> is_vpn_proxy_error("HTTP 500: Internal Server Error")
        False
    """
    vpn_indicators = [
        'dns',
        'name resolution failed',
        'getaddrinfo failed',
        'connection refused',
        'timeout',
        'timed out',
        'network unreachable',
        'no route to host',
        'tunnel',
        'proxy',
        'vpn',
    ]

    error_lower = error_message.lower()
    return any(indicator in error_lower for indicator in vpn_indicators)


def format_connectivity_error(base_url: str, error_message: str) -> str:
    """
    Format a connectivity failure with hints for the user.

    Args:
        base_url: The Redmine URL that failed
        error_message: Message from ``describe_url_error``

    Returns:
        Multi-line error message
    """
    lines = [
        f"Could not reach Redmine at {base_url}",
        f"Error: {error_message}",
    ]

    if is_vpn_proxy_error(error_message):
        lines.append("")
        lines.append("This is often caused by a VPN/proxy that is not connected.")
        lines.append("Please check that you can open the Redmine site in your browser.")

    return "\n".join(lines)
