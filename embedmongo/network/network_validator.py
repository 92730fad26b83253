"""
Network Helpers for Embedded MongoDB

Loopback address lookup, free port discovery and TCP reachability checks
used when binding and probing the embedded MongoDB process.
"""
import socket
from typing import Optional


LOOPBACK_ADDRESS = "127.0.0.1"


def get_loopback_address() -> str:
    """Get the host's loopback address."""
    return LOOPBACK_ADDRESS


def get_free_server_port(host: Optional[str] = None) -> int:
    """
    Ask the operating system for a free local server port.

    Args:
        host: Address to bind the probe socket to (default: loopback)

    Returns:
        A port number that was free at the time of the call

    Raises:
        OSError: If no port could be obtained
    """
    bind_host = host or LOOPBACK_ADDRESS
    family = socket.AF_INET6 if ":" in bind_host else socket.AF_INET
    with socket.socket(family, socket.SOCK_STREAM) as sock:
        sock.bind((bind_host, 0))
        return sock.getsockname()[1]


def check_port_reachable(host: str, port: int, timeout: float = 1.0) -> bool:
    """
    Check if something accepts TCP connections on host:port.

    Args:
        host: Hostname or address
        port: Port number to test
        timeout: Connection timeout in seconds

    Returns:
        True if a connection could be established, False otherwise
    """
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False
