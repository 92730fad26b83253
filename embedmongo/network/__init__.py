"""Network helpers for embedmongo."""

from .network_validator import (
    LOOPBACK_ADDRESS,
    check_port_reachable,
    get_free_server_port,
    get_loopback_address,
)

__all__ = [
    'LOOPBACK_ADDRESS',
    'check_port_reachable',
    'get_free_server_port',
    'get_loopback_address',
]
