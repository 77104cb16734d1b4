# rangeblock/core/ranges/table.py
import ipaddress
import logging
import threading
from typing import Optional, Union

from .snapshot import Snapshot, EMPTY_SNAPSHOT, IPAddress

logger = logging.getLogger(f"rangeblock.{__name__}")


def parse_ip(value: Union[str, IPAddress, None]) -> Optional[IPAddress]:
    """
    Parse an address, unwrapping IPv4-mapped IPv6 addresses (::ffff:a.b.c.d).
    Returns None for anything that is not an IP address.
    """
    if value is None:
        return None
    if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        ip = value
    else:
        try:
            ip = ipaddress.ip_address(str(value).strip())
        except ValueError:
            return None
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


class RangeTable:
    """
    Holds the current Snapshot for concurrent readers.

    One writer (the refresh loop) replaces the snapshot wholesale; readers grab
    the current reference once and scan it without taking a lock, so lookups
    never wait on each other and never see a mix of two snapshots.
    """
    def __init__(self, initial: Optional[Snapshot] = None):
        self._snapshot: Snapshot = initial if initial is not None else EMPTY_SNAPSHOT
        self._write_lock = threading.Lock()

    @property
    def current(self) -> Snapshot:
        return self._snapshot

    def __len__(self) -> int:
        return len(self._snapshot)

    def replace(self, snapshot: Snapshot) -> Snapshot:
        """
        Install `snapshot` as current. Returns the snapshot it replaced.
        """
        if not isinstance(snapshot, Snapshot):
            raise TypeError(f"Expected Snapshot, got {type(snapshot).__name__}")
        with self._write_lock:
            previous = self._snapshot
            self._snapshot = snapshot
        logger.info(f"Range table replaced: {len(previous)} -> {len(snapshot)} ranges "
                    f"(syncToken={snapshot.sync_token})")
        return previous

    def lookup(self, ip: Union[str, IPAddress, None]) -> bool:
        """
        True iff `ip` lies in any range of the current snapshot.
        Unparseable input never matches.
        """
        address = parse_ip(ip)
        if address is None:
            return False
        snapshot = self._snapshot
        return snapshot.contains(address)
