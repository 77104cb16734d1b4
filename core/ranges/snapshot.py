# rangeblock/core/ranges/snapshot.py
import ipaddress
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple, Union

from schemas.ranges import RangeDocument, FilterSelector
from .selector import matches

logger = logging.getLogger(f"rangeblock.{__name__}")

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]
IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class Snapshot:
    """
    An immutable, fully built set of network prefixes.
    Instances are only ever replaced as a whole, never modified.
    """
    __slots__ = ("_networks", "_sync_token", "_create_date", "_built_at")

    def __init__(self,
                 networks: Iterable[IPNetwork] = (),
                 sync_token: Optional[str] = None,
                 create_date: Optional[str] = None,
                 built_at: Optional[datetime] = None):
        object.__setattr__(self, "_networks", tuple(networks))
        object.__setattr__(self, "_sync_token", sync_token)
        object.__setattr__(self, "_create_date", create_date)
        object.__setattr__(self, "_built_at", built_at or datetime.now(timezone.utc))

    def __setattr__(self, name, value):
        raise AttributeError("Snapshot is immutable")

    @property
    def networks(self) -> Tuple[IPNetwork, ...]:
        return self._networks

    @property
    def sync_token(self) -> Optional[str]:
        return self._sync_token

    @property
    def create_date(self) -> Optional[str]:
        return self._create_date

    @property
    def built_at(self) -> datetime:
        return self._built_at

    def __len__(self) -> int:
        return len(self._networks)

    def __iter__(self):
        return iter(self._networks)

    def __repr__(self) -> str:
        return f"Snapshot(ranges={len(self._networks)}, sync_token={self._sync_token!r})"

    def contains(self, ip: IPAddress) -> bool:
        """Linear scan, stops at the first network containing `ip`."""
        for network in self._networks:
            # `in` is False across address families
            if ip in network:
                return True
        return False


EMPTY_SNAPSHOT = Snapshot()


def parse_cidr(text: str) -> Optional[IPNetwork]:
    """Parse CIDR text into a network, host bits masked off. None if malformed."""
    try:
        return ipaddress.ip_network(text.strip(), strict=False)
    except (ValueError, TypeError, AttributeError):
        return None


def build_snapshot(document: RangeDocument, selector: FilterSelector) -> Snapshot:
    """
    Build a snapshot from every entry of `document` selected by `selector`.

    Entries are visited once in document order. Entries whose CIDR text does not
    parse are dropped; upstream lists occasionally carry them and they are not
    an error. The snapshot is only constructed after the pass completes.
    """
    networks = []
    dropped = 0
    for entry in document.entries():
        network = parse_cidr(entry.cidr)
        if network is None:
            dropped += 1
            continue
        if matches(selector, entry.region, entry.service):
            networks.append(network)

    if dropped:
        logger.debug(f"Dropped {dropped} malformed prefix entries from document {document.sync_token}")

    return Snapshot(networks, sync_token=document.sync_token, create_date=document.create_date)
