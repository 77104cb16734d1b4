# rangeblock/schemas/ranges.py
from datetime import datetime
from typing import Optional, Tuple, Iterator

from pydantic import BaseModel, Field, ConfigDict, AliasChoices, field_validator

DEFAULT_SOURCE_URL = "https://ip-ranges.amazonaws.com/ip-ranges.json"


class PrefixEntry(BaseModel):
    """
    One raw entry of the published range list.
    The CIDR text is kept as-is; it is validated only when a snapshot is built.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    cidr: str = Field(
        "",
        validation_alias=AliasChoices("ip_prefix", "ipv6_prefix", "cidr"),
        description="Address prefix in CIDR notation, unvalidated",
    )
    region: str = Field("", description="Provider region the prefix belongs to")
    service: str = Field("", description="Provider service the prefix belongs to")

    @field_validator("cidr", "region", "service", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class RangeDocument(BaseModel):
    """
    A decoded range list as published by the provider.
    Exists only for the duration of one refresh cycle.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    sync_token: str = Field("", alias="syncToken", description="Publisher's version token for this document")
    create_date: str = Field("", alias="createDate", description="Publication timestamp, as published")
    prefixes: Tuple[PrefixEntry, ...] = Field(default_factory=tuple, description="IPv4 prefix entries")
    ipv6_prefixes: Tuple[PrefixEntry, ...] = Field(default_factory=tuple, description="IPv6 prefix entries")

    @field_validator("sync_token", "create_date", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("prefixes", "ipv6_prefixes", mode="before")
    @classmethod
    def _null_entries(cls, value):
        # null list -> no entries; null entry -> empty entry, dropped when building
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return [{} if item is None else item for item in value]
        return value

    def entries(self) -> Iterator[PrefixEntry]:
        """All entries in document order, IPv4 list first."""
        yield from self.prefixes
        yield from self.ipv6_prefixes


class FilterSelector(BaseModel):
    """
    Region/service selector. An empty field is a wildcard for that dimension;
    both empty selects every entry.
    """
    model_config = ConfigDict(frozen=True)

    region: str = Field("", description="Region to select, case-insensitive, empty = any")
    service: str = Field("", description="Service to select, case-insensitive, empty = any")

    @field_validator("region", "service", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class BlockerSettings(BaseModel):
    """Settings for the range blocker, mapped from the `blocker` config section."""
    source_url: str = Field(DEFAULT_SOURCE_URL, description="URL of the published range list")
    refresh_interval_seconds: float = Field(60.0, gt=0, description="Polling period")
    region: Optional[str] = Field("", description="Region selector, empty = any")
    service: Optional[str] = Field("", description="Service selector, empty = any")
    request_timeout_seconds: float = Field(10.0, gt=0, description="Transport timeout for one fetch")
    trust_forwarded_headers: bool = Field(True, description="Derive the client IP from X-Forwarded-For / X-Real-IP")

    def selector(self) -> FilterSelector:
        return FilterSelector(region=self.region, service=self.service)


class RefreshStatus(BaseModel):
    """
    Observable state of the refresh loop.
    """
    state: str = Field(..., description="Current loop state (idle, fetching, updating, skipping, stopped)")
    running: bool = Field(..., description="Whether the background loop is alive")
    validator: Optional[str] = Field(None, description="Cache validator (ETag) from the last response")
    range_count: int = Field(0, description="Number of ranges in the current snapshot")
    sync_token: Optional[str] = Field(None, description="Sync token of the current snapshot's document")
    create_date: Optional[str] = Field(None, description="Create date of the current snapshot's document")
    cycles: int = Field(0, description="Completed refresh cycles")
    failures: int = Field(0, description="Cycles that ended in a fetch error")
    last_success_at: Optional[datetime] = Field(None, description="Time of the last successful or not-modified fetch")
    last_failure_at: Optional[datetime] = Field(None, description="Time of the last failed fetch")
    last_error: Optional[str] = Field(None, description="Message of the last fetch error")
