# rangeblock/core/ranges/selector.py
from schemas.ranges import FilterSelector


def _same(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def matches(selector: FilterSelector, region: str, service: str) -> bool:
    """
    Decide whether an entry with the given region/service is selected.

    Comparison is case-insensitive. An empty selector field ignores that
    dimension. A selector with both fields empty is an open filter and selects
    every entry; this is intentional, a blocker configured without region or
    service tracks the provider's whole address space.
    """
    want_region = selector.region
    want_service = selector.service

    if want_region and want_service:
        return _same(want_region, region) and _same(want_service, service)
    if want_service:
        return _same(want_service, service)
    if want_region:
        return _same(want_region, region)
    return True
