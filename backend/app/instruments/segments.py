"""Market segment classification."""

from __future__ import annotations

# Derivatives segment -> cash equity segment of the same exchange group
EQUITY_SEGMENTS: dict[str, str] = {
    "NFO-OPT": "NSE",
    "NFO-FUT": "NSE",
    "BFO-OPT": "BSE",
    "BFO-FUT": "BSE",
}

COMMODITY_EXCHANGES: frozenset[str] = frozenset({"MCX", "NCO"})


def equity_segment_for(segment: str) -> str | None:
    """The equity segment a derivatives segment settles against, if any."""
    return EQUITY_SEGMENTS.get(segment.strip().upper())


def is_commodity_segment(segment: str) -> bool:
    """True for segments on a commodity exchange (MCX-OPT, MCX-FUT, NCO-OPT, ...)."""
    exchange = segment.strip().upper().split("-", 1)[0]
    return exchange in COMMODITY_EXCHANGES


def futures_segment_for(segment: str) -> str:
    """The futures segment of the exchange a segment belongs to (MCX-OPT -> MCX-FUT)."""
    exchange = segment.strip().upper().split("-", 1)[0]
    return f"{exchange}-FUT"
