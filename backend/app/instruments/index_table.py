"""Static table of index underlyings and their pre-registered spot tokens."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class IndexEntry:
    tradingsymbol: str
    exchange: str
    token: int | None = None  # None until a feed token is registered


# Keyed by the underlying name used in the derivatives segment
INDEX_TABLE: dict[str, IndexEntry] = {
    "NIFTY": IndexEntry("NIFTY 50", "NSE", 256265),
    "BANKNIFTY": IndexEntry("NIFTY BANK", "NSE", 260105),
    "FINNIFTY": IndexEntry("NIFTY FIN SERVICE", "NSE", 257801),
    "MIDCPNIFTY": IndexEntry("NIFTY MID SELECT", "NSE", 288009),
    "NIFTYNXT50": IndexEntry("NIFTY NEXT 50", "NSE", 270857),
    "SENSEX": IndexEntry("SENSEX", "BSE", 265),
    "BANKEX": IndexEntry("BANKEX", "BSE", 274441),
    "SENSEX50": IndexEntry("SNSX50", "BSE"),
}
