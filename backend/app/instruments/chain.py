"""Option chain assembly: group option legs by strike and locate the ATM strike."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np

from .models import InstrumentRecord, InstrumentType


@dataclass(frozen=True, slots=True)
class ChainRow:
    """Call and put legs sharing one strike. Either leg may be missing."""

    strike: float
    call: InstrumentRecord | None = None
    put: InstrumentRecord | None = None

    def tokens(self) -> list[int]:
        return [leg.token for leg in (self.call, self.put) if leg is not None]


def build_option_chain(records: Iterable[InstrumentRecord]) -> list[ChainRow]:
    """Group CE/PE records into strike-sorted rows. Non-option records are ignored."""
    calls: dict[float, InstrumentRecord] = {}
    puts: dict[float, InstrumentRecord] = {}
    for record in records:
        if record.strike is None:
            continue
        if record.instrument_type == InstrumentType.CE:
            calls[record.strike] = record
        elif record.instrument_type == InstrumentType.PE:
            puts[record.strike] = record

    strikes = sorted(set(calls) | set(puts))
    return [ChainRow(strike=s, call=calls.get(s), put=puts.get(s)) for s in strikes]


def leg_tokens(rows: Iterable[ChainRow]) -> list[int]:
    """All leg tokens of a chain, in strike order."""
    return [token for row in rows for token in row.tokens()]


def atm_strike(strikes: Sequence[float], spot_price: float | None) -> float | None:
    """Strike closest to the spot price; ties go to the lower strike.

    None when there is no spot price yet or no strikes.
    """
    if spot_price is None or spot_price <= 0 or len(strikes) == 0:
        return None
    arr = np.sort(np.asarray(strikes, dtype=float))
    # argmin returns the first minimum, which is the lower strike on a tie
    return float(arr[int(np.argmin(np.abs(arr - spot_price)))])
