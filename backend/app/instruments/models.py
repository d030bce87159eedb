"""Instrument records and resolved spot instruments."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class InstrumentType(str, Enum):
    EQ = "EQ"
    FUT = "FUT"
    CE = "CE"
    PE = "PE"
    INDEX = "INDEX"


class SpotType(str, Enum):
    """How a spot reference instrument was found."""

    INDEX = "index"
    STOCK = "stock"
    COMMODITY_FUTURE = "commodity_future"


@dataclass(frozen=True, slots=True)
class InstrumentRecord:
    """One row of the instrument catalog. Never mutated once loaded."""

    token: int
    tradingsymbol: str
    name: str
    exchange: str
    segment: str
    instrument_type: InstrumentType
    expiry: date | None = None
    strike: float | None = None
    lot_size: int = 1

    @property
    def is_option(self) -> bool:
        return self.instrument_type in (InstrumentType.CE, InstrumentType.PE)


@dataclass(frozen=True, slots=True)
class SpotInstrumentInfo:
    """The instrument whose ticks stand in for an underlying's spot price.

    Indices are not tradable, so they carry no lot size.
    """

    token: int
    type: SpotType
    tradingsymbol: str
    exchange: str
    lot_size: int | None = None

    def to_dict(self) -> dict:
        """Serialize for JSON; lot_size is omitted when unknown."""
        result = {
            "token": self.token,
            "type": self.type.value,
            "tradingsymbol": self.tradingsymbol,
            "exchange": self.exchange,
        }
        if self.lot_size is not None:
            result["lot_size"] = self.lot_size
        return result
