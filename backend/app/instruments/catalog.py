"""Instrument catalog query interface and an in-memory implementation."""

from __future__ import annotations

import csv
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from .errors import CatalogError
from .models import InstrumentRecord, InstrumentType

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CatalogQuery:
    """Equality filters, an inclusive expiry lower bound, and ordering.

    Unset (None) filters match everything.
    """

    tradingsymbol: str | None = None
    name: str | None = None
    segment: str | None = None
    exchange: str | None = None
    instrument_type: InstrumentType | None = None
    expiry: date | None = None
    expiry_from: date | None = None
    sort_by_expiry: bool = False
    limit: int | None = None

    def matches(self, record: InstrumentRecord) -> bool:
        if self.tradingsymbol is not None and record.tradingsymbol != self.tradingsymbol:
            return False
        if self.name is not None and record.name != self.name:
            return False
        if self.segment is not None and record.segment != self.segment:
            return False
        if self.exchange is not None and record.exchange != self.exchange:
            return False
        if self.instrument_type is not None and record.instrument_type != self.instrument_type:
            return False
        if self.expiry is not None and record.expiry != self.expiry:
            return False
        if self.expiry_from is not None and (record.expiry is None or record.expiry < self.expiry_from):
            return False
        return True


class InstrumentCatalog(ABC):
    """Read-only store of instrument records.

    Implementations raise CatalogError when the backing store cannot be
    queried. An empty result is not an error.
    """

    @abstractmethod
    async def find(self, query: CatalogQuery) -> list[InstrumentRecord]:
        """All records matching the query, ordered as requested."""

    async def find_one(self, query: CatalogQuery) -> InstrumentRecord | None:
        """The first record matching the query, or None."""
        records = await self.find(query)
        return records[0] if records else None


class MemoryCatalog(InstrumentCatalog):
    """Catalog held in memory, typically loaded from a broker instruments dump."""

    def __init__(self, records: Iterable[InstrumentRecord] = ()) -> None:
        self._records: list[InstrumentRecord] = list(records)

    async def find(self, query: CatalogQuery) -> list[InstrumentRecord]:
        results = [r for r in self._records if query.matches(r)]
        if query.sort_by_expiry:
            # Records without an expiry sort last
            results.sort(key=lambda r: (r.expiry is None, r.expiry or date.max))
        if query.limit is not None:
            results = results[: query.limit]
        return results

    def add(self, record: InstrumentRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    @classmethod
    def from_csv(cls, path: str | Path) -> MemoryCatalog:
        """Load a Kite-style instruments CSV.

        Expected columns: instrument_token, tradingsymbol, name, expiry,
        strike, lot_size, instrument_type, segment, exchange. Rows that
        cannot be parsed are skipped.
        """
        records: list[InstrumentRecord] = []
        skipped = 0
        try:
            with open(path, newline="", encoding="utf-8") as f:
                for row in csv.DictReader(f):
                    record = _parse_row(row)
                    if record is None:
                        skipped += 1
                        continue
                    records.append(record)
        except OSError as e:
            raise CatalogError(f"Cannot read instruments file {path}: {e}") from e

        if skipped:
            logger.warning("Skipped %d unparseable instrument rows in %s", skipped, path)
        logger.info("Loaded %d instruments from %s", len(records), path)
        return cls(records)


def _parse_row(row: dict[str, str]) -> InstrumentRecord | None:
    try:
        segment = row["segment"].strip()
        raw_type = row["instrument_type"].strip().upper()
        # Kite lists indices under segment INDICES with type EQ
        if segment == "INDICES":
            instrument_type = InstrumentType.INDEX
        else:
            instrument_type = InstrumentType(raw_type)

        expiry_raw = (row.get("expiry") or "").strip()
        strike_raw = (row.get("strike") or "").strip()
        lot_raw = (row.get("lot_size") or "").strip()
        strike = float(strike_raw) if strike_raw else None

        return InstrumentRecord(
            token=int(row["instrument_token"]),
            tradingsymbol=row["tradingsymbol"].strip(),
            name=(row.get("name") or "").strip().strip('"'),
            exchange=row["exchange"].strip(),
            segment=segment,
            instrument_type=instrument_type,
            expiry=date.fromisoformat(expiry_raw) if expiry_raw else None,
            strike=strike if strike else None,
            lot_size=int(float(lot_raw)) if lot_raw else 1,
        )
    except (KeyError, ValueError, AttributeError) as e:
        logger.debug("Bad instrument row %r: %s", row, e)
        return None
