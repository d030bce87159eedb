"""Instrument catalog and spot instrument resolution.

Public API:
    InstrumentRecord    - Immutable catalog row
    SpotInstrumentInfo  - Resolved spot reference instrument
    InstrumentCatalog   - Abstract catalog query interface
    MemoryCatalog       - In-memory catalog, loadable from an instruments CSV
    SpotResolver        - Priority-ordered spot instrument resolution
    LookupFailure       - Raised when resolution fails for a reason other than "not found"
"""

from .catalog import CatalogQuery, InstrumentCatalog, MemoryCatalog
from .chain import ChainRow, atm_strike, build_option_chain, leg_tokens
from .errors import CatalogError, LookupFailure
from .models import InstrumentRecord, InstrumentType, SpotInstrumentInfo, SpotType
from .resolver import SpotResolver

__all__ = [
    "CatalogError",
    "CatalogQuery",
    "ChainRow",
    "InstrumentCatalog",
    "InstrumentRecord",
    "InstrumentType",
    "LookupFailure",
    "MemoryCatalog",
    "SpotInstrumentInfo",
    "SpotResolver",
    "SpotType",
    "atm_strike",
    "build_option_chain",
    "leg_tokens",
]
