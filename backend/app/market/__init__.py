"""Market data subsystem.

Public API:
    Tick                 - Immutable tick snapshot dataclass
    PriceEmission        - A spot price published by a reconciliation session
    TickCache            - Thread-safe in-memory tick store
    MarketDataSource     - Abstract interface for market-data gateways
    SimulatorDataSource  - GBM-driven gateway for development and tests
    SubscriptionManager  - Keeps subscriptions equal to a required token set
    SubscriptionRegistry - Reference-counted source shared by many views
    ReconciliationSession - Throttled, de-duplicated spot price loop
    ChainView            - One consumer's chain, subscriptions and spot session
    create_stream_router - FastAPI router factory for the spot endpoints
"""

from .cache import TickCache
from .interface import MarketDataSource
from .models import PriceEmission, SubscriptionDelta, Tick
from .reconciler import PriceStream, ReconciliationSession, SessionState
from .simulator import SimulatorDataSource
from .stream import create_stream_router
from .subscriptions import SubscriptionManager, SubscriptionRegistry, required_tokens
from .view import ChainView

__all__ = [
    "ChainView",
    "MarketDataSource",
    "PriceEmission",
    "PriceStream",
    "ReconciliationSession",
    "SessionState",
    "SimulatorDataSource",
    "SubscriptionDelta",
    "SubscriptionManager",
    "SubscriptionRegistry",
    "Tick",
    "TickCache",
    "create_stream_router",
    "required_tokens",
]
