"""Failures raised by the instrument layer."""

from __future__ import annotations


class CatalogError(Exception):
    """The instrument catalog could not answer a query."""


class LookupFailure(Exception):
    """Spot resolution could not complete because a catalog query failed.

    Distinct from "not found": the caller may retry.
    """

    def __init__(self, underlying: str, segment: str, reason: str = "") -> None:
        self.underlying = underlying
        self.segment = segment
        message = f"Spot lookup failed for {underlying} ({segment})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
