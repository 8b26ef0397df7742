"""Shared plumbing for neurons and networks."""

from __future__ import annotations

import itertools
from collections import defaultdict
from typing import TYPE_CHECKING, DefaultDict, Iterator, List

from .errors import InvalidArgumentError
from .types import Array, Signals

if TYPE_CHECKING:  # pragma: no cover
    from .connection import Connection

_COUNTERS: DefaultDict[str, Iterator[int]] = defaultdict(itertools.count)


def _next_name(kind: str) -> str:
    return f"{kind}_{next(_COUNTERS[kind])}"


class Node:
    """A unit of computation that connections can fire into.

    Subclasses provide ``input_size``, ``output_size``, ``cached_outputs`` and the
    two forms of ``fire``.  Connections register themselves on both endpoints
    when constructed; registering the same connection twice is a no-op.
    """

    def __init__(self, name: str | None = None) -> None:
        self.name = name or _next_name(type(self).__name__)
        self.inbound_connections: List["Connection"] = []
        self.outbound_connections: List["Connection"] = []
        self._adjust_arrivals = 0
        self._clear_arrivals = 0

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, "
            f"inbound={len(self.inbound_connections)}, "
            f"outbound={len(self.outbound_connections)})"
        )

    # ------------------------------------------------------------------
    # Wiring

    def add_inbound_connection(self, connection: "Connection") -> None:
        if connection is None:
            raise InvalidArgumentError("inbound connection is required")
        if not any(existing is connection for existing in self.inbound_connections):
            self.inbound_connections.append(connection)

    def add_outbound_connection(self, connection: "Connection") -> None:
        if connection is None:
            raise InvalidArgumentError("outbound connection is required")
        if not any(existing is connection for existing in self.outbound_connections):
            self.outbound_connections.append(connection)

    @property
    def is_input_node(self) -> bool:
        return not self.inbound_connections

    # ------------------------------------------------------------------
    # Firing protocol

    @property
    def input_size(self) -> int:
        raise NotImplementedError

    @property
    def output_size(self) -> int:
        raise NotImplementedError

    @property
    def cached_outputs(self) -> Array:
        raise NotImplementedError

    def fire(self, signal: float) -> None:
        """Receive one signal from an inbound connection."""

        raise NotImplementedError

    def fire_all(self, inputs: Signals) -> None:
        """Receive a full input vector directly, bypassing the fired check."""

        raise NotImplementedError

    def _all_inbound_fired(self) -> bool:
        return all(connection.is_fired for connection in self.inbound_connections)

    def _clear_inbound_fired(self) -> None:
        for connection in self.inbound_connections:
            connection.clear_fire()

    # ------------------------------------------------------------------
    # Training cascades

    def _last_arrival(self, counter: str) -> bool:
        """Count one cascade arrival and report whether every inbound edge has arrived.

        Nodes without inbound connections are driven directly and act on every call.
        """

        expected = len(self.inbound_connections)
        if expected == 0:
            return True
        arrived = getattr(self, counter) + 1
        if arrived < expected:
            setattr(self, counter, arrived)
            return False
        setattr(self, counter, 0)
        return True

    def reset(self) -> None:
        """Drop transient per-pass state left behind by an interrupted cascade."""

        self._reset_state()

    def _reset_state(self) -> None:
        self._adjust_arrivals = 0
        self._clear_arrivals = 0


__all__ = ["Node"]
