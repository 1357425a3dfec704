"""Typed toggle lifecycle for a single favorite identifier.

``Idle -> Pending(previous) -> Committed(value) | Reverted(previous)``

The ``Pending`` entry doubles as the per-identifier loading flag: while an
identifier is pending, further toggles for it are ignored.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Pending:
    previous: bool
    started_at: float = field(default_factory=time.monotonic)

    @property
    def target(self) -> bool:
        return not self.previous


@dataclass(frozen=True)
class Committed:
    value: bool


@dataclass(frozen=True)
class Reverted:
    value: bool


ToggleState = Idle | Pending | Committed | Reverted

IDLE = Idle()


class ToggleStates:
    """Table of toggle states keyed by product identifier."""

    def __init__(self) -> None:
        self._states: dict[str, ToggleState] = {}

    def state(self, product_id: str) -> ToggleState:
        return self._states.get(product_id, IDLE)

    def is_pending(self, product_id: str) -> bool:
        return isinstance(self._states.get(product_id), Pending)

    def begin(self, product_id: str, previous: bool) -> Pending:
        if self.is_pending(product_id):
            raise RuntimeError(f"Toggle already pending for {product_id!r}")
        pending = Pending(previous=previous)
        self._states[product_id] = pending
        return pending

    def _require_pending(self, product_id: str) -> Pending:
        current = self._states.get(product_id)
        if not isinstance(current, Pending):
            raise RuntimeError(f"No pending toggle for {product_id!r}")
        return current

    def commit(self, product_id: str) -> Committed:
        pending = self._require_pending(product_id)
        committed = Committed(value=pending.target)
        self._states[product_id] = committed
        return committed

    def revert(self, product_id: str) -> Reverted:
        pending = self._require_pending(product_id)
        reverted = Reverted(value=pending.previous)
        self._states[product_id] = reverted
        return reverted

    def release(self, product_id: str) -> None:
        self._states.pop(product_id, None)

    def pending_ids(self) -> list[str]:
        return [
            product_id
            for product_id, state in self._states.items()
            if isinstance(state, Pending)
        ]


__all__ = [
    "Committed",
    "IDLE",
    "Idle",
    "Pending",
    "Reverted",
    "ToggleState",
    "ToggleStates",
]
