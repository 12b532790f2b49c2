"""Broadcast channels for build products, server restarts and browser reloads."""

from __future__ import annotations

import enum
import json
import logging
import threading
import weakref
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from queue import Empty
from typing import Any, Generic, TypeVar

from .logger import TRACE

log = logging.getLogger(__name__)

T = TypeVar("T")


class _Receiver(Generic[T]):
    """One subscriber of a broadcast; keeps at most ``capacity`` pending values."""

    def __init__(self, cond: threading.Condition, capacity: int) -> None:
        self._cond = cond
        self._pending: deque[T] = deque(maxlen=capacity)

    def __len__(self) -> int:
        with self._cond:
            return len(self._pending)

    def _push(self, value: T) -> None:
        self._pending.append(value)

    def try_recv(self) -> T:
        """Return the oldest pending value or raise ``queue.Empty``."""
        with self._cond:
            if not self._pending:
                raise Empty
            return self._pending.popleft()

    def recv(self, timeout: float | None = None) -> T:
        """Block until a value arrives; raise ``queue.Empty`` on timeout."""
        with self._cond:
            if not self._cond.wait_for(lambda: bool(self._pending), timeout):
                raise Empty
            return self._pending.popleft()


class Broadcast(Generic[T]):
    """Delivers every sent value to all live subscribers.

    A subscriber that falls behind loses its oldest values once more than
    ``capacity`` are pending.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._cond = threading.Condition()
        self._receivers: weakref.WeakSet[_Receiver[T]] = weakref.WeakSet()

    def subscribe(self) -> _Receiver[T]:
        receiver: _Receiver[T] = _Receiver(self._cond, self.capacity)
        with self._cond:
            self._receivers.add(receiver)
        return receiver

    def send(self, value: T) -> int:
        """Send ``value``; return the number of receivers reached."""
        with self._cond:
            receivers = list(self._receivers)
            if not receivers:
                raise RuntimeError("channel has no receivers")
            for receiver in receivers:
                receiver._push(value)
            self._cond.notify_all()
            return len(receivers)


class OutcomeKind(enum.Enum):
    SUCCESS = "success"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """The result of one build step."""

    kind: OutcomeKind
    value: T | None = None

    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


_PRODUCT_KINDS = ("Server", "Front", "Style", "Assets", "None")


@dataclass(frozen=True)
class Product:
    """Something a build produced; a style product carries its name."""

    kind: str
    style: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in _PRODUCT_KINDS:
            raise ValueError(f"unknown product kind {self.kind!r}")
        if (self.kind == "Style") != (self.style is not None):
            raise ValueError("only a Style product carries a name")

    def __str__(self) -> str:
        return self.style if self.style is not None else self.kind


Product.SERVER = Product("Server")
Product.FRONT = Product("Front")
Product.ASSETS = Product("Assets")
Product.NONE = Product("None")


@dataclass(frozen=True)
class ProductSet:
    """The distinct products of successful build steps."""

    products: frozenset[Product] = field(default_factory=frozenset)

    @classmethod
    def empty(cls) -> ProductSet:
        return cls(frozenset())

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[Outcome[Product]]) -> ProductSet:
        return cls(
            frozenset(
                outcome.value
                for outcome in outcomes
                if outcome.is_success()
                and outcome.value is not None
                and outcome.value != Product.NONE
            )
        )

    def __len__(self) -> int:
        return len(self.products)

    def __iter__(self) -> Iterator[Product]:
        return iter(self.products)

    def is_empty(self) -> bool:
        return not self.products

    def only_style(self) -> bool:
        return len(self.products) == 1 and any(p.kind == "Style" for p in self.products)

    def contains(self, product: Product) -> bool:
        return product in self.products

    def contains_any(self, products: Iterable[Product]) -> bool:
        return any(product in self.products for product in products)

    def __str__(self) -> str:
        return ", ".join(sorted(str(product) for product in self.products))


class ServerRestart:
    """Signal that the server process must be restarted."""

    _channel: Broadcast[None] = Broadcast(1)

    @classmethod
    def subscribe(cls) -> _Receiver[None]:
        return cls._channel.subscribe()

    @classmethod
    def send(cls) -> None:
        log.log(TRACE, "Server restart sent")
        try:
            cls._channel.send(None)
        except RuntimeError as exc:
            log.error("Error could not send product changes due to %s", exc)


_RELOAD_KINDS = ("Full", "Style", "ViewPatches")


@dataclass(frozen=True)
class ReloadType:
    """What the browser has to reload; view patches carry their JSON."""

    kind: str
    data: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in _RELOAD_KINDS:
            raise ValueError(f"unknown reload kind {self.kind!r}")
        if (self.kind == "ViewPatches") != (self.data is not None):
            raise ValueError("only view patches carry data")


ReloadType.FULL = ReloadType("Full")
ReloadType.STYLE = ReloadType("Style")


class ReloadSignal:
    """Signal sent to connected browsers."""

    _channel: Broadcast[ReloadType] = Broadcast(1)

    @classmethod
    def _send(cls, reload: ReloadType, label: str) -> None:
        try:
            cls._channel.send(reload)
        except RuntimeError as exc:
            log.error('Error could not send reload "%s" due to: %s', label, exc)

    @classmethod
    def send_full(cls) -> None:
        cls._send(ReloadType.FULL, "Full")

    @classmethod
    def send_style(cls) -> None:
        cls._send(ReloadType.STYLE, "Style")

    @classmethod
    def send_view_patches(cls, patches: Any) -> None:
        try:
            data = json.dumps(patches)
        except (TypeError, ValueError) as exc:
            log.error('Error could not send reload "View Patches" due to: %s', exc)
            return
        cls._send(ReloadType("ViewPatches", data), "View Patches")

    @classmethod
    def subscribe(cls) -> _Receiver[ReloadType]:
        return cls._channel.subscribe()