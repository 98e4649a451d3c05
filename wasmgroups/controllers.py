"""Reusable state helpers: height-snapshotted maps, admin, hooks and claims."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Hashable, Iterator, Optional, TypeVar

from .common import (
    BlockInfo,
    Expiration,
    HookAlreadyRegistered,
    HookNotRegistered,
    NotAdmin,
    Response,
)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")
T = TypeVar("T")


class SnapshotMap(Generic[K, V]):
    """A map that remembers the value each key had at the start of every block."""

    def __init__(self) -> None:
        self._current: dict[K, V] = {}
        self._changelog: dict[K, dict[int, Optional[V]]] = {}

    def get(self, key: K) -> Optional[V]:
        return self._current.get(key)

    def get_at_height(self, key: K, height: int) -> Optional[V]:
        """Value of ``key`` at the start of block ``height``."""
        changes = self._changelog.get(key, {})
        later = [h for h in changes if h >= height]
        if later:
            return changes[min(later)]
        return self._current.get(key)

    def _record(self, key: K, height: int) -> None:
        # only the first change within a block keeps the pre-block value
        self._changelog.setdefault(key, {}).setdefault(height, self._current.get(key))

    def save(self, key: K, value: V, height: int) -> None:
        self._record(key, height)
        self._current[key] = value

    def remove(self, key: K, height: int) -> None:
        self._record(key, height)
        self._current.pop(key, None)

    def range(self, start_after: Optional[K] = None) -> Iterator[tuple[K, V]]:
        """Current entries in ascending key order, strictly after ``start_after``."""
        for key in sorted(self._current):  # type: ignore[type-var]
            if start_after is None or key > start_after:  # type: ignore[operator]
                yield key, self._current[key]


@dataclass
class Admin:
    """The single account allowed to change a contract; ``None`` means nobody."""

    admin: Optional[str] = None

    def is_admin(self, sender: str) -> bool:
        return self.admin is not None and self.admin == sender

    def assert_admin(self, sender: str) -> None:
        if not self.is_admin(sender):
            raise NotAdmin()

    def update(self, sender: str, new_admin: Optional[str]) -> Response:
        self.assert_admin(sender)
        self.admin = new_admin
        return (
            Response()
            .add_attribute("action", "update_admin")
            .add_attribute("admin", new_admin if new_admin is not None else "None")
            .add_attribute("sender", sender)
        )


@dataclass
class Hooks:
    """Addresses notified of changes, in registration order."""

    addresses: list[str] = field(default_factory=list)

    def add(self, admin: Admin, sender: str, addr: str) -> Response:
        admin.assert_admin(sender)
        if addr in self.addresses:
            raise HookAlreadyRegistered()
        self.addresses.append(addr)
        return (
            Response()
            .add_attribute("action", "add_hook")
            .add_attribute("hook", addr)
            .add_attribute("sender", sender)
        )

    def remove(self, admin: Admin, sender: str, addr: str) -> Response:
        admin.assert_admin(sender)
        if addr not in self.addresses:
            raise HookNotRegistered()
        self.addresses.remove(addr)
        return (
            Response()
            .add_attribute("action", "remove_hook")
            .add_attribute("hook", addr)
            .add_attribute("sender", sender)
        )

    def prepare(self, build: Callable[[str], T]) -> list[T]:
        """Build one message per registered hook."""
        return [build(addr) for addr in self.addresses]


@dataclass(frozen=True)
class Claim:
    amount: int
    release_at: Expiration


class Claims:
    """Tokens waiting to be released to their owners."""

    def __init__(self) -> None:
        self._claims: dict[str, list[Claim]] = {}

    def create(self, addr: str, amount: int, release_at: Expiration) -> None:
        self._claims.setdefault(addr, []).append(Claim(amount, release_at))

    def claim_tokens(self, addr: str, block: BlockInfo, cap: Optional[int] = None) -> int:
        """Release every matured claim (up to ``cap``) and return the total."""
        to_send = 0
        waiting: list[Claim] = []
        for claim in self._claims.get(addr, []):
            releasable = claim.release_at.is_expired(block) and (
                cap is None or to_send + claim.amount <= cap
            )
            if releasable:
                to_send += claim.amount
            else:
                waiting.append(claim)
        self._claims[addr] = waiting
        return to_send

    def query(self, addr: str) -> list[Claim]:
        return list(self._claims.get(addr, []))