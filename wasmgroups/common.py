"""Shared value types, chain messages and errors used by the group contracts."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Optional, Union


class ContractError(Exception):
    """Base class of every error raised by a contract call.

    Two errors are equal when they have the same type and the same arguments.
    """

    template: ClassVar[Optional[str]] = None

    def __str__(self) -> str:
        if self.template is None:
            return super().__str__()
        return self.template.format(*self.args)

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.args == other.args  # type: ignore[union-attr]

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class Unauthorized(ContractError):
    template = "Unauthorized"


class NotAdmin(ContractError):
    template = "Caller is not admin"


class HookAlreadyRegistered(ContractError):
    template = "Given address already registered as a hook"


class HookNotRegistered(ContractError):
    template = "Given address not registered as a hook"


class InvalidAddress(ContractError):
    template = "Invalid address '{0}'"


class OverflowError(ContractError):  # noqa: A001 - mirrors the chain's error name
    """Arithmetic overflow: ``OverflowError(operation, operand1, operand2)``."""

    template = "Cannot {0} with {1} and {2}"


def validate_addr(addr: str) -> str:
    """Return ``addr`` if it is a well-formed, normalised address, else raise."""
    if (
        not isinstance(addr, str)
        or len(addr) < 3
        or addr != addr.lower()
        or addr != addr.strip()
    ):
        raise InvalidAddress(addr)
    return addr


def _to_binary(payload: Any) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode()


@dataclass(frozen=True)
class BlockInfo:
    """The block a call is executed in; ``time`` is in seconds."""

    height: int = 12_345
    time: int = 1_571_797_419
    chain_id: str = "cosmos-testnet-14002"

    def advance(self, blocks: int = 1, seconds: Optional[int] = None) -> "BlockInfo":
        """Return the block ``blocks`` later; ``seconds`` defaults to five per block."""
        if seconds is None:
            seconds = 5 * blocks
        return replace(self, height=self.height + blocks, time=self.time + seconds)


@dataclass(frozen=True)
class Expiration:
    """A point at a block height, at a time, or never (neither set)."""

    height: Optional[int] = None
    time: Optional[int] = None

    def __post_init__(self) -> None:
        if self.height is not None and self.time is not None:
            raise ValueError("an expiration is either a height or a time, not both")

    @classmethod
    def never(cls) -> "Expiration":
        return cls()

    def is_expired(self, block: BlockInfo) -> bool:
        if self.height is not None:
            return block.height >= self.height
        if self.time is not None:
            return block.time >= self.time
        return False


@dataclass(frozen=True)
class Duration:
    """A span counted either in blocks or in seconds."""

    blocks: Optional[int] = None
    seconds: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.blocks is None) == (self.seconds is None):
            raise ValueError("a duration needs exactly one of blocks or seconds")

    def after(self, block: BlockInfo) -> Expiration:
        if self.blocks is not None:
            return Expiration(height=block.height + self.blocks)
        return Expiration(time=block.time + self.seconds)  # type: ignore[operator]


@dataclass(frozen=True)
class Coin:
    amount: int
    denom: str


@dataclass(frozen=True)
class BankSend:
    """Send native coins to an address."""

    to_address: str
    amount: tuple[Coin, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", tuple(self.amount))


@dataclass(frozen=True)
class WasmExecute:
    """Call another contract with a JSON-encoded message."""

    contract_addr: str
    msg: bytes
    funds: tuple[Coin, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "funds", tuple(self.funds))


Message = Union[BankSend, WasmExecute]


@dataclass
class Response:
    """Outcome of an execute call: messages to dispatch and event attributes."""

    messages: list[Message] = field(default_factory=list)
    attributes: list[tuple[str, str]] = field(default_factory=list)

    def add_attribute(self, key: str, value: Any) -> "Response":
        self.attributes.append((key, str(value)))
        return self

    def add_message(self, message: Message) -> "Response":
        self.messages.append(message)
        return self


@dataclass(frozen=True)
class Member:
    addr: str
    weight: int

    def to_dict(self) -> dict[str, Any]:
        return {"addr": self.addr, "weight": self.weight}


@dataclass(frozen=True)
class MemberDiff:
    """Change of one member's weight; ``None`` means not a member."""

    key: str
    old: Optional[int]
    new: Optional[int]

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "old": self.old, "new": self.new}


@dataclass
class MemberChangedHookMsg:
    """Notification sent to hooks whenever membership changes."""

    diffs: list[MemberDiff] = field(default_factory=list)

    @classmethod
    def one(cls, diff: MemberDiff) -> "MemberChangedHookMsg":
        return cls([diff])

    def to_message(self, contract_addr: str) -> WasmExecute:
        payload = {"member_changed_hook": {"diffs": [d.to_dict() for d in self.diffs]}}
        return WasmExecute(contract_addr=contract_addr, msg=_to_binary(payload))