"""Configuration and authorisation rules of a multisig backed by a group."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from .common import ContractError, Duration, InvalidAddress, Unauthorized, validate_addr


class InvalidGroup(ContractError):
    template = "Group contract invalid address '{0}'"


class NotOpen(ContractError):
    template = "Proposal is not open"


class Expired(ContractError):
    template = "Proposal voting period has expired"


class NotExpired(ContractError):
    template = "Proposal must expire before you can close it"


class WrongExpiration(ContractError):
    template = "Wrong expiration option"


class AlreadyVoted(ContractError):
    template = "Already voted on this proposal"


class WrongExecuteStatus(ContractError):
    template = "Proposal must have passed and not yet been executed"


class WrongCloseStatus(ContractError):
    template = "Cannot close completed or passed proposals"


class _MemberQuery(Protocol):
    def member(self, addr: str, at_height: Optional[int] = None) -> Optional[int]: ...


class ExecutorKind(enum.Enum):
    """Who may execute proposals once they have passed."""

    MEMBER = "member"
    ONLY = "only"


@dataclass(frozen=True)
class Executor:
    """An executor rule: any group member, or one given address."""

    kind: ExecutorKind
    addr: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind is ExecutorKind.ONLY and self.addr is None:
            raise ValueError("an 'only' executor needs an address")
        if self.kind is ExecutorKind.MEMBER and self.addr is not None:
            raise ValueError("a 'member' executor takes no address")

    @classmethod
    def member(cls) -> "Executor":
        """Any member of the voting group, even with zero weight."""
        return cls(ExecutorKind.MEMBER)

    @classmethod
    def only(cls, addr: str) -> "Executor":
        """Only the given address."""
        return cls(ExecutorKind.ONLY, validate_addr(addr))


@dataclass(frozen=True)
class FlexConfig:
    """Settings of a multisig whose voters and weights come from a group contract.

    ``executor`` of ``None`` lets anyone execute passed proposals.
    """

    group_addr: str
    max_voting_period: Duration
    threshold: Any = None
    executor: Optional[Executor] = None

    def __post_init__(self) -> None:
        try:
            validate_addr(self.group_addr)
        except InvalidAddress:
            raise InvalidGroup(self.group_addr) from None

    def authorize(self, group: _MemberQuery, sender: str) -> None:
        """Raise ``Unauthorized`` unless ``sender`` may execute passed proposals."""
        if self.executor is None:
            return
        if self.executor.kind is ExecutorKind.MEMBER:
            if group.member(sender) is None:
                raise Unauthorized()
        elif self.executor.addr != sender:
            raise Unauthorized()

    def check_hook_sender(self, sender: str) -> None:
        """Only the group contract itself may deliver membership-change hooks."""
        if sender != self.group_addr:
            raise Unauthorized()