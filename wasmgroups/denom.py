"""Staking denominations, payment checks and weight calculation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from .common import Coin, ContractError


class NothingToClaim(ContractError):
    template = "No claims that can be released currently"


class MissingDenom(ContractError):
    template = "Must send '{0}' to stake"


class ExtraDenoms(ContractError):
    template = "Sent unsupported denoms, must send '{0}' to stake"


class InvalidDenom(ContractError):
    template = "Must send valid address to stake"


class MixedNativeAndCw20(ContractError):
    template = "Missed address or denom"


class NoFunds(ContractError):
    template = "No funds sent"


@dataclass(frozen=True)
class NativeDenom:
    """A native chain coin, named by its denom."""

    denom: str


@dataclass(frozen=True)
class Cw20Denom:
    """A token contract, named by its address."""

    address: str


Denom = Union[NativeDenom, Cw20Denom]


@dataclass(frozen=True)
class Cw20Balance:
    """Tokens received from a token contract."""

    address: str
    amount: int


Balance = Union[Sequence[Coin], Cw20Balance]


def must_pay_funds(funds: Sequence[Coin], denom: str) -> int:
    """Return the amount paid, requiring exactly one coin of ``denom``."""
    if not funds:
        raise NoFunds()
    if len(funds) > 1:
        raise ExtraDenoms(denom)
    (coin,) = funds
    if coin.denom != denom:
        raise MissingDenom(denom)
    return coin.amount


def bonded_amount(denom: Denom, balance: Balance) -> int:
    """Amount a payment contributes to the stake, checked against the staking denom."""
    if isinstance(denom, NativeDenom) and not isinstance(balance, Cw20Balance):
        return must_pay_funds(balance, denom.denom)
    if isinstance(denom, Cw20Denom) and isinstance(balance, Cw20Balance):
        if balance.address != denom.address:
            raise InvalidDenom(denom.address)
        return balance.amount
    raise MixedNativeAndCw20("Invalid address or denom")


def calc_weight(stake: int, min_bond: int, tokens_per_weight: int) -> Optional[int]:
    """Membership weight of a stake, or ``None`` below the minimum bond."""
    if stake < min_bond:
        return None
    return stake // tokens_per_weight