"""A membership group whose weights follow the tokens each member has bonded."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from .common import (
    BankSend,
    BlockInfo,
    Coin,
    ContractError,
    Duration,
    Member,
    MemberChangedHookMsg,
    MemberDiff,
    Message,
    OverflowError,
    Response,
    WasmExecute,
    validate_addr,
)
from .controllers import Admin, Claim, Claims, Hooks, SnapshotMap
from .denom import (
    Balance,
    Cw20Balance,
    Cw20Denom,
    Denom,
    NativeDenom,
    NothingToClaim,
    bonded_amount,
    calc_weight,
)

CONTRACT_NAME = "crates.io:cw4-stake"
CONTRACT_VERSION = "0.16.0"

DEFAULT_LIMIT = 10
MAX_LIMIT = 30


def _page_size(limit: Optional[int]) -> int:
    return min(DEFAULT_LIMIT if limit is None else limit, MAX_LIMIT)


def _optional_addr(addr: Optional[str]) -> Optional[str]:
    return validate_addr(addr) if addr is not None else None


@dataclass(frozen=True)
class StakedResponse:
    """Tokens currently bonded by an address, and their denomination."""

    stake: int
    denom: Denom


class StakeContract:
    """Members gain weight by bonding tokens and lose it by unbonding them."""

    def __init__(
        self,
        denom: Denom,
        tokens_per_weight: int,
        min_bond: int,
        unbonding_period: Duration,
        admin: Optional[str] = None,
    ) -> None:
        if tokens_per_weight <= 0:
            raise ValueError("tokens_per_weight must be positive")
        self.contract_name = CONTRACT_NAME
        self.contract_version = CONTRACT_VERSION
        self._admin = Admin(_optional_addr(admin))
        self._hooks = Hooks()
        self._claims = Claims()
        self.denom = denom
        self.tokens_per_weight = tokens_per_weight
        # a minimum bond of at least one token means zero stake is never membership
        self.min_bond = max(min_bond, 1)
        self.unbonding_period = unbonding_period
        self._members: SnapshotMap[str, int] = SnapshotMap()
        self._stake: dict[str, int] = {}
        self._total = 0

    # --- execute -----------------------------------------------------------

    def bond(self, sender: str, funds: Union[Sequence[Coin], Balance], block: BlockInfo) -> Response:
        """Bond the given payment and update the sender's weight."""
        amount = bonded_amount(self.denom, funds)
        new_stake = self._stake.get(sender, 0) + amount
        self._stake[sender] = new_stake

        response = Response()
        for message in self._update_membership(sender, new_stake, block.height):
            response.add_message(message)
        return (
            response.add_attribute("action", "bond")
            .add_attribute("amount", amount)
            .add_attribute("sender", sender)
        )

    def receive(
        self,
        sender: str,
        cw20_sender: str,
        amount: int,
        msg: Union[bytes, str],
        block: BlockInfo,
    ) -> Response:
        """Handle tokens forwarded by token contract ``sender`` for ``cw20_sender``."""
        try:
            decoded = json.loads(msg)
        except (ValueError, TypeError) as exc:
            raise ContractError(f"Error parsing into type ReceiveMsg: {exc}") from None
        if decoded != {"bond": {}}:
            raise ContractError("Error parsing into type ReceiveMsg: unknown variant")
        balance = Cw20Balance(address=sender, amount=amount)
        return self.bond(validate_addr(cw20_sender), balance, block)

    def unbond(self, sender: str, tokens: int, block: BlockInfo) -> Response:
        """Start unbonding ``tokens``; they can be claimed after the unbonding period."""
        if tokens < 0:
            raise ValueError("tokens must not be negative")
        current = self._stake.get(sender, 0)
        if tokens > current:
            raise OverflowError("Sub", current, tokens)
        new_stake = current - tokens
        self._stake[sender] = new_stake

        self._claims.create(sender, tokens, self.unbonding_period.after(block))

        response = Response()
        for message in self._update_membership(sender, new_stake, block.height):
            response.add_message(message)
        return (
            response.add_attribute("action", "unbond")
            .add_attribute("amount", tokens)
            .add_attribute("sender", sender)
        )

    def claim(self, sender: str, block: BlockInfo) -> Response:
        """Pay out every matured claim of ``sender``."""
        release = self._claims.claim_tokens(sender, block)
        if release == 0:
            raise NothingToClaim()

        message: Message
        if isinstance(self.denom, NativeDenom):
            amount_str = f"{release} {self.denom.denom}"
            message = BankSend(to_address=sender, amount=(Coin(release, self.denom.denom),))
        else:
            amount_str = f"{release} {self.denom.address}"
            transfer = {"transfer": {"recipient": sender, "amount": str(release)}}
            message = WasmExecute(
                contract_addr=self.denom.address,
                msg=json.dumps(transfer, separators=(",", ":")).encode(),
            )

        return (
            Response()
            .add_message(message)
            .add_attribute("action", "claim")
            .add_attribute("tokens", amount_str)
            .add_attribute("sender", sender)
        )

    def update_admin(self, sender: str, admin: Optional[str]) -> Response:
        return self._admin.update(sender, _optional_addr(admin))

    def add_hook(self, sender: str, addr: str) -> Response:
        return self._hooks.add(self._admin, sender, validate_addr(addr))

    def remove_hook(self, sender: str, addr: str) -> Response:
        return self._hooks.remove(self._admin, sender, validate_addr(addr))

    def _update_membership(self, sender: str, new_stake: int, height: int) -> list[WasmExecute]:
        new = calc_weight(new_stake, self.min_bond, self.tokens_per_weight)
        old = self._members.get(sender)
        if new == old:
            return []
        if new is not None:
            self._members.save(sender, new, height)
        else:
            self._members.remove(sender, height)
        self._total += (new or 0) - (old or 0)

        hook_msg = MemberChangedHookMsg.one(MemberDiff(sender, old, new))
        return self._hooks.prepare(hook_msg.to_message)

    # --- queries -----------------------------------------------------------

    def member(self, addr: str, at_height: Optional[int] = None) -> Optional[int]:
        """Weight of ``addr`` now, or at the start of block ``at_height``."""
        addr = validate_addr(addr)
        if at_height is None:
            return self._members.get(addr)
        return self._members.get_at_height(addr, at_height)

    def list_members(
        self, start_after: Optional[str] = None, limit: Optional[int] = None
    ) -> list[Member]:
        """Current members in address order, one page at a time."""
        start = _optional_addr(start_after)
        size = _page_size(limit)
        page: list[Member] = []
        for addr, weight in self._members.range(start):
            if len(page) >= size:
                break
            page.append(Member(addr, weight))
        return page

    def total_weight(self) -> int:
        return self._total

    def staked(self, addr: str) -> StakedResponse:
        addr = validate_addr(addr)
        return StakedResponse(stake=self._stake.get(addr, 0), denom=self.denom)

    def claims(self, addr: str) -> list[Claim]:
        return self._claims.query(validate_addr(addr))

    def admin(self) -> Optional[str]:
        return self._admin.admin

    def hooks(self) -> list[str]:
        return list(self._hooks.addresses)


__all__ = ["StakeContract", "StakedResponse", "Cw20Denom", "NativeDenom"]