"""A membership group whose weights are set directly by an admin."""

from __future__ import annotations

import json
from typing import Iterable, Optional, Sequence

from .common import (
    Member,
    MemberChangedHookMsg,
    MemberDiff,
    Response,
    WasmExecute,
    validate_addr,
)
from .controllers import Admin, Hooks, SnapshotMap

CONTRACT_NAME = "crates.io:cw4-group"
CONTRACT_VERSION = "0.16.0"

DEFAULT_LIMIT = 10
MAX_LIMIT = 30


def _page_size(limit: Optional[int]) -> int:
    return min(DEFAULT_LIMIT if limit is None else limit, MAX_LIMIT)


class GroupContract:
    """Members with weights, snapshotted per block, changed only by the admin."""

    def __init__(
        self,
        admin: Optional[str] = None,
        members: Iterable[Member] = (),
        height: int = 12_345,
    ) -> None:
        members = list(members)
        admin_addr = validate_addr(admin) if admin is not None else None
        for member in members:
            validate_addr(member.addr)

        self.contract_name = CONTRACT_NAME
        self.contract_version = CONTRACT_VERSION
        self._admin = Admin(admin_addr)
        self._hooks = Hooks()
        self._members: SnapshotMap[str, int] = SnapshotMap()
        self._total = 0
        for member in members:
            self._total += member.weight
            self._members.save(member.addr, member.weight, height)

    def update_admin(self, sender: str, admin: Optional[str]) -> Response:
        """Hand the admin role to ``admin``, or to nobody with ``None``."""
        new_admin = validate_addr(admin) if admin is not None else None
        return self._admin.update(sender, new_admin)

    def update_members(
        self,
        sender: str,
        height: int,
        add: Sequence[Member],
        remove: Sequence[str],
    ) -> MemberChangedHookMsg:
        """Apply additions, then removals, and return the resulting diffs."""
        self._admin.assert_admin(sender)
        # validate everything first so a bad address leaves the state untouched
        for member in add:
            validate_addr(member.addr)
        for addr in remove:
            validate_addr(addr)

        diffs: list[MemberDiff] = []
        for member in add:
            old = self._members.get(member.addr)
            self._total += member.weight - (old or 0)
            diffs.append(MemberDiff(member.addr, old, member.weight))
            self._members.save(member.addr, member.weight, height)

        for addr in remove:
            old = self._members.get(addr)
            if old is not None:
                diffs.append(MemberDiff(addr, old, None))
                self._total -= old
                self._members.remove(addr, height)

        return MemberChangedHookMsg(diffs)

    def execute_update_members(
        self,
        sender: str,
        height: int,
        add: Sequence[Member],
        remove: Sequence[str],
    ) -> Response:
        """Update the members and notify every registered hook."""
        diff = self.update_members(sender, height, add, remove)
        response = Response()
        for message in self._hooks.prepare(diff.to_message):
            response.add_message(message)
        return (
            response.add_attribute("action", "update_members")
            .add_attribute("added", len(add))
            .add_attribute("removed", len(remove))
            .add_attribute("sender", sender)
        )

    def add_hook(self, sender: str, addr: str) -> Response:
        return self._hooks.add(self._admin, sender, validate_addr(addr))

    def remove_hook(self, sender: str, addr: str) -> Response:
        return self._hooks.remove(self._admin, sender, validate_addr(addr))

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
        start = validate_addr(start_after) if start_after is not None else None
        size = _page_size(limit)
        page: list[Member] = []
        for addr, weight in self._members.range(start):
            if len(page) >= size:
                break
            page.append(Member(addr, weight))
        return page

    def total_weight(self) -> int:
        return self._total

    def admin(self) -> Optional[str]:
        return self._admin.admin

    def hooks(self) -> list[str]:
        return list(self._hooks.addresses)


def update_members_msg(
    contract_addr: str, remove: Sequence[str], add: Sequence[Member]
) -> WasmExecute:
    """Message asking the group at ``contract_addr`` to update its members."""
    payload = {
        "update_members": {
            "remove": list(remove),
            "add": [member.to_dict() for member in add],
        }
    }
    return WasmExecute(
        contract_addr=contract_addr,
        msg=json.dumps(payload, separators=(",", ":")).encode(),
    )