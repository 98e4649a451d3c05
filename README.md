# wasmgroups

The package keeps the state and rules of membership groups in plain Python objects, in
memory. It has three parts:

- **`GroupContract`** (`wasmgroups.group`) holds weighted members and is managed by an
  admin. Each weight change is snapshotted per block height. Every registered hook gets a
  message for each change.
- **`StakeContract`** (`wasmgroups.stake`) gives members weight for the tokens they bond.
  The tokens are either a native denom (`NativeDenom`) or a token contract (`Cw20Denom`).
  Unbonded tokens become claims, and a claim can be paid out after the unbonding period.
- **`FlexConfig`** (`wasmgroups.flex`) holds the settings and executor rules of a
  multisig that is backed by a group.

The shared types are in `wasmgroups.common`:

- `BlockInfo`, `Duration` and `Expiration`
- `Coin`, `BankSend`, `WasmExecute` and `Response`
- `Member`, `MemberDiff` and `MemberChangedHookMsg`
- `validate_addr` and the base error `ContractError`

The storage helpers are in `wasmgroups.controllers`:

- `SnapshotMap`
- `Admin`
- `Hooks`
- `Claims` and `Claim`

## Installation

```
pip install .
```

To include pytest as well, install with `pip install .[test]`.

## Groups

```python
from wasmgroups.common import Member, NotAdmin
from wasmgroups.group import GroupContract, update_members_msg

group = GroupContract(admin="juan", members=[Member("somebody", 11), Member("else", 6)], height=12345)
assert group.total_weight() == 17

group.update_members("juan", 12355, add=[Member("funny", 15)], remove=["somebody"])
assert group.member("funny") == 15
assert group.member("somebody", at_height=12346) == 11   # value at the start of that block

try:
    group.update_members("somebody", 12360, add=[], remove=["else"])
except NotAdmin:
    pass
```

How `update_members` works:

- It applies the additions first and the removals after them.
- It returns a `MemberChangedHookMsg` that lists the diffs.

`execute_update_members` does the same update. It then returns a `Response` with one
`WasmExecute` message for each hook added through `add_hook`.

`list_members` returns the members in address order. A page holds 10 members by default
and at most 30.

`update_members_msg(contract_addr, remove, add)` builds the `WasmExecute` message that
asks a group to update its members.

## Staking

```python
from wasmgroups.common import BankSend, BlockInfo, Coin, Duration
from wasmgroups.denom import NativeDenom, NothingToClaim
from wasmgroups.stake import StakeContract

stake = StakeContract(
    NativeDenom("stake"),
    tokens_per_weight=1000,
    min_bond=5000,
    unbonding_period=Duration(blocks=100),
    admin="juan",
)
block = BlockInfo(height=12345)
stake.bond("somebody", [Coin(12000, "stake")], block)
assert stake.member("somebody") == 12

stake.unbond("somebody", 4500, block.advance(1))    # weight drops to 7, a claim is created
try:
    stake.claim("somebody", block.advance(2))
except NothingToClaim:
    pass

response = stake.claim("somebody", BlockInfo(height=12446))
assert response.messages == [BankSend("somebody", (Coin(4500, "stake"),))]
```

Bonding rules:

- A native bond must carry exactly one coin, and that coin must be the staking denom.
  Otherwise the call raises `NoFunds`, `ExtraDenoms` or `MissingDenom`.
- Tokens from a token contract arrive through `receive`, and the message must be
  `{"bond": {}}`.
- A stake below `min_bond` gives no membership. `min_bond` is never lower than 1.

Unbonding more than is staked raises `common.OverflowError`.

For a token-contract denom, `claim` pays out with a `WasmExecute` transfer message.

## Multisig executor rules

```python
from wasmgroups.common import Duration, Unauthorized
from wasmgroups.flex import Executor, FlexConfig

config = FlexConfig(
    group_addr="group0001",
    max_voting_period=Duration(seconds=2_000_000),
    executor=Executor.only("voter0003"),
)
config.authorize(group, "voter0003")      # allowed
```

The executor decides who may run a passed proposal:

- `Executor.member()` lets any current member of the group do so. The group is any object
  with a `member(addr)` method.
- `Executor.only(addr)` lets only that one address do so.
- `None` lets anyone do so.

`authorize` raises `Unauthorized` when the sender is not allowed.

`check_hook_sender` accepts only the group address.

A `group_addr` that is not valid raises `InvalidGroup`.

## Addresses and errors

`validate_addr` accepts a string that:

- is at least three characters long,
- is in lower case,
- has no surrounding whitespace.

Any other value raises `InvalidAddress`.

All failures are raised as subclasses of `ContractError`. Two errors are equal when they
have the same type and the same arguments.

## What the package does not do

- The multisig side goes no further than configuration and authorisation. There are no
  proposals, votes, thresholds or tallies. `flex` defines error classes for those steps
  (`NotOpen`, `Expired`, `AlreadyVoted` and others), but nothing in the package raises
  them.
- State lives only in memory and is not persisted.
- Messages in a `Response` are returned and never dispatched.
- The package has no command-line tool.

## Running the tests

```
pytest
```