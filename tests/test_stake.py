import json

import pytest

from wasmgroups.common import (
    BankSend,
    BlockInfo,
    Coin,
    ContractError,
    Duration,
    Expiration,
    HookAlreadyRegistered,
    HookNotRegistered,
    MemberChangedHookMsg,
    MemberDiff,
    NotAdmin,
    OverflowError,
    WasmExecute,
)
from wasmgroups.controllers import Claim
from wasmgroups.denom import (
    Cw20Denom,
    ExtraDenoms,
    InvalidDenom,
    MissingDenom,
    MixedNativeAndCw20,
    NativeDenom,
    NoFunds,
    NothingToClaim,
)
from wasmgroups.stake import StakeContract, StakedResponse

INIT_ADMIN = "juan"
USER1 = "somebody"
USER2 = "else"
USER3 = "funny"
DENOM = "stake"
TOKENS_PER_WEIGHT = 1_000
MIN_BOND = 5_000
UNBONDING_BLOCKS = 100
CW20_ADDRESS = "wasm1234567890"
HEIGHT = BlockInfo().height


def block_at(delta=0):
    return BlockInfo(height=HEIGHT + delta)


def default_contract():
    return StakeContract(
        NativeDenom(DENOM),
        TOKENS_PER_WEIGHT,
        MIN_BOND,
        Duration(blocks=UNBONDING_BLOCKS),
        admin=INIT_ADMIN,
    )


def cw20_contract(unbonding_period):
    return StakeContract(
        Cw20Denom(CW20_ADDRESS),
        TOKENS_PER_WEIGHT,
        MIN_BOND,
        unbonding_period,
        admin=INIT_ADMIN,
    )


def bond(contract, user1, user2, user3, height_delta):
    block = block_at(height_delta)
    for addr, stake in ((USER1, user1), (USER2, user2), (USER3, user3)):
        if stake:
            contract.bond(addr, [Coin(stake, DENOM)], block)


def bond_cw20(contract, user1, user2, user3, height_delta):
    block = block_at(height_delta)
    for addr, stake in ((USER1, user1), (USER2, user2), (USER3, user3)):
        if stake:
            contract.receive(CW20_ADDRESS, addr, stake, b'{"bond":{}}', block)


def unbond(contract, user1, user2, user3, height_delta):
    block = block_at(height_delta)
    for addr, stake in ((USER1, user1), (USER2, user2), (USER3, user3)):
        if stake:
            contract.unbond(addr, stake, block)


def assert_users(contract, w1, w2, w3, height=None):
    assert contract.member(USER1, height) == w1
    assert contract.member(USER2, height) == w2
    assert contract.member(USER3, height) == w3
    if height is None:
        weights = [w1, w2, w3]
        assert len(contract.list_members()) == sum(w is not None for w in weights)
        assert contract.total_weight() == sum(w or 0 for w in weights)


def assert_stake(contract, s1, s2, s3):
    assert contract.staked(USER1).stake == s1
    assert contract.staked(USER2).stake == s2
    assert contract.staked(USER3).stake == s3


def test_proper_instantiation():
    contract = default_contract()
    assert contract.admin() == INIT_ADMIN
    assert contract.total_weight() == 0


def test_bond_stake_adds_membership():
    contract = default_contract()
    assert_users(contract, None, None, None)

    bond(contract, 12_000, 7_500, 4_000, 1)
    assert_stake(contract, 12_000, 7_500, 4_000)
    assert_users(contract, 12, 7, None)

    bond(contract, 0, 7_600, 1_200, 2)
    assert_stake(contract, 12_000, 15_100, 5_200)
    assert_users(contract, 12, 15, 5)

    assert_users(contract, None, None, None, HEIGHT + 1)
    assert_users(contract, 12, 7, None, HEIGHT + 2)
    assert_users(contract, 12, 15, 5, HEIGHT + 3)


def test_unbond_stake_update_membership():
    contract = default_contract()
    bond(contract, 12_000, 7_500, 4_000, 1)
    unbond(contract, 4_500, 2_600, 1_111, 2)

    assert_stake(contract, 7_500, 4_900, 2_889)
    assert_users(contract, 7, None, None)

    bond(contract, 600, 100, 2_222, 3)
    assert_users(contract, 8, 5, 5)

    assert_users(contract, None, None, None, HEIGHT + 1)
    assert_users(contract, 12, 7, None, HEIGHT + 2)
    assert_users(contract, 7, None, None, HEIGHT + 3)
    assert_users(contract, 8, 5, 5, HEIGHT + 4)

    with pytest.raises(OverflowError) as excinfo:
        contract.unbond(USER2, 5100, block_at(5))
    assert excinfo.value == OverflowError("Sub", 5000, 5100)
    assert contract.staked(USER2).stake == 5000


def test_cw20_token_bond():
    contract = cw20_contract(Duration(blocks=2000))
    assert_users(contract, None, None, None)

    bond_cw20(contract, 12_000, 7_500, 4_000, 1)
    assert_stake(contract, 12_000, 7_500, 4_000)
    assert_users(contract, 12, 7, None)


def test_cw20_token_claim():
    unbonding_period = 50
    unbond_height = 10
    contract = cw20_contract(Duration(blocks=unbonding_period))

    bond_cw20(contract, 20_000, 13_500, 500, 1)
    unbond(contract, 7_900, 4_600, 0, unbond_height)

    assert_stake(contract, 12_100, 8_900, 500)
    assert_users(contract, 12, 8, None)

    expires = Expiration(height=HEIGHT + unbond_height + unbonding_period)
    assert contract.claims(USER1) == [Claim(7_900, expires)]

    res = contract.claim(USER1, block_at(unbond_height + unbonding_period))
    assert len(res.messages) == 1
    message = res.messages[0]
    assert isinstance(message, WasmExecute)
    assert message.contract_addr == CW20_ADDRESS
    assert message.funds == ()
    assert json.loads(message.msg) == {
        "transfer": {"recipient": USER1, "amount": "7900"}
    }
    assert ("tokens", f"7900 {CW20_ADDRESS}") in res.attributes


def test_raw_values_after_bond():
    contract = default_contract()
    bond(contract, 11_000, 6_000, 0, 1)
    assert contract.total_weight() == 17
    assert contract.member(USER2) == 6
    assert contract.member(USER3) is None


def test_unbond_claim_workflow():
    contract = default_contract()
    bond(contract, 12_000, 7_500, 4_000, 1)
    unbond(contract, 4_500, 2_600, 0, 2)

    expires = Duration(blocks=UNBONDING_BLOCKS).after(block_at(2))
    assert contract.claims(USER1) == [Claim(4_500, expires)]
    assert contract.claims(USER2) == [Claim(2_600, expires)]
    assert contract.claims(USER3) == []

    unbond(contract, 0, 1_345, 1_500, 22)
    expires2 = Duration(blocks=UNBONDING_BLOCKS).after(block_at(22))
    assert contract.claims(USER1) == [Claim(4_500, expires)]
    assert contract.claims(USER2) == [Claim(2_600, expires), Claim(1_345, expires2)]
    assert contract.claims(USER3) == [Claim(1_500, expires2)]

    with pytest.raises(NothingToClaim):
        contract.claim(USER1, block_at(22))

    env3 = block_at(2 + UNBONDING_BLOCKS)
    res = contract.claim(USER1, env3)
    assert res.messages == [BankSend(to_address=USER1, amount=(Coin(4_500, DENOM),))]

    res = contract.claim(USER2, env3)
    assert res.messages == [BankSend(to_address=USER2, amount=(Coin(2_600, DENOM),))]

    with pytest.raises(NothingToClaim):
        contract.claim(USER3, env3)

    assert contract.claims(USER1) == []
    assert contract.claims(USER2) == [Claim(1_345, expires2)]
    assert contract.claims(USER3) == [Claim(1_500, expires2)]

    unbond(contract, 0, 600, 0, 30 + UNBONDING_BLOCKS)
    unbond(contract, 0, 1_005, 0, 50 + UNBONDING_BLOCKS)

    res = contract.claim(USER2, block_at(55 + UNBONDING_BLOCKS + UNBONDING_BLOCKS))
    assert res.messages == [BankSend(to_address=USER2, amount=(Coin(2_950, DENOM),))]
    assert contract.claims(USER2) == []


def test_add_remove_hooks():
    contract = default_contract()
    assert contract.hooks() == []

    with pytest.raises(NotAdmin):
        contract.add_hook(USER1, "hook1")

    contract.add_hook(INIT_ADMIN, "hook1")
    assert contract.hooks() == ["hook1"]

    with pytest.raises(HookNotRegistered):
        contract.remove_hook(INIT_ADMIN, "hook2")

    contract.add_hook(INIT_ADMIN, "hook2")
    assert contract.hooks() == ["hook1", "hook2"]

    with pytest.raises(HookAlreadyRegistered):
        contract.add_hook(INIT_ADMIN, "hook1")

    with pytest.raises(NotAdmin):
        contract.remove_hook(USER1, "hook1")

    contract.remove_hook(INIT_ADMIN, "hook1")
    assert contract.hooks() == ["hook2"]


def test_hooks_fire():
    contract = default_contract()
    assert contract.hooks() == []
    for hook in ("hook1", "hook2"):
        contract.add_hook(INIT_ADMIN, hook)

    assert_users(contract, None, None, None)
    res = contract.bond(USER1, [Coin(13_800, DENOM)], block_at())
    assert_users(contract, 13, None, None)

    hook_msg = MemberChangedHookMsg.one(MemberDiff(USER1, None, 13))
    assert res.messages == [hook_msg.to_message("hook1"), hook_msg.to_message("hook2")]

    res = contract.unbond(USER1, 7_300, block_at())
    assert_users(contract, 6, None, None)

    hook_msg = MemberChangedHookMsg.one(MemberDiff(USER1, 13, 6))
    assert res.messages == [hook_msg.to_message("hook1"), hook_msg.to_message("hook2")]


def test_only_bond_valid_coins():
    contract = default_contract()

    with pytest.raises(NoFunds):
        contract.bond(USER1, [], block_at())

    with pytest.raises(MissingDenom) as excinfo:
        contract.bond(USER1, [Coin(500, "FOO")], block_at())
    assert excinfo.value == MissingDenom(DENOM)

    with pytest.raises(ExtraDenoms) as excinfo:
        contract.bond(USER1, [Coin(1234, DENOM), Coin(5000, "BAR")], block_at())
    assert excinfo.value == ExtraDenoms(DENOM)

    res = contract.bond(USER1, [Coin(500, DENOM)], block_at())
    assert ("amount", "500") in res.attributes
    assert contract.staked(USER1) == StakedResponse(500, NativeDenom(DENOM))


def test_ensure_bonding_edge_cases():
    contract = StakeContract(
        NativeDenom(DENOM), 100, 0, Duration(blocks=5), admin=INIT_ADMIN
    )
    bond(contract, 50, 1, 102, 1)
    assert_users(contract, 0, 0, 1)

    unbond(contract, 49, 1, 102, 2)
    assert_users(contract, 0, None, None)


def test_receive_from_wrong_token_contract():
    contract = cw20_contract(Duration(blocks=10))
    with pytest.raises(InvalidDenom):
        contract.receive("wasmother", USER1, 6_000, b'{"bond":{}}', block_at())
    assert contract.staked(USER1).stake == 0


def test_receive_on_native_contract_is_mixed():
    contract = default_contract()
    with pytest.raises(MixedNativeAndCw20):
        contract.receive(CW20_ADDRESS, USER1, 6_000, b'{"bond":{}}', block_at())


def test_receive_with_bad_message():
    contract = cw20_contract(Duration(blocks=10))
    with pytest.raises(ContractError):
        contract.receive(CW20_ADDRESS, USER1, 6_000, b'{"unbond":{}}', block_at())
    with pytest.raises(ContractError):
        contract.receive(CW20_ADDRESS, USER1, 6_000, b"not json", block_at())
    assert contract.total_weight() == 0


def test_native_bond_on_cw20_contract_is_mixed():
    contract = cw20_contract(Duration(blocks=10))
    with pytest.raises(MixedNativeAndCw20):
        contract.bond(USER1, [Coin(6_000, DENOM)], block_at())


def test_min_bond_is_at_least_one():
    contract = StakeContract(NativeDenom(DENOM), 10, 0, Duration(blocks=1))
    assert contract.min_bond == 1


def test_update_admin():
    contract = default_contract()
    with pytest.raises(NotAdmin):
        contract.update_admin(USER1, USER1)
    contract.update_admin(INIT_ADMIN, USER2)
    assert contract.admin() == USER2
    contract.update_admin(USER2, None)
    assert contract.admin() is None


def test_list_members_pagination():
    contract = default_contract()
    bond(contract, 6_000, 7_000, 8_000, 1)
    members = contract.list_members()
    assert [m.addr for m in members] == sorted([USER1, USER2, USER3])
    assert [m.addr for m in contract.list_members(limit=1)] == [USER2]
    assert [m.addr for m in contract.list_members(start_after=USER2)] == [USER3, USER1]


def test_claim_attributes_native():
    contract = default_contract()
    bond(contract, 6_000, 0, 0, 1)
    unbond(contract, 1_000, 0, 0, 2)
    res = contract.claim(USER1, block_at(2 + UNBONDING_BLOCKS))
    assert res.attributes == [
        ("action", "claim"),
        ("tokens", f"1000 {DENOM}"),
        ("sender", USER1),
    ]