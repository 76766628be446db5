# meshsec

`meshsec` models the consumer side of a mesh security setup: turning stake
received from a provider chain into stake on the local chain, and sending
rewards and validator-set changes back over IBC.

Everything is plain Python with no dependencies outside the standard library.
Contracts are objects holding their own state; handlers return `Response`
objects listing the messages and events the contract would emit, and failures
raise subclasses of `meshsec.errors.ContractError`. Errors compare equal when
they have the same class and arguments, so an expected failure can be matched
by value.

## Modules

- `meshsec.core` – shared value types: `Coin`, `Event`, `Response`, `SubMsg`,
  `Env`, `MessageInfo`, `Validator`, and the message classes `WasmExecute`,
  `WasmInstantiate`, `BankSend`, `IbcSendPacket`, `WithdrawDelegatorReward`,
  `VirtualBond` and `VirtualUnbond`. Helpers: `nonpayable` (rejects any
  funds), `must_pay` (returns the amount of a single coin of a given denom),
  `validate_address` and `mul_decimal` (multiplies an amount by a ratio,
  rounding down).
- `meshsec.errors` – `ContractError` and its subclasses, such as
  `Unauthorized`, `WrongDenom`, `PaymentError`, `NotFound`,
  `InvalidDiscount`, `InvalidDenom`, `InvalidReplyId`,
  `DistributeRewardsInvalidAmount`, `InsufficientBond` and `VersionError`.
- `meshsec.price_feed.SimplePriceFeed` – an owner-controlled price of the
  foreign token in native tokens: `instantiate`, `update_price`, `config`,
  `price`.
- `meshsec.converter.Converter` – converts remote stake into the local bonded
  denom using a price querier and a discount, and forwards bond and unbond
  requests to a virtual staking contract address as `WasmExecute` messages.
  It also transfers rewards (`transfer_rewards`), packages reward
  distributions (`distribute_reward`, `distribute_rewards`) and validator-set
  updates (`valset_update`) as IBC packets, and handles incoming provider
  packets (`ibc_packet_receive`). `test_stake` and `test_unstake` work only
  when the converter is built with `allow_test_messages=True`.
- `meshsec.staking_mock.VirtualStakingMock` – a simple staking contract that
  books stake at once (`bond`, `unbond`, `stake`, `all_stake`), handy when
  exercising the converter.
- `meshsec.ibc` – the channel handshake (`IbcState.channel_open`,
  `IbcState.channel_connect`), protocol version negotiation
  (`ProtocolVersion.build_response`, `ProtocolVersion.verify_compatibility`),
  packet builders (`add_validators_msg`, `jail_validators_msg`,
  `tombstone_validators_msg`), timeouts, and handling of acknowledgements
  (`packet_ack`) and timeouts (`packet_timeout`).
- `meshsec.rebalance` – epoch arithmetic as pure functions:
  `apply_cap` scales bond requests down to a cap, `adjust_slashings` applies
  tombstoning and jailing slashes, and `calculate_rebalance` produces the
  `VirtualBond` / `VirtualUnbond` messages needed to move from the current
  bonding to the desired one.
- `meshsec.rewards` – reward bookkeeping: `RewardInfo`, `RewardsBatch`,
  `RewardTargets` and `withdraw_reward_msgs`.

## Example

```python
from decimal import Decimal

from meshsec.converter import Converter
from meshsec.core import Coin, MessageInfo
from meshsec.price_feed import SimplePriceFeed

feed = SimplePriceFeed()
feed.instantiate(MessageInfo(sender="owner"), Decimal("0.5"))

converter = Converter(lambda address: feed.price(), allow_test_messages=True)
converter.instantiate(
    MessageInfo(sender="owner"),
    "pricefeed",
    Decimal("0.4"),   # discount
    "ujuno",          # remote denom
    1,                # code id of the staking contract
    "admin",
    "uosmo",          # local bonded denom
)
converter.reply(1, "virtualstaking")

response = converter.stake("val1", Coin("ujuno", 1000))
print(response.messages[0].msg)   # bonds 300 uosmo (1000 * 0.5 * 0.6)
```

Amounts are integers and ratios are `decimal.Decimal` values. Multiplying an
amount by a ratio always rounds down.

## What the package does not do

There is no virtual staking contract that ties the epoch arithmetic in
`meshsec.rebalance` and the reward bookkeeping in `meshsec.rewards` together:
no object keeps bond requests across epochs, answers withdrawal replies or
sends reward batches back to the converter. Those steps have to be driven by
the caller with the functions above. The package also runs no chain, relayer
or network connection: IBC packets and messages are only built and returned.

## Running the tests

```
pip install -e .[test]
pytest
```