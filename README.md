# stylkit

Tools for describing and exercising smart-contract interfaces in Solidity terms, in plain Python.

## What it covers

- **ABI type names and selectors** (`stylkit.abi`). Build type descriptions with `uint`, `int_`,
  `bool_`, `address`, `string`, `bytes_`, `fixed_bytes`, `array`, `fixed_array` and `tuple_`.
  Each is an `AbiType` carrying its ABI name plus the spelling used for arguments and return
  values in an exported interface (`calldata` / `memory`). `keccak` hashes data with keccak256,
  `function_selector` computes the four-byte selector of a method, and `solidity_returns` renders
  a `returns (...)` clause.
- **Bounded strings** (`stylkit.conststring`). `ConstString` is an immutable UTF-8 string limited
  to 1024 encoded bytes, with `concat`, `select` and `from_decimal_number`.
- **Interface export** (`stylkit.export`). `GenerateAbi` is the base for anything that can render
  itself as a Solidity `interface`; `print_abi` writes that text after a header comment, to
  standard output or a given stream. `underscore_if_sol` prefixes argument names that clash with
  Solidity keywords or type names with an underscore.
- **Type parsing** (`stylkit.soltypes`). `parse_sol_type` reads types such as `uint256[]` or
  `(bool,address)` into a `SolType`; `solidity_type_info` gives a type's generated-code path and
  ABI name. `Purity` orders method purities: `pure`, `view`, `write`, `payable`.
- **Storage declarations** (`stylkit.storage_types`). `parse_sol_storage` reads Solidity-style
  struct declarations, including `mapping(key => value)` and `T[]`, into `SolidityStruct` and
  `SolidityField` records; `primitive`, `primitive_key` and `parse_storage_type` map single types.
  Unsupported types raise `StorageTypeError`.
- **Storage layout** (`stylkit.layout`). `place_fields` packs `StorageField`s into 32-byte slots
  and returns `FieldPlacement`s; `required_slots` counts the slots a struct reserves;
  `check_field_type` rejects native numeric and `bool` field types.
- **Method routing** (`stylkit.router`). `ExternalMethod` describes a callable method with its
  argument and return types and purity; `Router` dispatches by selector, decodes ABI arguments,
  encodes results, falls back to inherited routers and renders its interface with `fmt_abi`.
  `Entrypoint.run` turns raw calldata into a status code (0 success, 1 revert) and output bytes,
  rejecting value sent to non-payable methods and, unless allowed, reentrant calls.
  `parse_entrypoint_args` reads `allow_reentrancy = true`.
- **Call contexts** (`stylkit.calls`). `Context` holds the gas, value and storage of a call to
  another contract and tells whether it can make static or non-payable calls. `CallError`,
  `Revert` and `AbiDecodingFailed` describe failed calls; `to_bytes` gives their revert data.

## Install

```
pip install stylkit
```

## Examples

Compute a selector:

```python
from stylkit.abi import address, function_selector, uint

selector = function_selector("foo", address(), uint(256))
assert selector == bytes.fromhex("bd0d639f")
```

Route a call:

```python
from stylkit.abi import uint
from stylkit.router import Entrypoint, ExternalMethod, Router

add = ExternalMethod(
    "add",
    lambda a, b: a + b,
    args=[("a", uint(256)), ("b", uint(256))],
    returns=uint(256),
)
entry = Entrypoint(Router("Adder", [add]))

calldata = add.selector().to_bytes(4, "big") + (2).to_bytes(32, "big") + (3).to_bytes(32, "big")
status, output = entry.run(None, calldata)
assert status == 0 and int.from_bytes(output, "big") == 5
```

Parse and lay out storage:

```python
from stylkit.layout import StorageField, place_fields
from stylkit.storage_types import parse_sol_storage

structs = parse_sol_storage("""
    struct Token {
        mapping(address => uint256) balances;
        uint256 total_supply;
    }
""")

placements = place_fields([
    StorageField("owner", "StorageAddress", slot_bytes=20, required_slots=0),
    StorageField("paused", "StorageBool", slot_bytes=1, required_slots=0),
])
# both fields share slot 0, at byte offsets 12 and 11
```

## What it does not do

stylkit does not run on or talk to a chain. There is no host environment: no real contract
storage, no block or message data, and no function that actually performs a call to another
contract. `Context` only describes a call, and routed methods receive whatever storage object
the caller passes in.

## Tests

Run `pytest` after `pip install -e .[test]`.