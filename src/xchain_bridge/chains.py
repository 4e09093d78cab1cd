"""Chain identifiers, families and native-denomination rules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

from .constants import UINT16_MAX
from .exceptions import UnknownChainError


class ChainFamily(str, Enum):
    """Execution model shared by a group of chains."""

    EVM = "evm"
    SOLANA = "solana"
    COSMWASM = "cosmwasm"


class ChainId(IntEnum):
    """Protocol chain ids of the supported chains."""

    SOLANA = 1
    ETHEREUM = 2
    BSC = 4
    POLYGON = 5
    AVALANCHE = 6
    OASIS = 7
    AURORA = 9
    FANTOM = 10
    KARURA = 11
    ACALA = 12
    KLAYTN = 13
    CELO = 14
    MOONBEAM = 16
    NEON = 17
    TERRA2 = 18
    INJECTIVE = 19
    ARBITRUM = 23
    OPTIMISM = 24
    GNOSIS = 25
    XPLA = 28
    BASE = 30


CHAIN_FAMILIES: dict[ChainId, ChainFamily] = {
    ChainId.SOLANA: ChainFamily.SOLANA,
    ChainId.ETHEREUM: ChainFamily.EVM,
    ChainId.BSC: ChainFamily.EVM,
    ChainId.POLYGON: ChainFamily.EVM,
    ChainId.AVALANCHE: ChainFamily.EVM,
    ChainId.OASIS: ChainFamily.EVM,
    ChainId.AURORA: ChainFamily.EVM,
    ChainId.FANTOM: ChainFamily.EVM,
    ChainId.KARURA: ChainFamily.EVM,
    ChainId.ACALA: ChainFamily.EVM,
    ChainId.KLAYTN: ChainFamily.EVM,
    ChainId.CELO: ChainFamily.EVM,
    ChainId.MOONBEAM: ChainFamily.EVM,
    ChainId.NEON: ChainFamily.EVM,
    ChainId.TERRA2: ChainFamily.COSMWASM,
    ChainId.INJECTIVE: ChainFamily.COSMWASM,
    ChainId.ARBITRUM: ChainFamily.EVM,
    ChainId.OPTIMISM: ChainFamily.EVM,
    ChainId.GNOSIS: ChainFamily.EVM,
    ChainId.XPLA: ChainFamily.COSMWASM,
    ChainId.BASE: ChainFamily.EVM,
}


@dataclass(frozen=True)
class CosmWasmChainInfo:
    """Static metadata for a CosmWasm chain."""

    bech32_prefix: str
    native_denom: str
    native_decimals: int


COSMWASM_CHAINS: dict[ChainId, CosmWasmChainInfo] = {
    ChainId.TERRA2: CosmWasmChainInfo(
        bech32_prefix="terra", native_denom="uluna", native_decimals=6
    ),
    ChainId.INJECTIVE: CosmWasmChainInfo(
        bech32_prefix="inj", native_denom="inj", native_decimals=18
    ),
    ChainId.XPLA: CosmWasmChainInfo(
        bech32_prefix="xpla", native_denom="axpla", native_decimals=18
    ),
}

_CHAIN_ALIASES = {
    "eth": ChainId.ETHEREUM,
    "bnb": ChainId.BSC,
    "matic": ChainId.POLYGON,
    "avax": ChainId.AVALANCHE,
    "sol": ChainId.SOLANA,
    "terra": ChainId.TERRA2,
}


def coalesce_chain_id(chain: ChainId | int | str) -> ChainId:
    """Resolve a chain id, numeric string or chain name to a ``ChainId``.

    Args:
        chain: ``ChainId`` member, protocol chain id or case-insensitive name

    Returns:
        The matching ``ChainId``

    Raises:
        UnknownChainError: If the chain is not supported
    """
    if isinstance(chain, ChainId):
        return chain

    if isinstance(chain, bool):
        raise UnknownChainError(chain)

    if isinstance(chain, int):
        try:
            return ChainId(chain)
        except ValueError as exc:
            raise UnknownChainError(chain) from exc

    if isinstance(chain, str):
        key = chain.strip()
        if key.isdigit():
            return coalesce_chain_id(int(key))
        normalised = key.lower().replace("-", "").replace("_", "")
        if normalised in _CHAIN_ALIASES:
            return _CHAIN_ALIASES[normalised]
        for member in ChainId:
            if member.name.lower() == normalised:
                return member

    raise UnknownChainError(chain)


def chain_family(chain: ChainId | int | str) -> ChainFamily:
    """Return the execution family of ``chain``."""
    return CHAIN_FAMILIES[coalesce_chain_id(chain)]


def chain_name(chain: ChainId | int | str) -> str:
    return coalesce_chain_id(chain).name.lower()


def chains_in_family(family: ChainFamily) -> tuple[ChainId, ...]:
    return tuple(chain for chain, fam in CHAIN_FAMILIES.items() if fam is family)


def origin_chain_id(chain: ChainId | int | str) -> ChainId | int:
    """Resolve the origin chain of a wrapped asset.

    Unlike :func:`coalesce_chain_id`, protocol chain ids without a builder in
    this library (e.g. Algorand, Sui, Aptos) are returned as plain ints.
    """
    if isinstance(chain, str) and chain.strip().isdigit():
        chain = int(chain.strip())
    if isinstance(chain, int) and not isinstance(chain, (bool, ChainId)):
        try:
            return ChainId(chain)
        except ValueError:
            if 0 < chain <= UINT16_MAX:
                return chain
    return coalesce_chain_id(chain)


def cosmwasm_chain_info(chain: ChainId | int | str) -> CosmWasmChainInfo:
    chain_id = coalesce_chain_id(chain)
    info = COSMWASM_CHAINS.get(chain_id)
    if info is None:
        raise UnknownChainError(chain, details={"reason": "not a CosmWasm chain"})
    return info


def _is_native_terra(denom: str) -> bool:
    # uusd, ukrw, ... plus the staking denom
    return denom == "uluna" or (len(denom) == 4 and denom.startswith("u") and denom.isalpha())


def is_native_denom(chain: ChainId | int | str, address: str) -> bool:
    """Return True when ``address`` is the chain's native denomination.

    Only CosmWasm chains have native denominations at this layer; EVM and
    Solana native assets are wrapped by the transfer builders instead.
    """
    chain_id = coalesce_chain_id(chain)
    if chain_id is ChainId.TERRA2:
        return _is_native_terra(address)
    if chain_id is ChainId.INJECTIVE:
        return address == "inj"
    if chain_id is ChainId.XPLA:
        return address == "axpla"
    return False
