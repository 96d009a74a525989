from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from ponzimap.constants import DEFAULT_DECIMALS, REFERENCE_ALIASES, REFERENCE_SYMBOL, UNKNOWN_SYMBOL
from ponzimap.models.records import PriceRecord, normalize_address
from ponzimap.models.tile import TokenInfo


@dataclass(frozen=True)
class TokenMeta:
    symbol: str
    name: str
    address: str
    decimals: int


# Static registry: decimals do not come with the price feed.
TOKENS: List[TokenMeta] = [
    TokenMeta("STRK",      "Starknet Token",         "0x04718f5a0fc34cc1af16a1cdee98ffb20c31f5cd61d6ab07201858f4287c938d", 18),
    TokenMeta("BONK",      "Bonk",                   "0x074238dfa02063792077820584c925b679a013cbab38e5ca61af5627d1eda736", 5),
    TokenMeta("BROTHER",   "Starknet Brother",       "0x03b405a98c9e795d427fe82cdeeeed803f221b52471e3a757574a2b4180793ee", 18),
    TokenMeta("BTC",       "Bitcoin",                "0x03fe2b97c1fd336e750087d68b9b867997fd64a2661ff3ca5a7c771641e8e7ac", 8),
    TokenMeta("DOG",       "DOG GO TO THE MOON DOG", "0x040e81cfeb176bfdbc5047bbc55eb471cfab20a6b221f38d8fda134e1bfffca4", 5),
    TokenMeta("DREAMS",    "Daydreams dreams",       "0x04fcaf2a7b4a072fe57c59beee807322d34ed65000d78611c909a46fead07fb1", 6),
    TokenMeta("EKUBO",     "Ekubo",                  "0x075afe6402ad5a5c20dd25e10ec3b3986acaa647b77e4ae24b0cbc9a54a27a87", 18),
    TokenMeta("ETH",       "Ethereum",               "0x049d36570d4e46f48e99674bd3fcc84644ddd6b96f7c741b1562b82f9e004dc7", 18),
    TokenMeta("LORDS",     "Lords",                  "0x0124aeb495b947201f5fac96fd1138e326ad86195b98df6dec9009158a533b49", 18),
    TokenMeta("PAL",       "Pain au lait",           "0x049201f03a0f0a9e70e28dcd74cbf44931174dbe3cc4b2ff488898339959e559", 18),
    TokenMeta("SCHIZODIO", "SCHIZODIO",              "0x00acc2fa3bb7f6a6726c14d9e142d51fe3984dbfa32b5907e1e76425177875e2", 18),
    TokenMeta("SSTR",      "Starknet Sister",        "0x0102d5e124c51b936ee87302e0f938165aec96fb6c2027ae7f3a5ed46c77573b", 18),
    TokenMeta("SLAY",      "Brother Eli SLAY",       "0x02ab526354a39e7f5d272f327fa94e757df3688188d4a92c6dc3623ab79894e2", 18),
    TokenMeta("SOL",       "Solana",                 "0x01e70aedffd376afe33cebdf51ed5365131dccb2a5b2cb36d02b785442912b9b", 9),
    TokenMeta("STARK",     "Starknet",               "0x01a613a0d4d6f90e1a5da760c01dd1bac06b2101380d94c93dffa50e139a0b5d", 18),
    TokenMeta("STRKPEPE",  "StarkPepe",              "0x0541acf195ae5f3642a36a629710a02fef2042eb113ab9077e14f5dc18b16a4e", 18),
    TokenMeta("STROCK",    "StarkRock",              "0x07e03e6fa091f362c9a018f75085cbcd25c08cc00fc1c29609549e671cd9ef1b", 18),
    TokenMeta("SWAPS",     "Swapsicle",              "0x03136bc0668928dc01fec9b6f191490847849a615a27db0a3a8917ab7a87af46", 18),
    TokenMeta("USDT",      "Tether USD",             "0x06b2fc004d3287591ac780ba960a1d8a41f62faf2fbe4f11ccba41688b6a3834", 6),
    TokenMeta("USDC",      "USD Coin",               "0x053c91253bc9682c04929ca02ed00b3e423f6710d2ee7e0d5ebb06f3ecf368a8", 6),
    TokenMeta("WBTC",      "Wrapped Bitcoin",        "0x0207aa0825f096798ac053fa25a27c84c212d90fcec546be46811138707c67a0", 8),
    TokenMeta("WETH",      "Wrap Ether",             "0x0490bbd7b2a05ffea8ee7b3c886f2f59031524ad45a08f1674db1e11a5ae0fa3", 18),
    TokenMeta("UNA",       "Una Coin",               "0x025ea8240e43f8e012ea894ee400cf5928b557c66db1f83d099ce3633d74458c", 18),
]

TOKENS_BY_ADDRESS: Dict[str, TokenMeta] = {normalize_address(t.address): t for t in TOKENS}

REFERENCE_INFO = TokenInfo(REFERENCE_SYMBOL, 1.0, DEFAULT_DECIMALS)
UNKNOWN_INFO = TokenInfo(UNKNOWN_SYMBOL, None, DEFAULT_DECIMALS)


def to_native(amount: Optional[int], info: TokenInfo) -> float:
    """Scaled integer -> whole token units."""
    if not amount:
        return 0.0
    return float(Decimal(amount) / (Decimal(10) ** info.decimals))


def to_reference(amount: Optional[int], info: TokenInfo) -> Optional[float]:
    """Scaled integer -> reference-currency units, None when the token is unpriced."""
    if info.ratio is None:
        return None
    return to_native(amount, info) / info.ratio


class TokenPriceIndex:
    """token address -> {symbol, ratio, decimals}"""

    def __init__(self, prices: Iterable[PriceRecord] = (), reference_addresses: Iterable[str] = ()):
        self._entries: Dict[str, TokenInfo] = {}

        for price in prices:
            if price.symbol == REFERENCE_SYMBOL:
                self._entries[price.address] = REFERENCE_INFO
                continue
            meta = TOKENS_BY_ADDRESS.get(price.address)
            self._entries[price.address] = TokenInfo(
                symbol=price.symbol,
                ratio=price.ratio,
                decimals=meta.decimals if meta else DEFAULT_DECIMALS,
            )

        # registry tokens resolve even without a live price, just unpriced
        for address, meta in TOKENS_BY_ADDRESS.items():
            if address not in self._entries:
                self._entries[address] = TokenInfo(meta.symbol, None, meta.decimals)

        for alias in REFERENCE_ALIASES:
            self._entries[alias] = REFERENCE_INFO
        for address in reference_addresses:
            self._entries[normalize_address(address)] = REFERENCE_INFO

    def lookup(self, token: Optional[str]) -> TokenInfo:
        return self._entries.get(normalize_address(token), UNKNOWN_INFO)

    def reference_value(self, token: Optional[str], amount: Optional[int]) -> Optional[float]:
        return to_reference(amount, self.lookup(token))

    def native_value(self, token: Optional[str], amount: Optional[int]) -> float:
        return to_native(amount, self.lookup(token))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, token: str) -> bool:
        return normalize_address(token) in self._entries
