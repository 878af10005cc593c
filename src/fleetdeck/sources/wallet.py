"""On-chain wallet balance tracker.

Created: 2026-02-13

Reads the native balance and stablecoin balances of one address over
JSON-RPC and prices the native token with a public price API. Stablecoins
are valued 1:1. Balances at or below ``DUST`` are dropped.
"""

import asyncio
import logging
from dataclasses import dataclass

import httpx

from fleetdeck.errors import ProviderUnavailable, StorageError
from fleetdeck.sources.models import TokenBalance, WalletSnapshot

logger = logging.getLogger(__name__)

DUST = 0.0001

# ERC-20 balanceOf(address)
BALANCE_OF_SELECTOR = "0x70a08231"

NATIVE_SYMBOL = "MATIC"
PRICE_ID = "matic-network"


@dataclass(frozen=True)
class TokenContract:
    symbol: str
    address: str
    decimals: int


STABLECOINS = (
    TokenContract("USDC", "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359", 6),
    TokenContract("USDC.e", "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174", 6),
)


def encode_balance_of(address: str) -> str:
    """Call data for ``balanceOf(address)``."""
    return BALANCE_OF_SELECTOR + address.lower().removeprefix("0x").rjust(64, "0")


def decode_quantity(value: str | None, decimals: int) -> float:
    """Hex quantity to a float amount; empty results are zero."""
    if not value or value == "0x":
        return 0.0
    try:
        return int(value, 16) / 10**decimals
    except (TypeError, ValueError) as e:
        raise StorageError(f"RPC returned a non-hex quantity: {value!r}") from e


class WalletTracker:
    name = "rpc"

    def __init__(
        self,
        address: str,
        rpc_url: str,
        price_api_url: str,
        fallback_price: float = 0.5,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.address = address
        self.rpc_url = rpc_url
        self.price_api_url = price_api_url
        self.fallback_price = fallback_price
        self.timeout = timeout
        self._transport = transport

    async def _rpc(self, client: httpx.AsyncClient, method: str, params: list) -> str | None:
        resp = await client.post(
            self.rpc_url,
            json={"jsonrpc": "2.0", "id": 1, "method": method, "params": params},
        )
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise StorageError(f"{method} returned an unexpected payload")
        if data.get("error"):
            raise StorageError(f"{method} failed: {data['error']}")
        return data.get("result")

    async def native_balance(self, client: httpx.AsyncClient, address: str) -> float:
        result = await self._rpc(client, "eth_getBalance", [address, "latest"])
        return decode_quantity(result, 18)

    async def token_balance(
        self, client: httpx.AsyncClient, address: str, token: TokenContract
    ) -> float:
        result = await self._rpc(
            client,
            "eth_call",
            [{"to": token.address, "data": encode_balance_of(address)}, "latest"],
        )
        return decode_quantity(result, token.decimals)

    async def native_price(self, client: httpx.AsyncClient) -> float:
        """USD price of the native token, or the fallback price."""
        try:
            resp = await client.get(self.price_api_url)
            resp.raise_for_status()
            price = resp.json().get(PRICE_ID, {}).get("usd")
            return float(price) if price else self.fallback_price
        except (httpx.HTTPError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Price lookup failed, using fallback {self.fallback_price}: {e}")
            return self.fallback_price

    async def wallet(self, address: str | None = None) -> WalletSnapshot:
        """Snapshot ``address``, or the configured address when none is given."""
        address = address or self.address
        if not address:
            raise ProviderUnavailable("wallet address not set")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            native, price, *stable = await asyncio.gather(
                self.native_balance(client, address),
                self.native_price(client),
                *(self.token_balance(client, address, token) for token in STABLECOINS),
            )

        tokens = [
            TokenBalance(token.symbol, balance, balance)
            for token, balance in zip(STABLECOINS, stable, strict=True)
        ]
        tokens.append(TokenBalance(NATIVE_SYMBOL, native, native * price))
        return WalletSnapshot(address=address, tokens=[t for t in tokens if t.balance > DUST])
