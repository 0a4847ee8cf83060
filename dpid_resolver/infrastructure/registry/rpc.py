"""AliasRegistry over Ethereum JSON-RPC ``eth_call``.

Calls are ABI-encoded with eth-abi against the DpidAliasRegistry contract:

    resolve(uint256) -> string
    legacyLookup(uint256) -> (address owner, (string cid, uint256 time)[] versions)
    nextDpid() -> uint256
"""

import itertools
import logging
from typing import Any

import httpx
import logfire
from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector

from dpid_resolver.domain.registry.model.value import LegacyEntry, LegacyVersionEntry
from dpid_resolver.domain.registry.port.alias_registry import AliasRegistry
from dpid_resolver.domain.shared.error import ExternalServiceError

logger = logging.getLogger(__name__)

RESOLVE = function_signature_to_4byte_selector("resolve(uint256)")
LEGACY_LOOKUP = function_signature_to_4byte_selector("legacyLookup(uint256)")
NEXT_DPID = function_signature_to_4byte_selector("nextDpid()")

LEGACY_ENTRY_TYPE = "(address,(string,uint256)[])"


class JsonRpcError(ExternalServiceError):
    """The RPC node answered with an error object or a malformed result."""


class JsonRpcAliasRegistry(AliasRegistry):
    def __init__(self, client: httpx.AsyncClient, rpc_url: str, address: str) -> None:
        self._client = client
        self._rpc_url = rpc_url
        self._address = address
        self._ids = itertools.count(1)

    async def resolve(self, dpid: int) -> str:
        data = await self._call(RESOLVE + encode(["uint256"], [dpid]))
        (stream_id,) = decode(["string"], data)
        return stream_id

    async def legacy_lookup(self, dpid: int) -> LegacyEntry:
        data = await self._call(LEGACY_LOOKUP + encode(["uint256"], [dpid]))
        ((owner, versions),) = decode([LEGACY_ENTRY_TYPE], data)
        # Positional on-chain tuples become named entries here
        return LegacyEntry(
            owner=owner,
            versions=[LegacyVersionEntry(cid=cid, timestamp=ts) for cid, ts in versions],
        )

    async def next_dpid(self) -> int:
        (value,) = decode(["uint256"], await self._call(NEXT_DPID))
        return value

    async def _call(self, calldata: bytes) -> bytes:
        payload: dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": "eth_call",
            "params": [{"to": self._address, "data": "0x" + calldata.hex()}, "latest"],
        }
        try:
            response = await self._client.post(self._rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise JsonRpcError(f"RPC node request failed: {e}", cause=e) from e

        if body.get("error"):
            logfire.warn("eth_call failed: {error}", error=body["error"])
            raise JsonRpcError(f"eth_call failed: {body['error']}", cause=body["error"])

        result = body.get("result")
        if not isinstance(result, str) or not result.startswith("0x"):
            raise JsonRpcError(f"Malformed eth_call result: {result!r}")
        return bytes.fromhex(result[2:])
