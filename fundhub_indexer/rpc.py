"""Async JSON-RPC client for ``getProgramAccounts``."""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from fundhub_indexer.errors import NetworkError, ProtocolError
from fundhub_indexer.state import RawAccount

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 30.0


class RPCClient:
    """Thin JSON-RPC 2.0 client over ``httpx.AsyncClient``.

    No retry happens here; the snapshot cache owns refresh policy.
    """

    def __init__(
        self,
        url: str,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._id = 1
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def _rpc(self, method: str, params: list) -> Any:
        payload = {"jsonrpc": "2.0", "id": self._id, "method": method, "params": params}
        self._id += 1
        try:
            r = await self._http.post(self.url, json=payload)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(f"RPC request failed: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"RPC request failed: {e!r}") from e

        try:
            out = r.json()
        except ValueError as e:
            raise ProtocolError(f"RPC response is not JSON: {e}") from e
        if not isinstance(out, dict):
            raise ProtocolError("RPC response is not a JSON object")
        if out.get("error") is not None:
            err = out["error"]
            message = err.get("message", err) if isinstance(err, dict) else err
            raise ProtocolError(f"RPC error: {message}")
        if "result" not in out:
            raise ProtocolError("RPC response has no result")
        return out["result"]

    async def get_program_accounts(
        self, program_id: str, data_size: int | None = None
    ) -> list[RawAccount]:
        """Fetch every account owned by ``program_id``.

        Args:
            program_id: base58 program address.
            data_size: when set, only accounts whose data is exactly this
                many bytes are returned.
        """
        filters = [{"dataSize": data_size}] if data_size else []
        params = [
            program_id,
            {
                "commitment": "confirmed",
                "encoding": "base64",
                "filters": filters,
            },
        ]
        result = await self._rpc("getProgramAccounts", params)
        if result is None:
            return []
        if not isinstance(result, list):
            raise ProtocolError(f"getProgramAccounts result is {type(result).__name__}, expected list")

        out: list[RawAccount] = []
        for item in result:
            out.append(_parse_account(item))
        logger.debug(
            "getProgramAccounts %s (dataSize=%s): %d accounts", program_id, data_size, len(out)
        )
        return out

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> RPCClient:
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.close()


def _parse_account(item: Any) -> RawAccount:
    try:
        pubkey = item["pubkey"]
        data0, enc = item["account"]["data"]
    except (KeyError, TypeError, ValueError) as e:
        raise ProtocolError(f"malformed account entry: {item!r}") from e
    if not isinstance(pubkey, str):
        raise ProtocolError(f"malformed account pubkey: {pubkey!r}")
    if enc != "base64":
        raise ProtocolError(f"unexpected encoding {enc}")
    try:
        raw = base64.b64decode(data0, validate=True)
    except (ValueError, TypeError) as e:
        raise ProtocolError(f"account {pubkey} data is not valid base64") from e
    return RawAccount(pubkey=pubkey, data=raw)
