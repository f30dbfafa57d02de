"""JSON-RPC client for the ledger gateway.

The gateway fronts a blockchain node and owns message encoding and signing.
This client is intentionally thin: each helper maps to a gateway method,
forwards typed parameters and surfaces errors clearly. No retry or backoff is
applied here; callers see either a result or an exception.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

import requests
from requests import RequestException, Response

from .amounts import AmountError, parse_amount
from .config import NetworkConfig
from .model import AccountSnapshot, ActivationState, ContractRef, KeyPair

logger = logging.getLogger(__name__)


class RPCError(RuntimeError):
    """Raised when the gateway responds with a JSON-RPC error."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message


class RPCTransportError(RuntimeError):
    """Raised when the gateway is unreachable or returns malformed data."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LedgerTimeoutError(RPCTransportError):
    """Raised when a submitted message is not confirmed in time."""


def format_rpc_hint(error_obj: dict[str, Any] | RPCError | None) -> str | None:
    """Return a human-friendly hint for common gateway errors."""

    if error_obj is None:
        return None

    message = ""
    if isinstance(error_obj, RPCError):
        message = error_obj.message
    elif isinstance(error_obj, dict):
        message = str(error_obj.get("message", ""))
    lowered = message.lower()

    if "low balance" in lowered or "insufficient" in lowered:
        return (
            "The sending account cannot pay for the message. Top it up from the giver "
            "or lower the value you are sending."
        )
    if "does not exist" in lowered or "not found" in lowered:
        return "The account is not known to the network yet. Check the address and network URL."
    if "signature" in lowered or "unauthorized" in lowered:
        return (
            "The message signature was rejected. Make sure the key file matches the "
            "contract's owner keys."
        )
    if "expired" in lowered:
        return "The message expired before it was processed. Retry, or raise net.timeout."
    return None


@dataclass(frozen=True)
class ConfirmationHandle:
    """Reference to a submitted message, used to wait for its transaction."""

    message_id: str
    address: str


class LedgerClient(Protocol):
    def query_snapshot(self, address: str, name: str | None = None) -> AccountSnapshot: ...

    def submit_value_transfer(
        self, giver: ContractRef, to: str, amount: int
    ) -> ConfirmationHandle: ...

    def submit_deployment(
        self, contract: ContractRef, constructor_args: Mapping[str, Any]
    ) -> ConfirmationHandle: ...

    def call_method(
        self,
        contract: ContractRef,
        method: str,
        params: Mapping[str, Any],
        keys: KeyPair | None = None,
    ) -> ConfirmationHandle: ...

    def wait_for_confirmation(self, handle: ConfirmationHandle) -> None: ...

    def close(self) -> None: ...


def _signer(keys: KeyPair | None) -> dict[str, Any]:
    if keys is None:
        return {"type": "None"}
    return {"type": "Keys", "keys": keys.to_jsonable()}


class LedgerRPCClient:
    """Typed JSON-RPC client for a ledger gateway.

    ``url`` is the gateway root; requests are POSTed to ``{url}/rpc``.
    ``timeout`` bounds both individual HTTP requests and confirmation waits.
    """

    def __init__(self, config: NetworkConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self._session = session or requests.Session()
        self._url = f"{config.url.rstrip('/')}/rpc"
        self._closed = False

    def call(self, method: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Perform a JSON-RPC request."""

        payload = {
            "jsonrpc": "2.0",
            "id": str(uuid.uuid4()),
            "method": method,
            "params": dict(params or {}),
        }
        logger.debug("RPC call %s params=%s", method, params)
        try:
            response = self._session.post(
                self._url,
                data=json.dumps(payload),
                headers={"content-type": "application/json"},
                timeout=self.config.timeout,
            )
        except RequestException as exc:
            logger.error(
                "RPC connection failed: %s",
                exc,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            raise RPCTransportError(
                f"Connection to {self.config.url} failed. Ensure the gateway is running and "
                "net.url (or DEPLOYKIT_NET_URL) points to it."
            ) from exc
        try:
            self._raise_for_status(response)
        except requests.HTTPError as exc:
            raise RPCTransportError(
                "Gateway returned an HTTP error; check net.url and that the gateway is healthy.",
                status_code=response.status_code,
            ) from exc
        try:
            result = response.json()
        except ValueError as exc:
            logger.debug("RPC JSON parse error: %s", response.text, exc_info=True)
            raise RPCTransportError("Gateway returned malformed JSON") from exc
        if not isinstance(result, dict):
            raise RPCTransportError("Gateway returned a non-object JSON-RPC response")
        if result.get("error"):
            error = result["error"]
            raise RPCError(error.get("code", -1), error.get("message", "unknown"))
        return result.get("result")

    def _raise_for_status(self, response: Response) -> None:
        # JSON-RPC errors are reported in the body with HTTP 200; anything else
        # is a transport problem, logged with its body to aid debugging.
        if not response.ok:
            try:
                err_body = response.json()
            except ValueError:
                err_body = response.text

            logger.error("RPC HTTP error %s from %s", response.status_code, response.url)
            logger.error("RPC error body: %s", err_body)
            if response.status_code == 401:
                raise RPCTransportError(
                    "Unauthorized (401). The gateway refused the request; check its access settings.",
                    status_code=response.status_code,
                )
        response.raise_for_status()

    def query_snapshot(self, address: str, name: str | None = None) -> AccountSnapshot:
        """Fetch a fresh snapshot of ``address``."""

        account = self.call("getaccount", {"address": address})
        if not account:
            return AccountSnapshot(
                address=address,
                activation=ActivationState.NON_EXISTENT,
                balance=0,
                name=name,
            )
        if not isinstance(account, dict):
            raise RPCTransportError(f"Unexpected getaccount payload for {address}: {account!r}")
        if account.get("acc_type") is None:
            raise RPCTransportError(f"Malformed account data for {address}: missing acc_type")
        try:
            activation = ActivationState.from_ledger(account["acc_type"])
            balance = parse_amount(account.get("balance") or 0)
        except (AmountError, ValueError) as exc:
            raise RPCTransportError(f"Malformed account data for {address}: {exc}") from exc
        return AccountSnapshot(
            address=str(account.get("id") or address),
            activation=activation,
            balance=balance,
            name=name,
        )

    def call_method(
        self,
        contract: ContractRef,
        method: str,
        params: Mapping[str, Any],
        keys: KeyPair | None = None,
    ) -> ConfirmationHandle:
        """Send an external message invoking ``method`` on ``contract``."""

        result = self.call(
            "callmethod",
            {
                "address": contract.address,
                "abi": contract.abi,
                "function_name": method,
                "input": dict(params),
                "signer": _signer(keys if keys is not None else contract.keys),
            },
        )
        return self._handle_from(result, contract.address)

    def submit_value_transfer(
        self, giver: ContractRef, to: str, amount: int
    ) -> ConfirmationHandle:
        """Ask ``giver`` to send ``amount`` base units to ``to`` without bounce.

        The returned handle tracks the transaction on the receiving account.
        """

        handle = self.call_method(
            giver,
            "sendTransaction",
            {"dest": to, "value": amount, "bounce": False},
        )
        return ConfirmationHandle(message_id=handle.message_id, address=to)

    def submit_deployment(
        self, contract: ContractRef, constructor_args: Mapping[str, Any]
    ) -> ConfirmationHandle:
        result = self.call(
            "deploy",
            {
                "address": contract.address,
                "abi": contract.abi,
                "image": contract.image,
                "constructor": dict(constructor_args),
                "signer": _signer(contract.keys),
            },
        )
        return self._handle_from(result, contract.address)

    def wait_for_confirmation(self, handle: ConfirmationHandle) -> None:
        """Block until the gateway reports a transaction for ``handle``."""

        deadline = time.monotonic() + self.config.timeout
        while True:
            transaction = self.call(
                "gettransaction",
                {"address": handle.address, "message_id": handle.message_id},
            )
            if transaction:
                if isinstance(transaction, dict) and transaction.get("aborted"):
                    raise RPCError(
                        int(transaction.get("exit_code", -1)),
                        f"Transaction for message {handle.message_id} was aborted",
                    )
                logger.info("Message %s confirmed on %s", handle.message_id, handle.address)
                return
            if time.monotonic() >= deadline:
                raise LedgerTimeoutError(
                    f"Message {handle.message_id} was not confirmed on {handle.address} "
                    f"within {self.config.timeout} seconds"
                )
            logger.debug("Waiting for message %s on %s", handle.message_id, handle.address)
            time.sleep(self.config.poll_interval)

    def close(self) -> None:
        if self._closed:
            return
        self._session.close()
        self._closed = True

    @staticmethod
    def _handle_from(result: Any, address: str) -> ConfirmationHandle:
        message_id = result.get("message_id") if isinstance(result, dict) else result
        if not message_id:
            raise RPCTransportError(f"Gateway did not return a message id for {address}")
        return ConfirmationHandle(message_id=str(message_id), address=address)
