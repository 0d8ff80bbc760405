"""
Gateway transaction relay client.

Submits signed transactions through the relay's optimized delivery
path (Jito bundles, RPC fan-out) and reports tip refunds.
"""

import base64
import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError
from solders.transaction import VersionedTransaction

from relayarb.config.constants import (
    ENDPOINT_TX_BUILD,
    ENDPOINT_TX_SEND,
    GATEWAY_API_URL,
    RELAY_BUILD_TIMEOUT_MS,
    RELAY_SEND_TIMEOUT_MS,
)
from relayarb.core.errors import RelayError
from relayarb.exchange.client import HttpClient
from relayarb.exchange.models import BuildOptions, SendOptions, SendResponse
from relayarb.utils.time import LatencyTimer


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RelaySendResult:
    """Outcome of a relay submission."""

    signature: str
    method: str
    refunded: bool
    latency_ms: int
    raw: dict[str, Any] = field(default_factory=dict, compare=False)


def encode_transaction(transaction: VersionedTransaction) -> str:
    """Serialize a transaction as base64 wire bytes."""
    return base64.b64encode(bytes(transaction)).decode("ascii")


class GatewayClient(HttpClient):
    """
    Relay client for the Gateway API.

    Features:
    - Bearer authentication
    - Validated build/send option sets
    - Wall-clock latency capture on send
    """

    error_class = RelayError

    def __init__(
        self,
        api_key: str,
        network: str,
        base_url: str = GATEWAY_API_URL,
        build_options: BuildOptions | None = None,
        send_options: SendOptions | None = None,
    ) -> None:
        """
        Initialize the relay client.

        Args:
            api_key: Gateway bearer token.
            network: Cluster tag sent with every request.
            base_url: Gateway API root.
            build_options: Defaults for build().
            send_options: Defaults for send().
        """
        super().__init__(base_url, headers={"Authorization": f"Bearer {api_key}"})
        self._network = network
        self._build_options = build_options or BuildOptions()
        self._send_options = send_options or SendOptions()

    async def build(
        self,
        transaction: VersionedTransaction,
        options: BuildOptions | None = None,
    ) -> dict[str, Any]:
        """
        Let the relay add tip and priority-fee instructions.

        Args:
            transaction: Transaction to optimize; signatures not required.
            options: Overrides the client's default build options.

        Returns:
            Relay response payload.

        Raises:
            RelayError: On transport failure or rejection.
        """
        opts = options or self._build_options
        body = {
            "transaction": encode_transaction(transaction),
            "network": self._network,
            **opts.to_payload(),
        }

        data = await self._request("POST", ENDPOINT_TX_BUILD, RELAY_BUILD_TIMEOUT_MS, json=body)
        logger.debug(f"Relay build ok ({opts.delivery_method})")
        return data

    async def send(
        self,
        transaction: VersionedTransaction,
        options: SendOptions | None = None,
    ) -> RelaySendResult:
        """
        Submit a signed transaction.

        Args:
            transaction: Fully signed transaction.
            options: Overrides the client's default send options.

        Returns:
            RelaySendResult with signature, delivery method, refund flag
            and call latency.

        Raises:
            RelayError: On transport failure, rejection or missing signature.
        """
        opts = options or self._send_options
        body = {
            "transaction": encode_transaction(transaction),
            "network": self._network,
            **opts.to_payload(),
        }

        with LatencyTimer() as timer:
            data = await self._request("POST", ENDPOINT_TX_SEND, RELAY_SEND_TIMEOUT_MS, json=body)

        try:
            parsed = SendResponse.model_validate(data)
        except ValidationError as e:
            raise RelayError("Relay response carried no signature") from e

        logger.info(
            f"Relayed {parsed.signature[:16]}... via {parsed.method} "
            f"in {timer.latency_ms}ms (refunded={parsed.refunded})"
        )

        return RelaySendResult(
            signature=parsed.signature,
            method=parsed.method,
            refunded=parsed.refunded,
            latency_ms=timer.latency_ms,
            raw=data,
        )

    @property
    def network(self) -> str:
        """Cluster tag sent with every request."""
        return self._network
