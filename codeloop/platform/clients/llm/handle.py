"""Shared, swappable reference to the active gateway.

Changing provider or credentials builds a new gateway and swaps it in.
Runs already in progress keep the gateway they captured at start.
"""

import threading

from codeloop.platform.agent.exceptions import TransportError
from codeloop.platform.clients.llm.gateway import LLMGateway


class GatewayHandle:
    """Lock-protected holder of the current LLMGateway."""

    def __init__(self, gateway: LLMGateway | None = None) -> None:
        self._gateway = gateway
        self._lock = threading.Lock()

    @property
    def is_configured(self) -> bool:
        return self._gateway is not None

    def current(self) -> LLMGateway:
        """Return the active gateway.

        Raises:
            TransportError: If no gateway has been configured yet
        """
        with self._lock:
            gateway = self._gateway
        if gateway is None:
            raise TransportError("API key not set")
        return gateway

    def swap(self, gateway: LLMGateway) -> LLMGateway | None:
        """Replace the active gateway.

        Args:
            gateway: Gateway built from the new provider configuration

        Returns:
            The previous gateway, which the caller may close once its runs finish
        """
        with self._lock:
            previous, self._gateway = self._gateway, gateway
        return previous
