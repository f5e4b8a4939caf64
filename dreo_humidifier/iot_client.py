"""Route realtime cloud messages to humidifier devices and send commands."""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import voluptuous as vol

from .const import REPORT_METHODS

_LOGGER = logging.getLogger(__name__)

ReportCallback = Callable[[dict[str, Any]], Any]

MESSAGE_SCHEMA = vol.Schema(
    {
        vol.Required("deviceId"): vol.All(str, vol.Length(min=1)),
        vol.Required("method"): str,
        vol.Required("reported"): dict,
    },
    extra=vol.ALLOW_EXTRA,
)


class Transport(Protocol):
    """Realtime channel provided by the host (websocket helper)."""

    async def async_subscribe(
        self, callback: Callable[[Any], None]
    ) -> Callable[[], None] | None:
        """Register ``callback`` for every incoming message."""

    def control(self, device_id: str, fields: dict[str, Any]) -> Awaitable[Any] | None:
        """Send ``fields`` to ``device_id`` as one control message."""


@dataclass(frozen=True, slots=True)
class IoTClientConfig:
    """Runtime configuration for the IoT client."""

    enabled: bool = True
    methods: Sequence[str] = REPORT_METHODS
    debug: bool = False


class IoTClient:
    """Decode, validate and route device reports; forward commands."""

    def __init__(
        self,
        *,
        transport: Transport,
        config: IoTClientConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Bind the transport and configuration."""

        self._transport = transport
        self._config = config or IoTClientConfig()
        self._logger = logger or _LOGGER
        self._devices: dict[str, ReportCallback] = {}
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def device_ids(self) -> list[str]:
        """Return the devices currently routed."""

        return list(self._devices)

    def register_device(self, device_id: str, callback: ReportCallback) -> None:
        """Route reports for ``device_id`` to ``callback``."""

        self._devices[device_id] = callback

    def unregister_device(self, device_id: str) -> None:
        """Stop routing reports for ``device_id``."""

        self._devices.pop(device_id, None)

    async def async_start(self) -> None:
        """Subscribe to the transport if the client is enabled."""

        if not self._config.enabled or self._unsubscribe is not None:
            return
        unsubscribe = await self._transport.async_subscribe(self.handle_message)
        if callable(unsubscribe):
            self._unsubscribe = unsubscribe

    async def async_stop(self) -> None:
        """Unsubscribe from the transport."""

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def async_send_command(self, device_id: str, fields: dict[str, Any]) -> None:
        """Send ``fields`` to ``device_id`` as a single control message."""

        if not self._config.enabled:
            msg = "IoT client is disabled"
            raise RuntimeError(msg)
        result = self._transport.control(device_id, dict(fields))
        if inspect.isawaitable(result):
            await result

    def command_sender(
        self, device_id: str
    ) -> Callable[[dict[str, Any]], Awaitable[None]]:
        """Return a sender bound to ``device_id`` for a device facade."""

        async def _sender(fields: dict[str, Any]) -> None:
            await self.async_send_command(device_id, fields)

        return _sender

    def handle_message(self, payload: Any) -> bool:
        """Route one raw message; return True when it reached a device."""

        message = self.parse_message(payload)
        if message is None:
            return False
        callback = self._devices.get(message["deviceId"])
        if callback is None:
            return False
        if self._config.debug:
            self._logger.debug(
                "Incoming message for %s: %s", message["deviceId"], message["reported"]
            )
        callback(message["reported"])
        return True

    def parse_message(self, payload: Any) -> dict[str, Any] | None:
        """Return a validated report message, or ``None`` to drop it."""

        data = self._decode_payload(payload)
        if not isinstance(data, Mapping):
            return None
        data = dict(data)
        if "deviceId" not in data and "devicesn" in data:
            data["deviceId"] = data["devicesn"]
        try:
            message = MESSAGE_SCHEMA(data)
        except vol.Invalid as err:
            self._logger.debug("Dropping malformed message: %s", err)
            return None
        if message["method"] not in self._config.methods:
            return None
        return message

    def _decode_payload(self, payload: Any) -> Any:
        """Best-effort JSON decode for websocket payloads."""

        data = payload
        if isinstance(payload, bytes | bytearray):
            try:
                data = payload.decode()
            except UnicodeDecodeError:
                self._logger.debug("Dropping undecodable message")
                return None
        if isinstance(data, str):
            try:
                return json.loads(data)
            except json.JSONDecodeError as err:
                self._logger.error("Failed to parse incoming message: %s", err)
                return None
        return data
