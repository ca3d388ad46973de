"""Synchronous Polygon market-data client."""

from __future__ import annotations

from typing import Any

import httpx

from polymux.api import Exchanges, FlatFiles, Markets, Options, Stocks, TechnicalIndicators
from polymux.config import Config, load_config
from polymux.transport import HttpxTransport, Transport


class Client:
    """Entry point holding config and one shared transport.

    Handlers are cheap views over the transport; each property access returns
    a fresh one. Pass ``transport`` to replace HTTP entirely, or
    ``http_transport`` to keep httpx but swap its network layer.
    """

    def __init__(
        self,
        config: Config | None = None,
        transport: Transport | None = None,
        *,
        http_transport: httpx.BaseTransport | None = None,
        s3_client: Any | None = None,
    ) -> None:
        self._config = config or load_config()
        self._transport = transport
        self._owns_transport = transport is None
        self._http_transport = http_transport
        self._s3_client = s3_client

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    @property
    def config(self) -> Config:
        return self._config

    @property
    def transport(self) -> Transport:
        if self._transport is None:
            self._transport = HttpxTransport(
                self._config.base_url,
                self._config.api_key,
                timeout_seconds=self._config.timeout_seconds,
                http_transport=self._http_transport,
            )
        return self._transport

    @property
    def options(self) -> Options:
        return Options(self.transport, self._config)

    @property
    def stocks(self) -> Stocks:
        return Stocks(self.transport, self._config)

    @property
    def markets(self) -> Markets:
        return Markets(self.transport, self._config)

    @property
    def exchanges(self) -> Exchanges:
        return Exchanges(self.transport, self._config)

    @property
    def technical_indicators(self) -> TechnicalIndicators:
        return TechnicalIndicators(self.transport, self._config)

    @property
    def flat_files(self) -> FlatFiles:
        return FlatFiles(self._config, s3_client=self._s3_client)

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._transport is not None and self._owns_transport:
            self._transport.close()
            self._transport = None
