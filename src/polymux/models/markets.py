"""Market status and holiday calendar models."""

from __future__ import annotations

from typing import Any

from pydantic import model_validator

from polymux import transformers
from polymux.models.base import PolymuxModel

CLOSED = "closed"
EARLY_CLOSE = "early-close"
EXTENDED_HOURS = "extended-hours"


class MarketStatus(PolymuxModel):
    after_hours: bool | None = None
    pre_market: bool | None = None
    status: str | None = None
    currencies: dict[str, Any] | None = None
    exchanges: dict[str, Any] | None = None
    indices: dict[str, Any] | None = None
    server_time: str | None = None

    @property
    def is_closed(self) -> bool:
        return self.status == CLOSED

    @property
    def is_open(self) -> bool:
        return self.status != CLOSED

    @property
    def is_extended_hours(self) -> bool:
        return self.status == EXTENDED_HOURS

    @classmethod
    def from_api(cls, raw: Any) -> "MarketStatus":
        return cls.build(transformers.market_status(raw))


class Holiday(PolymuxModel):
    date: str | None = None
    exchange: str | None = None
    name: str | None = None
    open: str | None = None
    close: str | None = None
    status: str | None = None

    @model_validator(mode="after")
    def _early_close_has_close_time(self) -> "Holiday":
        if self.status == EARLY_CLOSE and not self.close:
            raise ValueError("early-close holiday requires a close time")
        return self

    @property
    def is_closed(self) -> bool:
        return self.status == CLOSED

    @property
    def is_early_close(self) -> bool:
        return self.status == EARLY_CLOSE

    @classmethod
    def from_api(cls, raw: Any) -> "Holiday":
        return cls.build(transformers.holiday(raw))
