"""Exchange reference models."""

from __future__ import annotations

from typing import Any

from polymux import transformers
from polymux.models.base import PolymuxModel


class Exchange(PolymuxModel):
    name: str
    asset_class: str
    id: int | None = None
    type: str | None = None
    locale: str | None = None
    acronym: str | None = None
    mic: str | None = None
    operating_mic: str | None = None
    participant_id: str | None = None
    url: str | None = None

    @property
    def is_stocks(self) -> bool:
        return self.asset_class == "stocks"

    @property
    def is_options(self) -> bool:
        return self.asset_class == "options"

    @property
    def is_futures(self) -> bool:
        return self.asset_class == "futures"

    @property
    def is_forex(self) -> bool:
        return self.asset_class == "fx"

    @classmethod
    def from_api(cls, raw: Any) -> "Exchange":
        return cls.build(transformers.exchange(raw))
