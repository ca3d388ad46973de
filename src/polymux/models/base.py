"""Shared base for immutable API value types."""

from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from polymux.exceptions import ValidationError


class PolymuxModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @classmethod
    def build(cls, attrs: Any) -> Self:
        """Validate a transformed attribute map, raising polymux's ValidationError."""
        try:
            return cls.model_validate(attrs)
        except PydanticValidationError as exc:
            errors = exc.errors(include_url=False, include_context=False)
            fields = sorted({".".join(str(part) for part in err["loc"]) for err in errors})
            raise ValidationError(
                f"invalid {cls.__name__} payload: {', '.join(fields) or 'root'}",
                details={"model": cls.__name__, "errors": [_error_summary(err) for err in errors]},
            ) from exc


def _error_summary(error: dict[str, Any]) -> dict[str, Any]:
    return {
        "loc": [str(part) for part in error.get("loc", ())],
        "type": error.get("type"),
        "msg": error.get("msg"),
    }
