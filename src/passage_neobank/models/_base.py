"""Base model and enum for Passage API payloads.

Every wire model inherits from :class:`PassageModel` which provides:

* ``alias_generator=to_camel`` so camelCase API keys map
  automatically to snake_case fields.
* ``frozen=True``; payloads are never mutated after construction.

String enums inherit from :class:`PassageEnum` which adds an ``UNKNOWN``
member and a ``_missing_`` hook that returns ``UNKNOWN`` for any value
without a mapped member, so new server-side values never break parsing.
"""

from __future__ import annotations

import enum
import math
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def coerce_amount(value: Any) -> Any:
    """Render numeric money / rate values as strings.

    Lenders mostly send amounts as display strings (``"$325.00"``,
    ``"12.99%"``) but some send bare numbers. Booleans are left alone so
    validation still rejects them.
    """
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, float):
        if math.isnan(value):
            return None
        return repr(value)
    if isinstance(value, (int, Decimal)):
        return str(value)
    return value


AmountString = Annotated[str | None, BeforeValidator(coerce_amount)]
"""Annotated type that accepts amounts as strings or numbers and stores a string."""


class PassageEnum(enum.StrEnum):
    """Base for Passage string enums.

    Every subclass **must** define ``UNKNOWN``.
    """

    @classmethod
    def _missing_(cls, value: object) -> PassageEnum:
        # pylint: disable=no-member
        unknown: PassageEnum = cls.UNKNOWN  # type: ignore[attr-defined]
        return unknown


class PassageModel(BaseModel):
    """Base for Passage wire models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump using camelCase wire keys, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        """Compact camelCase JSON, as sent over the wire."""
        return self.model_dump_json(by_alias=True, exclude_none=True)
