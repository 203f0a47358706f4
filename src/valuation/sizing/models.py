"""Data models for size normalization."""

from __future__ import annotations

from dataclasses import dataclass

from ...common.models import Gender, SizeSystem


@dataclass(frozen=True)
class SizeConversion:
    """Result of converting a provider size into canonical UK sizing.

    ``value`` is a float for numeric sizes and the original text for
    pass-through values (e.g. "OS"). ``confident`` is False when the source
    system was unsupported or the gender had to be assumed.
    """

    value: float | str
    source_system: SizeSystem | None
    gender: Gender
    confident: bool = True

    @property
    def is_numeric(self) -> bool:
        return isinstance(self.value, float)

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "source_system": self.source_system.value if self.source_system else None,
            "gender": self.gender.value,
            "confident": self.confident,
        }
