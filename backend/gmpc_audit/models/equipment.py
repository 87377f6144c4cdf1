"""
Equipment Registry — device operating envelopes used by the audit rubric.

An EquipmentProfile names one production device (e.g. "FMA130") and the
ordered list of monitored control points with their permitted range. The
registry is:

  - serialised into the instruction prompt (internal ids stripped), and
  - consulted after the audit to resolve the device the model detected.

Write-time validation lives on the models themselves: a ParameterLimit with
min > max, or a profile with a blank code/name, never gets constructed.

Code matching policy
────────────────────
  ``code`` is the join key between document text and a profile. Codes are
  not required to be unique; lookups are case-insensitive on the trimmed
  code and the FIRST matching profile in registry order wins.
"""

from __future__ import annotations

import json
import uuid
from typing import Iterable, Iterator, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _new_id() -> str:
    return uuid.uuid4().hex


class ParameterLimit(BaseModel):
    """One monitored control point on a device, e.g. main-pot temperature 0–95 ℃."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    id:   str = Field(default_factory=_new_id)
    name: str
    min:  int | float
    max:  int | float
    unit: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: object) -> object:
        # persisted registries may carry numeric ids
        return str(v) if isinstance(v, int) else v

    @model_validator(mode="after")
    def _check_range(self) -> "ParameterLimit":
        if self.min > self.max:
            raise ValueError(
                f"parameter '{self.name}': min ({self.min}) must not exceed max ({self.max})"
            )
        return self

    def contains(self, value: float) -> bool:
        """True when *value* lies inside the inclusive [min, max] envelope."""
        return self.min <= value <= self.max

    def to_prompt_dict(self) -> dict:
        return {"name": self.name, "min": self.min, "max": self.max, "unit": self.unit}


class EquipmentProfile(BaseModel):
    """A named device and its parameter envelope."""

    model_config = ConfigDict(frozen=True)

    id:         str = Field(default_factory=_new_id)
    code:       str
    name:       str
    parameters: tuple[ParameterLimit, ...] = ()

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: object) -> object:
        return str(v) if isinstance(v, int) else v

    @field_validator("code", "name")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @property
    def match_key(self) -> str:
        return self.code.strip().upper()

    def limit(self, name: str) -> ParameterLimit | None:
        """Return the first parameter limit called *name*, if any."""
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def to_prompt_dict(self) -> dict:
        return {
            "code":   self.code,
            "name":   self.name,
            "limits": [p.to_prompt_dict() for p in self.parameters],
        }


class EquipmentRegistry:
    """
    Immutable snapshot of the equipment catalogue.

    One snapshot is captured at the start of an audit call and read for the
    whole call; later edits by the configuration layer produce a new snapshot
    rather than mutating this one.

    Usage::

        registry = EquipmentRegistry.from_json(stored_profiles)
        prompt_json = registry.serialize()
        profile = registry.find_by_code("fma130")
    """

    __slots__ = ("_profiles",)

    def __init__(self, profiles: Iterable[EquipmentProfile] = ()) -> None:
        self._profiles: tuple[EquipmentProfile, ...] = tuple(profiles)

    @classmethod
    def from_json(cls, raw: Sequence[dict]) -> "EquipmentRegistry":
        """Build (and validate) a snapshot from persisted/posted JSON objects."""
        return cls(EquipmentProfile.model_validate(item) for item in raw)

    @property
    def profiles(self) -> tuple[EquipmentProfile, ...]:
        return self._profiles

    def __iter__(self) -> Iterator[EquipmentProfile]:
        return iter(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EquipmentRegistry):
            return NotImplemented
        return self._profiles == other._profiles

    def __repr__(self) -> str:
        return f"EquipmentRegistry(codes={[p.code for p in self._profiles]!r})"

    def find_by_code(self, code: str | None) -> EquipmentProfile | None:
        """First profile whose code matches *code* (case-insensitive, trimmed)."""
        if not code or not code.strip():
            return None
        key = code.strip().upper()
        for profile in self._profiles:
            if profile.match_key == key:
                return profile
        return None

    def serialize(self) -> str:
        """
        Compact JSON array of ``{code, name, limits:[{name,min,max,unit}]}``.

        Internal ids are dropped — they are bookkeeping, not domain facts, and
        must never reach the model. Output is deterministic for a given
        snapshot (registry order, fixed key order, no whitespace).
        """
        return json.dumps(
            [p.to_prompt_dict() for p in self._profiles],
            ensure_ascii=False,
            separators=(",", ":"),
            allow_nan=False,
        )

    def to_json(self) -> list[dict]:
        """Full representation including ids — for persistence only."""
        return [p.model_dump(mode="json") for p in self._profiles]
