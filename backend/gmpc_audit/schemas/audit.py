"""
Audit request / report schemas.

Wire format is camelCase (``detectedEquipment``, ``complianceScore`` …) —
it is what the model is instructed to emit and what the configuration store
persists for provider settings. Python attributes stay snake_case; both
names are accepted on input.

AuditResponse is the strict contract the Response Normalizer must satisfy:
  - complianceScore is an integer in [0, 100] — out of range is an error,
    never clamped
  - issue type/category must be one of the enumerated values
  - issues keep the order the model returned
Unknown extra keys in a model reply are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from gmpc_audit.models.equipment import EquipmentRegistry


# ---------------------------------------------------------------------------
# Provider settings
# ---------------------------------------------------------------------------

class Provider(str, Enum):
    """Which Provider Client variant serves the audit."""
    GOOGLE   = "google"     # native multimodal, PDFs attached as binary parts
    DEEPSEEK = "deepseek"   # text-only chat completions, PDFs extracted to text


class ProviderSettings(BaseModel):
    """
    provider  : selects the client variant
    base_url  : optional endpoint override (proxy / self-hosted gateway)
    model_name: remote model id; empty means the provider default
    api_key   : explicit credential; empty means "use the environment
                default", which only the GOOGLE provider honours
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    provider:   Provider   = Provider.GOOGLE
    base_url:   str | None = None
    model_name: str        = ""
    api_key:    str | None = None

    def masked(self) -> "ProviderSettings":
        """Copy with the API key reduced to its last four characters."""
        if not self.api_key:
            return self
        return self.model_copy(update={"api_key": f"****{self.api_key[-4:]}"})


# ---------------------------------------------------------------------------
# Audit request context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AuditRequestContext:
    """
    Everything one audit call needs, captured at call start.

    production_file : raw PDF bytes of the production record (batching sheet
                      + process record); required unless demo_text is given
    filing_file     : raw PDF bytes of the regulatory filing; optional
    demo_text       : plain-text fallback document
    equipment       : immutable registry snapshot
    settings        : provider settings in force for this call
    """
    production_file: bytes | None
    filing_file:     bytes | None
    demo_text:       str | None
    equipment:       EquipmentRegistry
    settings:        ProviderSettings

    @property
    def has_production_file(self) -> bool:
        return bool(self.production_file)

    @property
    def has_filing_file(self) -> bool:
        return bool(self.filing_file)

    def attachments(self) -> list[tuple[str, bytes]]:
        """Present files in fixed order: production record, then filing."""
        files: list[tuple[str, bytes]] = []
        if self.production_file:
            files.append(("production", self.production_file))
        if self.filing_file:
            files.append(("filing", self.filing_file))
        return files


# ---------------------------------------------------------------------------
# Audit report
# ---------------------------------------------------------------------------

class IssueType(str, Enum):
    ERROR   = "error"
    WARNING = "warning"
    INFO    = "info"


class IssueCategory(str, Enum):
    FORMULA     = "formula"       # batching sheet mass balance
    PROCESS     = "process"       # process-record clarity / logic
    CONSISTENCY = "consistency"   # production vs filing
    EQUIPMENT   = "equipment"     # set-point outside device envelope
    REGULATORY  = "regulatory"    # GMPC citation


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    type:        IssueType
    category:    IssueCategory
    title:       str
    description: str
    location:    str | None = None


class AuditResponse(BaseModel):
    """Structured audit report — produced once per call, read-only afterwards."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    summary:            str
    detected_equipment: str | None = None
    compliance_score:   int        = Field(..., ge=0, le=100)
    gmpc_notes:         str
    issues:             tuple[Issue, ...]

    @field_validator("compliance_score", mode="before")
    @classmethod
    def _score_is_numeric(cls, v):
        # 80.0 is left to the int field, which accepts integral floats
        if isinstance(v, (bool, str)):
            raise ValueError("complianceScore must be a JSON number")
        return v

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.type == IssueType.ERROR)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
