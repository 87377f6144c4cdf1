"""
Audit Orchestrator — the single entry point of the audit pipeline.

  ┌─────────────────────────────────────────────────────────┐
  │  audit_process(context, environment_default_key)        │
  │       │                                                 │
  │       ▼                                                 │
  │  VALIDATING   input present? credential resolvable?     │
  │       │        └─ no → PreconditionError (no I/O)        │
  │       ▼                                                 │
  │  BUILDING     registry snapshot → instruction           │
  │               file flags + demo text → task prompt      │
  │       │                                                 │
  │       ▼                                                 │
  │  CALLING      ProviderRouter → ProviderClient.complete  │
  │               (exactly one remote call, no retry)       │
  │       │                                                 │
  │       ▼                                                 │
  │  NORMALIZING  raw reply → AuditResponse                 │
  │       │                                                 │
  │       ▼                                                 │
  │  DONE | FAILED                                          │
  └─────────────────────────────────────────────────────────┘

Errors propagate unchanged (PreconditionError, ExtractionError,
ProviderError, ReportParseError). A failed call returns nothing and mutates
nothing; the caller may simply run it again.

The orchestrator keeps no state between calls, so one instance can serve
concurrent audits. Each call reads only its own AuditRequestContext, whose
equipment registry is an immutable snapshot.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable

from gmpc_audit.audit.normalizer import normalize_reply
from gmpc_audit.audit.prompts import build_instruction, build_task_prompt
from gmpc_audit.core.exceptions import PreconditionError
from gmpc_audit.llm.router import ProviderRouter
from gmpc_audit.schemas.audit import AuditRequestContext, AuditResponse

logger = logging.getLogger(__name__)


class AuditStage(str, Enum):
    IDLE        = "idle"
    VALIDATING  = "validating"
    BUILDING    = "building"
    CALLING     = "calling"
    NORMALIZING = "normalizing"
    DONE        = "done"
    FAILED      = "failed"


StageObserver = Callable[[AuditStage], None]


class AuditOrchestrator:
    """
    Usage::

        orchestrator = AuditOrchestrator()
        report = await orchestrator.run(context, environment_default_key=settings.api_key)

    ``observer`` (optional) is called with every stage the call enters,
    ending with DONE or FAILED.
    """

    def __init__(
        self,
        router:   ProviderRouter | None = None,
        observer: StageObserver | None = None,
    ) -> None:
        self._router   = router or ProviderRouter()
        self._observer = observer

    async def run(
        self,
        context:                 AuditRequestContext,
        environment_default_key: str | None = None,
    ) -> AuditResponse:
        t0 = time.perf_counter()
        self._enter(AuditStage.IDLE)
        try:
            report = await self._run(context, environment_default_key)
        except Exception:
            self._enter(AuditStage.FAILED)
            raise
        self._enter(AuditStage.DONE)

        logger.info(
            "AuditOrchestrator | done provider=%s score=%d issues=%d errors=%d elapsed_ms=%.1f",
            context.settings.provider.value, report.compliance_score,
            len(report.issues), report.error_count,
            (time.perf_counter() - t0) * 1000,
        )
        return report

    async def _run(
        self,
        context:                 AuditRequestContext,
        environment_default_key: str | None,
    ) -> AuditResponse:
        # ── Validating ───────────────────────────────────────────────────
        self._enter(AuditStage.VALIDATING)
        if not context.has_production_file and not context.demo_text:
            raise PreconditionError(
                "Upload the production record PDF or load the demo text before auditing"
            )

        api_key = self._router.resolve_api_key(context.settings, environment_default_key)
        if not api_key:
            raise PreconditionError(
                f"No API key configured for provider '{context.settings.provider.value}'"
            )

        # ── Building ─────────────────────────────────────────────────────
        self._enter(AuditStage.BUILDING)
        instruction = build_instruction(context.equipment)
        task_prompt = build_task_prompt(context.has_filing_file, context.demo_text)

        # ── Calling ──────────────────────────────────────────────────────
        self._enter(AuditStage.CALLING)
        client = self._router.build_client(context.settings.provider)
        raw_reply = await client.complete(context, api_key, instruction, task_prompt)

        # ── Normalizing ──────────────────────────────────────────────────
        self._enter(AuditStage.NORMALIZING)
        report = normalize_reply(raw_reply)

        self._check_detected_equipment(context, report)
        return report

    @staticmethod
    def _check_detected_equipment(context: AuditRequestContext, report: AuditResponse) -> None:
        """Log whether the device the model identified is in the registry snapshot."""
        if not report.detected_equipment:
            return
        profile = context.equipment.find_by_code(report.detected_equipment)
        if profile is None:
            logger.warning(
                "AuditOrchestrator | detected equipment %r is not in the registry (%d profiles)",
                report.detected_equipment, len(context.equipment),
            )
        else:
            logger.info(
                "AuditOrchestrator | detected equipment %s matched profile '%s' (%d limits)",
                profile.code, profile.name, len(profile.parameters),
            )

    def _enter(self, stage: AuditStage) -> None:
        logger.debug("AuditOrchestrator | stage=%s", stage.value)
        if self._observer is not None:
            self._observer(stage)


async def audit_process(
    context:                 AuditRequestContext,
    environment_default_key: str | None = None,
) -> AuditResponse:
    """Run one audit with the default provider registry."""
    return await AuditOrchestrator().run(context, environment_default_key)
