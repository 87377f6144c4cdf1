"""
Audit Pipeline Package

  prompts.py       five-dimension instruction + per-request task prompt
  normalizer.py    raw model reply → AuditResponse (or ReportParseError)
  orchestrator.py  validate → build → call → normalize, one call per audit

Public API::

    from gmpc_audit.audit import audit_process

    report = await audit_process(context, environment_default_key=settings.api_key)
"""

from gmpc_audit.audit.normalizer import normalize_reply
from gmpc_audit.audit.orchestrator import AuditOrchestrator, AuditStage, audit_process
from gmpc_audit.audit.prompts import build_instruction, build_task_prompt

__all__ = [
    "AuditOrchestrator",
    "AuditStage",
    "audit_process",
    "build_instruction",
    "build_task_prompt",
    "normalize_reply",
]
