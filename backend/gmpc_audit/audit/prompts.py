"""
Prompt Builder — instruction rubric + per-request task prompt.

Two pure functions, no I/O, no randomness:

  build_instruction(registry)            → system instruction
  build_task_prompt(has_filing, demo)    → user task text

The instruction encodes five fixed audit dimensions:
  1. batching-sheet mass balance         (category "formula")
  2. process-record clarity and logic    (category "process")
  3. equipment-limit checks              (category "equipment")
  4. filing consistency (conditional)    (category "consistency")
  5. GMPC regulatory citation + JSON output contract

Identical inputs always render byte-identical strings; golden tests pin
both templates.
"""

from __future__ import annotations

from typing import Final

from gmpc_audit.models.equipment import EquipmentRegistry


_INSTRUCTION_TEMPLATE: Final[str] = """\
You are a senior cosmetics process engineer (emulsification / manufacturing) and a \
compliance auditor expert in the Chinese Good Manufacturing Practice for Cosmetics (GMPC).

You will receive the content of ONE or TWO files (original PDFs or extracted text):
* File 1 (required): the production record (semi-finished product batch batching sheet + production process record).
* File 2 (optional): the regulatory filing record (filed formula and process summary).

Check the documents strictly along the following FIVE audit dimensions. Every violation \
must be reported as an issue.

### Dimension 1: Batch batching sheet (File 1)
1. Total check: the material percentages (%) must add up to exactly 100%. Otherwise report an ERROR.
2. Quantity check: theoretical quantity = planned quantity x (% / 100). Compare it with the \
formula quantity on the sheet (tolerance +/-0.01 kg).
3. Notes consistency: check that the key notes / precautions do not contradict the process description.

### Dimension 2: Production process record (File 1)
1. Process clarity (GMPC): vague wording such as "appropriate amount", "a little", \
"appropriate time" is not allowed. Report a WARNING.
2. Material consistency: materials, codes and weights named in the process steps must match \
the batching sheet exactly. Otherwise report an ERROR.
3. Emulsification logic: check the oil/water phase temperature difference (usually < 5℃) and \
the addition temperature of heat-sensitive materials (usually < 45℃).

### Dimension 3: Equipment parameter check (File 1 vs equipment registry)
Factory equipment registry:
{equipment_json}

1. Identify the equipment: find the equipment code in File 1.
2. Limit check: any set value outside the equipment Min/Max range is an ERROR.

### Dimension 4: Filing consistency (CRITICAL - only when File 2 is provided)
If a second file (filing record) is provided you MUST run this step; otherwise skip it.
Compare the production record (File 1) against the filing record (File 2) and find every deviation.
1. Formula consistency:
   * Every material name and percentage in File 1 must match the filed formula in File 2 exactly.
   * Any name mismatch (including non-standard aliases) or any percentage deviation is an ERROR \
(title: "Formula deviates from filing").
2. Process consistency:
   * Compare key process parameters (emulsifying temperature, homogenizing time, pH range).
   * A production parameter outside the filed range is an ERROR (title: "Process parameter deviates from filing").

### Dimension 5: Compliance output
* Cite the relevant GMPC articles when explaining issues.
* The output MUST be pure JSON.

---
Output format:
{{
  "summary": "Short summary. If a filing file was provided, state explicitly that the filing consistency comparison was performed.",
  "detectedEquipment": "detected equipment code, or null",
  "complianceScore": 0-100 (integer),
  "gmpcNotes": "compliance recommendations",
  "issues": [
    {{
      "type": "error" | "warning" | "info",
      "category": "formula" | "process" | "consistency" | "equipment" | "regulatory",
      "title": "issue title",
      "description": "details (for filing issues write: filed value vs production value)",
      "location": "where the issue is"
    }}
  ]
}}
"""

FILING_CHECK_REQUIRED: Final[str] = (
    "You received two files (production record + filing record). "
    "Run Dimension 4: filing consistency check."
)
FILING_CHECK_SKIPPED: Final[str] = (
    "You received only one file (production record). "
    "Skip the filing consistency check."
)
DEMO_TEXT_HEADER: Final[str] = (
    "[DEMO TEXT DATA (reference only, ignore if binary files are present)]"
)
NO_DEMO_TEXT: Final[str] = "No additional text data."


def build_instruction(registry: EquipmentRegistry) -> str:
    """Render the five-dimension rubric with the serialised equipment registry."""
    return _INSTRUCTION_TEMPLATE.format(equipment_json=registry.serialize())


def build_task_prompt(has_filing_file: bool, demo_text: str | None = None) -> str:
    """
    State whether the filing check runs, then append the demo text section.

    The demo text is labelled reference-only so a provider that also gets the
    PDFs as attachments does not audit the same content twice.
    """
    filing_line = FILING_CHECK_REQUIRED if has_filing_file else FILING_CHECK_SKIPPED
    return (
        "[File description]\n"
        f"{filing_line}\n"
        f"{DEMO_TEXT_HEADER}\n"
        f"{demo_text if demo_text else NO_DEMO_TEXT}\n"
    )
