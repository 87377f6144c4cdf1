"""
Unit Tests — Prompt Builder
═══════════════════════════
Golden outputs pin both templates; any wording change must be deliberate.
"""

from __future__ import annotations

import pytest

from gmpc_audit.audit.prompts import (
    DEMO_TEXT_HEADER,
    FILING_CHECK_REQUIRED,
    FILING_CHECK_SKIPPED,
    NO_DEMO_TEXT,
    build_instruction,
    build_task_prompt,
)
from gmpc_audit.models.equipment import EquipmentProfile, EquipmentRegistry, ParameterLimit


@pytest.mark.unit
class TestBuildInstruction:

    def test_embeds_serialized_registry(self, registry):
        instruction = build_instruction(registry)
        assert registry.serialize() in instruction

    def test_names_all_five_dimensions(self, registry):
        instruction = build_instruction(registry)
        for n in range(1, 6):
            assert f"### Dimension {n}:" in instruction

    def test_output_contract_has_literal_braces(self, registry):
        instruction = build_instruction(registry)
        assert '"complianceScore": 0-100 (integer)' in instruction
        assert '"category": "formula" | "process" | "consistency" | "equipment" | "regulatory"' in instruction
        assert "{equipment_json}" not in instruction

    def test_deterministic(self, registry):
        assert build_instruction(registry) == build_instruction(registry)

    def test_registry_change_changes_instruction(self, registry):
        other = EquipmentRegistry([
            EquipmentProfile(
                code="LAB01", name="Bench mixer",
                parameters=(ParameterLimit(name="Speed", min=0, max=500, unit="rpm"),),
            )
        ])
        assert build_instruction(other) != build_instruction(registry)
        assert '"code":"LAB01"' in build_instruction(other)


@pytest.mark.unit
class TestBuildTaskPrompt:

    def test_golden_without_filing_or_demo(self):
        assert build_task_prompt(False) == (
            "[File description]\n"
            "You received only one file (production record). "
            "Skip the filing consistency check.\n"
            "[DEMO TEXT DATA (reference only, ignore if binary files are present)]\n"
            "No additional text data.\n"
        )

    def test_golden_with_filing_and_demo(self):
        assert build_task_prompt(True, "Oil A 30%") == (
            "[File description]\n"
            "You received two files (production record + filing record). "
            "Run Dimension 4: filing consistency check.\n"
            "[DEMO TEXT DATA (reference only, ignore if binary files are present)]\n"
            "Oil A 30%\n"
        )

    @pytest.mark.parametrize("has_filing", [True, False])
    @pytest.mark.parametrize("demo_text", [None, "", "demo body"])
    def test_filing_statement_is_exact_inverse(self, has_filing, demo_text):
        prompt = build_task_prompt(has_filing, demo_text)
        assert (FILING_CHECK_REQUIRED in prompt) is has_filing
        assert (FILING_CHECK_SKIPPED in prompt) is (not has_filing)

    def test_demo_text_always_labelled_reference_only(self):
        prompt = build_task_prompt(False, "some text")
        assert prompt.index(DEMO_TEXT_HEADER) < prompt.index("some text")

    def test_empty_demo_text_uses_placeholder(self):
        assert NO_DEMO_TEXT in build_task_prompt(True, "")

    def test_deterministic(self):
        assert build_task_prompt(True, "x") == build_task_prompt(True, "x")
