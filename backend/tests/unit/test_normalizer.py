"""
Unit Tests — Response Normalizer
════════════════════════════════
Coverage targets:
  ✅ ```json fenced block with surrounding prose
  ✅ bare object with leading/trailing prose (first "{" … last "}")
  ✅ pure JSON
  ✅ complianceScore outside 0–100 → ReportParseError (never clamped)
  ✅ complianceScore as bool, string or fractional number → ReportParseError
  ✅ invalid enum / missing field → ReportParseError
  ✅ absent or unbalanced braces → ReportParseError carrying the raw reply
  ✅ normalize(serialize(report)) == report
  ✅ issue order preserved
"""

from __future__ import annotations

import json

import pytest

from gmpc_audit.audit.normalizer import extract_json_candidate, normalize_reply
from gmpc_audit.core.exceptions import ReportParseError
from gmpc_audit.schemas.audit import IssueCategory, IssueType

MINIMAL = '{"summary":"ok","detectedEquipment":null,"complianceScore":100,"gmpcNotes":"","issues":[]}'


@pytest.mark.unit
class TestRecovery:

    @pytest.mark.parametrize("wrapper", [
        "```json\n{body}\n```",
        "Here is the audit:\n```json\n{body}\n```\nLet me know if you need more.",
        "```JSON {body} ```",
        "Note {{not this}}\n```json\n{body}\n```",
    ])
    def test_fenced_block_wins(self, wrapper):
        report = normalize_reply(wrapper.format(body=MINIMAL))
        assert report.summary == "ok"
        assert report.detected_equipment is None
        assert report.compliance_score == 100
        assert report.gmpc_notes == ""
        assert report.issues == ()

    def test_prose_around_bare_object(self):
        report = normalize_reply(f"Sure! {MINIMAL} Hope this helps.")
        assert report.compliance_score == 100

    def test_pure_json(self, valid_reply, valid_reply_payload):
        report = normalize_reply(valid_reply)
        assert report.to_wire()["issues"][0]["title"] == valid_reply_payload["issues"][0]["title"]

    def test_candidate_strips_stray_fence_markers(self):
        assert extract_json_candidate("```json\nnot json\n```") == "not json"
        assert extract_json_candidate("no braces here") == "no braces here"

    def test_first_to_last_brace_span(self):
        assert extract_json_candidate('x {"a": {"b": 1}} y') == '{"a": {"b": 1}}'

    def test_issue_order_preserved(self, valid_reply):
        report = normalize_reply(valid_reply)
        assert [i.type for i in report.issues] == [IssueType.ERROR, IssueType.WARNING]
        assert report.issues[0].category == IssueCategory.EQUIPMENT
        assert report.issues[1].location is None
        assert report.error_count == 1


@pytest.mark.unit
class TestRejection:

    @pytest.mark.parametrize("score", [-1, 101, 250])
    def test_score_out_of_range(self, valid_reply_payload, score):
        valid_reply_payload["complianceScore"] = score
        with pytest.raises(ReportParseError):
            normalize_reply(json.dumps(valid_reply_payload))

    @pytest.mark.parametrize("score", [True, False, "85", "", 85.5])
    def test_score_must_be_integral_number(self, valid_reply_payload, score):
        valid_reply_payload["complianceScore"] = score
        with pytest.raises(ReportParseError):
            normalize_reply(json.dumps(valid_reply_payload))

    def test_integral_float_score_accepted(self, valid_reply_payload):
        valid_reply_payload["complianceScore"] = 80.0
        assert normalize_reply(json.dumps(valid_reply_payload)).compliance_score == 80

    def test_invalid_enum(self, valid_reply_payload):
        valid_reply_payload["issues"][0]["category"] = "gmpc"
        with pytest.raises(ReportParseError):
            normalize_reply(json.dumps(valid_reply_payload))

    def test_missing_required_field(self, valid_reply_payload):
        del valid_reply_payload["gmpcNotes"]
        with pytest.raises(ReportParseError):
            normalize_reply(json.dumps(valid_reply_payload))

    @pytest.mark.parametrize("raw", [
        "",
        "The model refused to answer.",
        '{"summary": "truncated", "complianceScore": 9',
        '"summary": "ok"}',
    ])
    def test_unrecoverable_reply(self, raw):
        with pytest.raises(ReportParseError) as exc_info:
            normalize_reply(raw)
        assert exc_info.value.raw_reply == raw

    def test_none_reply(self):
        with pytest.raises(ReportParseError):
            normalize_reply(None)

    def test_raw_reply_kept_verbatim(self):
        raw = "```json\n{broken\n```"
        with pytest.raises(ReportParseError) as exc_info:
            normalize_reply(raw)
        assert exc_info.value.raw_reply == raw

    def test_extra_keys_ignored(self, valid_reply_payload):
        valid_reply_payload["confidence"] = "high"
        report = normalize_reply(json.dumps(valid_reply_payload))
        assert "confidence" not in report.to_wire()


@pytest.mark.unit
class TestIdempotence:

    def test_reserialize_then_normalize_is_equal(self, valid_reply):
        first = normalize_reply(valid_reply)
        second = normalize_reply(json.dumps(first.to_wire()))
        assert second == first
        assert second.to_wire() == first.to_wire()

    def test_wire_format_is_camel_case(self, valid_reply):
        wire = normalize_reply(valid_reply).to_wire()
        assert set(wire) == {"summary", "detectedEquipment", "complianceScore", "gmpcNotes", "issues"}
