"""Tests for Markdown document rules (DOC001, DOC002)."""

from doublecheck.core.documents import DocumentRules
from doublecheck.core.models import CodeFence, DocSection, Location, Severity


def section(title: str, level: int, lineno: int, *body: str, path: str = "docs/guide.md") -> DocSection:
    return DocSection(title=title, level=level, location=Location(path, lineno, title), body_lines=body)


def test_heading_with_body_passes() -> None:
    assert DocumentRules().check_sections([section("Intro", 1, 1, "", "Some text.")]) == []


def test_empty_heading_is_doc001() -> None:
    findings = DocumentRules().check_sections(
        [section("Naming", 2, 3, "", "  "), section("Doubles", 2, 5, "text")]
    )
    assert [(f.rule_id, f.location.lineno) for f in findings] == [("DOC001", 3)]
    assert findings[0].severity == Severity.WARNING
    assert findings[0].message == "Heading 'Naming' has no body text"


def test_heading_followed_by_subheading_passes() -> None:
    sections = [section("Doubles", 2, 1), section("Fakes", 3, 2, "Use fakes.")]
    assert DocumentRules().check_sections(sections) == []


def test_last_empty_heading_is_reported() -> None:
    findings = DocumentRules().check_sections([section("Intro", 1, 1, "text"), section("TODO", 2, 4)])
    assert [f.location.symbol for f in findings] == ["TODO"]


def test_subheading_in_another_file_does_not_count() -> None:
    sections = [section("Doubles", 2, 1), section("Fakes", 3, 1, "text", path="docs/other.md")]
    assert [f.rule_id for f in DocumentRules().check_sections(sections)] == ["DOC001"]


def test_fence_without_language_is_doc002() -> None:
    fences = [
        CodeFence(info="python", location=Location("docs/guide.md", 4), body="x = 1"),
        CodeFence(info="", location=Location("docs/guide.md", 9), body="plain"),
    ]
    findings = DocumentRules.check_fences(fences)

    assert [(f.rule_id, f.location.lineno) for f in findings] == [("DOC002", 9)]
    assert findings[0].severity == Severity.INFO


def test_untagged_fences_get_distinct_symbols():
    fences = [
        CodeFence(info="", location=Location("docs/guide.md", 3), body="first"),
        CodeFence(info="", location=Location("docs/guide.md", 9), body="second"),
        CodeFence(info="", location=Location("docs/guide.md", 15), body="first"),
    ]
    symbols = [f.location.symbol for f in DocumentRules.check_fences(fences)]

    assert len(set(symbols)) == 3
    assert symbols[0].startswith("fence:")
    assert symbols[2] == symbols[0] + "#2"


def test_fence_symbol_ignores_line_moves():
    before = DocumentRules.check_fences(
        [CodeFence(info="", location=Location("docs/guide.md", 3), body="plain")]
    )
    after = DocumentRules.check_fences(
        [CodeFence(info="", location=Location("docs/guide.md", 20), body="plain")]
    )
    assert before[0].location.symbol == after[0].location.symbol
