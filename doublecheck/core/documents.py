"""Rules for Markdown guides about testing.

Guides are read by people who copy their snippets, so a heading with
nothing under it or a code block without a language are worth flagging.
"""

import hashlib
from collections import Counter
from dataclasses import replace

from .models import CodeFence, DocSection, Finding, Severity


class DocumentRules:
    """Checks the structure of a Markdown document.

    Pure decision logic, no side effects.
    """

    def check_sections(self, sections: list[DocSection]) -> list[Finding]:
        """DOC001: every heading needs body text or a sub-heading.

        Sections must be given in document order for one file.
        """
        findings: list[Finding] = []
        for index, section in enumerate(sections):
            if any(line.strip() for line in section.body_lines):
                continue
            following = sections[index + 1] if index + 1 < len(sections) else None
            if (
                following is not None
                and following.location.path == section.location.path
                and following.level > section.level
            ):
                continue
            findings.append(
                Finding(
                    rule_id="DOC001",
                    severity=Severity.WARNING,
                    message=f"Heading '{section.title}' has no body text",
                    location=section.location,
                )
            )
        return findings

    @staticmethod
    def check_fences(fences: list[CodeFence]) -> list[Finding]:
        """DOC002: fenced code blocks should name their language.

        Each finding names its block by a hash of the body, so accepting
        one untagged block leaves the others reported.
        """
        findings: list[Finding] = []
        seen: Counter[tuple[str, str]] = Counter()
        for fence in fences:
            if fence.info:
                continue
            digest = hashlib.sha256(fence.body.strip().encode()).hexdigest()[:12]
            seen[(fence.location.path, digest)] += 1
            repeat = seen[(fence.location.path, digest)]
            symbol = f"fence:{digest}" if repeat == 1 else f"fence:{digest}#{repeat}"
            findings.append(
                Finding(
                    rule_id="DOC002",
                    severity=Severity.INFO,
                    message="Code block has no language tag; its snippets are not checked",
                    location=replace(fence.location, symbol=symbol),
                )
            )
        return findings
