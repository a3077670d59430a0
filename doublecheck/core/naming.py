"""Test naming conventions and the rules that enforce them.

A good test name says what unit is exercised, under which scenario, and
what is expected to happen. This module knows the common ways of
spelling that in Python (snake_case after the ``test`` prefix) and C#
(PascalCase segments joined by underscores).
"""

import re
from collections import defaultdict
from dataclasses import dataclass

from .models import Finding, Language, Severity, TestCase

VAGUE_WORDS = frozenset(
    {
        "it", "works", "foo", "bar", "baz", "stuff", "thing", "things",
        "basic", "simple", "test", "case", "something", "ok", "success",
        "example", "sample", "misc", "check", "run", "demo",
    }
)

_CAMEL_WORDS = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")
_NUMBERED = re.compile(r"(?:^[Tt]est_?|_)\d+$")
_TEST_PREFIX = re.compile(r"^test_?", re.IGNORECASE)


@dataclass(frozen=True)
class Convention:
    """A naming convention, with one pattern per language."""

    name: str
    description: str
    python_pattern: str
    csharp_pattern: str

    def matches(self, test: TestCase) -> bool:
        if test.language == Language.PYTHON:
            return re.fullmatch(self.python_pattern, _TEST_PREFIX.sub("", test.name)) is not None
        return re.fullmatch(self.csharp_pattern, test.name) is not None


CONVENTIONS: dict[str, Convention] = {
    convention.name: convention
    for convention in (
        Convention(
            name="unit_scenario_expected",
            description="UnitOfWork_StateUnderTest_ExpectedBehavior",
            python_pattern=r"[a-z0-9]+(?:_[a-z0-9]+){2,}",
            csharp_pattern=r"[A-Z][A-Za-z0-9]*_[A-Z][A-Za-z0-9]*_[A-Z][A-Za-z0-9]*",
        ),
        Convention(
            name="given_when_then",
            description="Given<Context>_When<Action>_Then<Outcome>",
            python_pattern=r"(?:[a-z0-9_]+_)?given_[a-z0-9_]+_when_[a-z0-9_]+_then_[a-z0-9_]+",
            csharp_pattern=r"(?:\w+_)?Given[A-Z0-9]\w*_When[A-Z0-9]\w*_Then[A-Z0-9]\w*",
        ),
        Convention(
            name="when_then",
            description="When<Action>_Then<Outcome>",
            python_pattern=r"(?:[a-z0-9_]+_)?when_[a-z0-9_]+_then_[a-z0-9_]+",
            csharp_pattern=r"(?:\w+_)?When[A-Z0-9]\w*?_?Then[A-Z0-9]\w*",
        ),
        Convention(
            name="should",
            description="Unit_Should<Behavior>",
            python_pattern=r"(?:[a-z0-9_]+_)?should_[a-z0-9_]+",
            csharp_pattern=r"\w*?_?Should[A-Z0-9]\w*",
        ),
        Convention(
            name="any",
            description="any name",
            python_pattern=r".*",
            csharp_pattern=r".*",
        ),
    )
}


def split_words(name: str) -> list[str]:
    """Split a snake_case, PascalCase or camelCase name into lowercase words.

    A leading ``test`` word is dropped: it carries no meaning.

    Examples:
        'test_save_when_full_raises' → ['save', 'when', 'full', 'raises']
        'Sum_EmptyList_ReturnsZero' → ['sum', 'empty', 'list', 'returns', 'zero']
    """
    words: list[str] = []
    for part in name.split("_"):
        words.extend(word.lower() for word in _CAMEL_WORDS.findall(part))
    if words and words[0] == "test":
        words = words[1:]
    return words


class NamingPolicy:
    """Checks test names against the configured conventions.

    Pure decision logic, no side effects.
    """

    def __init__(
        self,
        conventions: list[str] | None = None,
        custom_pattern: str | None = None,
        min_words: int = 2,
    ):
        names = conventions or ["unit_scenario_expected", "given_when_then", "when_then", "should"]
        unknown = [name for name in names if name not in CONVENTIONS]
        if unknown:
            raise ValueError(
                f"Unknown naming convention(s): {', '.join(unknown)}. "
                f"Choose from: {', '.join(CONVENTIONS)}"
            )
        if min_words < 1:
            raise ValueError(f"min_words must be >= 1, got {min_words}")
        self.conventions = [CONVENTIONS[name] for name in names]
        self.custom_pattern = re.compile(custom_pattern) if custom_pattern else None
        self.min_words = min_words

    def follows_convention(self, test: TestCase) -> bool:
        """Does the name match the custom pattern or any configured convention?"""
        if self.custom_pattern is not None:
            return self.custom_pattern.fullmatch(test.name) is not None
        return any(convention.matches(test) for convention in self.conventions)

    def is_vague(self, test: TestCase) -> bool:
        words = split_words(test.name)
        if len(words) < self.min_words:
            return True
        return all(word in VAGUE_WORDS or word.isdigit() for word in words)

    @staticmethod
    def is_numbered(test: TestCase) -> bool:
        return _NUMBERED.search(test.name) is not None

    def check(self, test: TestCase) -> list[Finding]:
        """Apply the per-test naming rules (NAM001-NAM003)."""
        findings: list[Finding] = []

        if self.is_numbered(test):
            findings.append(
                Finding(
                    rule_id="NAM003",
                    severity=Severity.WARNING,
                    message=(
                        f"Test '{test.name}' is distinguished only by a number; "
                        "name the scenario instead"
                    ),
                    location=test.location,
                )
            )

        if self.is_vague(test):
            findings.append(
                Finding(
                    rule_id="NAM002",
                    severity=Severity.WARNING,
                    message=(
                        f"Test '{test.name}' is too vague to say what it verifies"
                    ),
                    location=test.location,
                )
            )
        elif not self.follows_convention(test):
            if self.custom_pattern is not None:
                expected = f"pattern {self.custom_pattern.pattern!r}"
            else:
                expected = " or ".join(c.description for c in self.conventions)
            findings.append(
                Finding(
                    rule_id="NAM001",
                    severity=Severity.WARNING,
                    message=f"Test '{test.name}' does not follow the naming convention ({expected})",
                    location=test.location,
                )
            )

        return findings

    @staticmethod
    def check_duplicates(tests: list[TestCase]) -> list[Finding]:
        """Report tests defined more than once in the same scope (NAM004).

        In Python the later definition silently replaces the earlier one,
        so the earlier test never runs.
        """
        seen: dict[tuple[tuple[str, int | None, str | None], str], list[TestCase]] = defaultdict(list)
        for test in tests:
            seen[(test.scope, test.name)].append(test)

        findings: list[Finding] = []
        for (_, name), occurrences in seen.items():
            first = occurrences[0]
            for duplicate in occurrences[1:]:
                if duplicate.language == Language.PYTHON:
                    consequence = "the earlier definition never runs"
                else:
                    consequence = "only one of them can be selected by name"
                findings.append(
                    Finding(
                        rule_id="NAM004",
                        severity=Severity.ERROR,
                        message=(
                            f"Test '{name}' is already defined at line "
                            f"{first.location.lineno}; {consequence}"
                        ),
                        location=duplicate.location,
                    )
                )
        return findings
