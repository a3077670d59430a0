"""Classification of test doubles and the conformance rule.

A class named FakeStore promises a working in-memory store; one named
StubClock promises canned answers. This module compares what the name
declares with what the class body actually does.
"""

from .models import DoubleKind, DoubleProfile, Finding, Severity

_ARTICLES = {
    DoubleKind.DUMMY: "a dummy",
    DoubleKind.FAKE: "a fake",
    DoubleKind.STUB: "a stub",
    DoubleKind.SPY: "a spy",
    DoubleKind.MOCK: "a mock",
}


class DoubleInspector:
    """Decides which kind of double a class behaves like.

    No external dependencies. All methods are static as the class
    carries no state.
    """

    @staticmethod
    def classify(profile: DoubleProfile) -> DoubleKind:
        """Observed kind, strongest behaviour first.

        Verification makes a mock, a working state machine makes a fake,
        recording makes a spy, canned answers make a stub. Anything left
        is a dummy.
        """
        if profile.verifies_calls:
            return DoubleKind.MOCK
        if profile.holds_state:
            return DoubleKind.FAKE
        if profile.records_calls:
            return DoubleKind.SPY
        if profile.returns_canned:
            return DoubleKind.STUB
        return DoubleKind.DUMMY

    @staticmethod
    def conforms(profile: DoubleProfile) -> bool:
        """Does the class body meet what its declared kind requires?"""
        kind = profile.declared_kind
        if kind == DoubleKind.DUMMY:
            return profile.inert
        if kind == DoubleKind.STUB:
            return (
                profile.returns_canned
                and not profile.records_calls
                and not profile.verifies_calls
            )
        if kind == DoubleKind.SPY:
            return profile.records_calls and not profile.verifies_calls
        if kind == DoubleKind.MOCK:
            return profile.verifies_calls
        # In-memory fakes often count calls as well; state is what matters
        return profile.holds_state

    def check(self, profile: DoubleProfile) -> list[Finding]:
        """Apply DBL001/DBL002 to one double."""
        if profile.method_count == 0 and profile.declared_kind != DoubleKind.DUMMY:
            return [
                Finding(
                    rule_id="DBL002",
                    severity=Severity.INFO,
                    message=(
                        f"'{profile.name}' is named as {_ARTICLES[profile.declared_kind]} "
                        "but has no methods; it can only serve as a dummy"
                    ),
                    location=profile.location,
                )
            ]

        if self.conforms(profile):
            return []

        observed = self.classify(profile)
        declared = _ARTICLES[profile.declared_kind]
        if observed == profile.declared_kind:
            # Only reachable for dummies whose methods compute something
            message = f"'{profile.name}' is named as {declared} but its methods do real work"
        else:
            message = f"'{profile.name}' is named as {declared} but behaves like {_ARTICLES[observed]}"

        return [
            Finding(
                rule_id="DBL001",
                severity=Severity.WARNING,
                message=message,
                location=profile.location,
            )
        ]
