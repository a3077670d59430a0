"""Fingerprinting logic for identifying findings across runs.

This module converts Finding instances into stable fingerprints, so that
the baseline recognizes the same problem after unrelated edits move it
to another line.
"""

import hashlib
import re

from .models import Finding


class FindingFingerprinter:
    """Produces stable fingerprints from findings.

    No external dependencies; a pure function over domain objects.
    All methods are static as the class carries no state.
    """

    @staticmethod
    def fingerprint(finding: Finding) -> str:
        """Create a stable hash that identifies this finding.

        Same problem, different line → same fingerprint.

        Combines:
        - Rule ID
        - Normalized path
        - Symbol (test or class name)
        - Templatized message
        """
        components = [
            finding.rule_id,
            FindingFingerprinter.normalize_path(finding.location.path),
            finding.location.symbol,
            FindingFingerprinter.templatize_message(finding.message),
        ]
        fingerprint_input = "|".join(components)
        return hashlib.sha256(fingerprint_input.encode()).hexdigest()

    @staticmethod
    def normalize_path(path: str) -> str:
        """Use posix separators and drop a leading './'.

        Examples:
        '.\\tests\\test_store.py' → 'tests/test_store.py'
        './tests/test_store.py' → 'tests/test_store.py'
        """
        normalized = path.replace("\\", "/")
        while normalized.startswith("./"):
            normalized = normalized[2:]
        return normalized

    @staticmethod
    def templatize_message(message: str) -> str:
        """Replace line references and other numbers with placeholders.

        Examples:
        "Test 'test_a' is already defined at line 12; ..."
        → "Test 'test_a' is already defined at line *; ..."
        """
        message = re.sub(r"\bline \d+\b", "line *", message)
        message = re.sub(r"(?<![\w'])\d+(?![\w'])", "*", message)
        return message
