"""Extraction of tests, test doubles and document structure from source.

Python is parsed with the standard library ast module. C# is matched
with regular expressions; it is only ever a snippet language here, so a
full parser is not needed. Markdown is split into headings and fenced
code blocks, and tagged fences are extracted recursively.
"""

import ast
import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import PurePosixPath

from .models import (
    CodeFence,
    DocSection,
    DoubleKind,
    DoubleProfile,
    Language,
    Location,
    SourceFile,
    TestCase,
)

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    ".py": Language.PYTHON,
    ".cs": Language.CSHARP,
    ".md": Language.MARKDOWN,
    ".markdown": Language.MARKDOWN,
}

_FENCE_LANGUAGES = {
    "python": Language.PYTHON,
    "py": Language.PYTHON,
    "python3": Language.PYTHON,
    "csharp": Language.CSHARP,
    "cs": Language.CSHARP,
    "c#": Language.CSHARP,
}

_KIND_TOKENS = {kind.value.capitalize(): kind for kind in DoubleKind}

# Splits CamelCase into words: "InMemoryFakeStore" -> In, Memory, Fake, Store
_CAMEL_WORDS = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")

_VERIFY_PREFIXES = ("verify", "assert", "expect")


class ExtractionError(ValueError):
    """Raised when a source file cannot be parsed."""

    def __init__(self, path: str, lineno: int, message: str):
        super().__init__(f"{path}:{lineno}: {message}")
        self.path = path
        self.lineno = max(lineno, 1)
        self.reason = message


@dataclass
class Extraction:
    """Everything found in one source file."""

    tests: list[TestCase] = field(default_factory=list)
    doubles: list[DoubleProfile] = field(default_factory=list)
    sections: list[DocSection] = field(default_factory=list)
    fences: list[CodeFence] = field(default_factory=list)

    def merge(self, other: "Extraction") -> None:
        self.tests.extend(other.tests)
        self.doubles.extend(other.doubles)
        self.sections.extend(other.sections)
        self.fences.extend(other.fences)


def language_for(path: str) -> Language | None:
    """Detect the language of a file from its extension."""
    return _EXTENSIONS.get(PurePosixPath(path.replace("\\", "/")).suffix.lower())


def declared_kind(class_name: str) -> DoubleKind | None:
    """Return the double kind a class name declares, if any.

    The kind token must be a whole CamelCase word: FakeStore and
    StoreStub declare a kind, Stubborn does not. The first token wins.
    """
    for word in _CAMEL_WORDS.findall(class_name):
        kind = _KIND_TOKENS.get(word.capitalize()) if word[:1].isupper() else None
        if kind is not None:
            return kind
    return None


class SourceExtractor:
    """Turns SourceFiles into tests, double profiles and doc structure.

    No external dependencies; all methods are pure over their inputs.
    """

    def extract(self, source: SourceFile) -> Extraction:
        """Extract everything from a source file.

        Raises:
            ExtractionError: If Python source has a syntax error.
        """
        if source.language == Language.PYTHON:
            return self.extract_python(source.text, source.path)
        if source.language == Language.CSHARP:
            return self.extract_csharp(source.text, source.path)
        return self.extract_markdown(source.text, source.path)

    # ------------------------------------------------------------------
    # Python
    # ------------------------------------------------------------------

    def extract_python(self, text: str, path: str, line_offset: int = 0) -> Extraction:
        try:
            tree = ast.parse(text, filename=path)
        except SyntaxError as e:
            raise ExtractionError(path, (e.lineno or 1) + line_offset, e.msg) from e

        extraction = Extraction()
        for node in tree.body:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                if node.name.startswith("test"):
                    extraction.tests.append(
                        TestCase(
                            name=node.name,
                            location=Location(path, node.lineno + line_offset, node.name),
                            language=Language.PYTHON,
                        )
                    )
            elif isinstance(node, ast.ClassDef) and _is_test_class(node):
                self._extract_python_tests(node, path, line_offset, extraction)

        # Doubles may be nested in test classes or test functions
        for node in ast.walk(tree):
            if isinstance(node, ast.ClassDef) and not _is_test_class(node):
                kind = declared_kind(node.name)
                if kind is not None:
                    extraction.doubles.append(
                        profile_python_class(node, kind, path, line_offset)
                    )
        extraction.doubles.sort(key=lambda profile: profile.location.lineno)
        return extraction

    @staticmethod
    def _extract_python_tests(
        node: ast.ClassDef,
        path: str,
        line_offset: int,
        extraction: Extraction,
    ) -> None:
        for item in node.body:
            if isinstance(item, (ast.FunctionDef, ast.AsyncFunctionDef)) and item.name.startswith("test"):
                extraction.tests.append(
                    TestCase(
                        name=item.name,
                        location=Location(
                            path, item.lineno + line_offset, f"{node.name}.{item.name}"
                        ),
                        language=Language.PYTHON,
                        class_name=node.name,
                    )
                )

    # ------------------------------------------------------------------
    # C#
    # ------------------------------------------------------------------

    _CS_TEST_ATTRIBUTE = re.compile(
        r"\[\s*(?:Test|Fact|Theory|TestMethod|TestCase(?:\s*\([^\]]*\))?)\s*\]"
    )
    _CS_METHOD = re.compile(
        r"\b(?:public|internal|private|protected)?\s*(?:static\s+)?(?:async\s+)?"
        r"(?:void|Task(?:<[^>]+>)?)\s+([A-Za-z_]\w*)\s*\("
    )
    _CS_CLASS = re.compile(r"\bclass\s+([A-Za-z_]\w*)")

    def extract_csharp(self, text: str, path: str, line_offset: int = 0) -> Extraction:
        extraction = Extraction()

        for attr in self._CS_TEST_ATTRIBUTE.finditer(text):
            method = self._CS_METHOD.search(text, attr.end())
            if method is None:
                continue
            # Only the method directly following the attribute list counts
            between = text[attr.end():method.start()]
            if "{" in between or ";" in between:
                continue
            lineno = text.count("\n", 0, method.start()) + 1 + line_offset
            extraction.tests.append(
                TestCase(
                    name=method.group(1),
                    location=Location(path, lineno, method.group(1)),
                    language=Language.CSHARP,
                    class_name=_enclosing_cs_class(text, method.start()),
                )
            )

        for cls in self._CS_CLASS.finditer(text):
            kind = declared_kind(cls.group(1))
            if kind is None:
                continue
            body = _braced_body(text, cls.end())
            lineno = text.count("\n", 0, cls.start()) + 1 + line_offset
            extraction.doubles.append(
                profile_csharp_class(cls.group(1), body, kind, Location(path, lineno, cls.group(1)))
            )

        return extraction

    # ------------------------------------------------------------------
    # Markdown
    # ------------------------------------------------------------------

    _HEADING = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")
    _FENCE_OPEN = re.compile(r"^\s{0,3}(`{3,}|~{3,})\s*([^`\s]*)")

    def extract_markdown(self, text: str, path: str) -> Extraction:
        extraction = Extraction()
        lines = text.splitlines()

        headings: list[tuple[int, int, str]] = []  # (index, level, title)
        fence_lines: set[int] = set()

        i = 0
        while i < len(lines):
            opening = self._FENCE_OPEN.match(lines[i])
            if opening:
                marker = opening.group(1)
                start = i
                i += 1
                body: list[str] = []
                while i < len(lines) and not lines[i].strip().startswith(marker):
                    body.append(lines[i])
                    i += 1
                fence_lines.update(range(start, i + 1))
                extraction.fences.append(
                    CodeFence(
                        info=opening.group(2).lower(),
                        location=Location(path, start + 1),
                        body="\n".join(body),
                    )
                )
                i += 1
                continue
            heading = self._HEADING.match(lines[i])
            if heading:
                headings.append((i, len(heading.group(1)), heading.group(2)))
            i += 1

        for pos, (index, level, title) in enumerate(headings):
            end = headings[pos + 1][0] if pos + 1 < len(headings) else len(lines)
            body_lines = tuple(
                "```" if j in fence_lines else lines[j]
                for j in range(index + 1, end)
            )
            extraction.sections.append(
                DocSection(
                    title=title,
                    level=level,
                    location=Location(path, index + 1, title),
                    body_lines=body_lines,
                )
            )

        for fence in extraction.fences:
            language = _FENCE_LANGUAGES.get(fence.info)
            lineno = fence.location.lineno
            if language == Language.PYTHON:
                try:
                    snippet = self.extract_python(fence.body, path, line_offset=lineno)
                except ExtractionError as e:
                    # Guide snippets are often fragments
                    logger.debug(f"Skipping unparseable python snippet: {e}")
                    continue
            elif language == Language.CSHARP:
                snippet = self.extract_csharp(fence.body, path, line_offset=lineno)
            else:
                continue
            snippet.tests = [replace(test, fence_line=lineno) for test in snippet.tests]
            extraction.merge(snippet)

        return extraction


# ============================================================================
# Python class profiling
# ============================================================================


def _is_test_class(node: ast.ClassDef) -> bool:
    if node.name.startswith("Test"):
        return True
    for base in node.bases:
        name = base.attr if isinstance(base, ast.Attribute) else getattr(base, "id", "")
        if name.endswith("TestCase"):
            return True
    return False


def _is_trivial_body(body: list[ast.stmt]) -> bool:
    """pass, ..., a docstring, return None, or raise NotImplementedError."""
    for stmt in body:
        if isinstance(stmt, ast.Pass):
            continue
        if isinstance(stmt, ast.Expr) and isinstance(stmt.value, ast.Constant):
            continue  # docstring or Ellipsis
        if isinstance(stmt, ast.Return) and (
            stmt.value is None
            or (isinstance(stmt.value, ast.Constant) and stmt.value.value is None)
        ):
            continue
        if isinstance(stmt, ast.Raise) and stmt.exc is not None:
            exc = stmt.exc.func if isinstance(stmt.exc, ast.Call) else stmt.exc
            if getattr(exc, "id", "") == "NotImplementedError":
                continue
        return False
    return True


def _self_attr(node: ast.AST) -> str | None:
    """Return 'x' for an expression of the form self.x, else None."""
    if (
        isinstance(node, ast.Attribute)
        and isinstance(node.value, ast.Name)
        and node.value.id == "self"
    ):
        return node.attr
    return None


def _written_attrs(method: ast.FunctionDef | ast.AsyncFunctionDef) -> tuple[set[str], set[str], set[str]]:
    """Attributes a method changes: (assigned, subscript-written, appended/counted)."""
    assigned: set[str] = set()
    subscripted: set[str] = set()
    recorded: set[str] = set()
    for node in ast.walk(method):
        if isinstance(node, ast.Assign):
            for target in node.targets:
                if (name := _self_attr(target)) is not None:
                    assigned.add(name)
                elif isinstance(target, ast.Subscript) and (name := _self_attr(target.value)):
                    subscripted.add(name)
        elif isinstance(node, ast.AnnAssign) and (name := _self_attr(node.target)):
            assigned.add(name)
        elif isinstance(node, ast.AugAssign):
            if (name := _self_attr(node.target)) is not None:
                recorded.add(name)
            elif isinstance(node.target, ast.Subscript) and (name := _self_attr(node.target.value)):
                subscripted.add(name)
        elif (
            isinstance(node, ast.Call)
            and isinstance(node.func, ast.Attribute)
            and node.func.attr in {"append", "extend", "add", "appendleft"}
            and (name := _self_attr(node.func.value)) is not None
        ):
            recorded.add(name)
    return assigned, subscripted, recorded


def _returned_state_reads(method: ast.FunctionDef | ast.AsyncFunctionDef) -> set[str]:
    """Self attributes a method looks up (subscript, call or `in`) to compute a return value."""
    reads: set[str] = set()
    for node in ast.walk(method):
        if not isinstance(node, ast.Return) or node.value is None:
            continue
        for inner in ast.walk(node.value):
            if isinstance(inner, ast.Subscript) and (name := _self_attr(inner.value)):
                reads.add(name)
            elif (
                isinstance(inner, ast.Call)
                and isinstance(inner.func, ast.Attribute)
                and (name := _self_attr(inner.func.value))
            ):
                reads.add(name)
            elif isinstance(inner, ast.Compare) and any(
                isinstance(op, (ast.In, ast.NotIn)) for op in inner.ops
            ):
                for comparator in inner.comparators:
                    if (name := _self_attr(comparator)) is not None:
                        reads.add(name)
            elif isinstance(inner, ast.Call) and getattr(inner.func, "id", "") in {"list", "len", "dict", "tuple", "sorted"}:
                for arg in inner.args:
                    if (name := _self_attr(arg)) is not None:
                        reads.add(name)
    return reads


def _has_verification(method: ast.FunctionDef | ast.AsyncFunctionDef) -> bool:
    if method.name.lower().startswith(_VERIFY_PREFIXES):
        return True
    for node in ast.walk(method):
        if isinstance(node, ast.Assert):
            return True
        if isinstance(node, ast.Raise) and node.exc is not None:
            exc = node.exc.func if isinstance(node.exc, ast.Call) else node.exc
            if getattr(exc, "id", "") == "AssertionError":
                return True
    return False


def _canned_returns(
    method: ast.FunctionDef | ast.AsyncFunctionDef,
    mutated: set[str],
) -> bool:
    """True if the method returns a literal or configured attribute, ignoring its arguments."""
    params = {arg.arg for arg in method.args.args + method.args.kwonlyargs} - {"self"}
    for node in ast.walk(method):
        if not isinstance(node, ast.Return) or node.value is None:
            continue
        value = node.value
        if isinstance(value, ast.Constant) and value.value is None:
            continue
        if any(isinstance(n, ast.Name) and n.id in params for n in ast.walk(value)):
            continue
        if isinstance(value, (ast.Constant, ast.List, ast.Tuple, ast.Dict, ast.Set)):
            return True
        if (name := _self_attr(value)) is not None and name not in mutated:
            return True
        if isinstance(value, ast.Call):
            # e.g. return Signature(id="sig-1", ...): a canned object
            if all(
                isinstance(a, ast.Constant) for a in value.args
            ) and all(isinstance(k.value, ast.Constant) for k in value.keywords):
                return True
    return False


def profile_python_class(
    node: ast.ClassDef,
    kind: DoubleKind,
    path: str,
    line_offset: int = 0,
) -> DoubleProfile:
    """Collect the structural facts of a Python double class."""
    methods = [
        item for item in node.body
        if isinstance(item, (ast.FunctionDef, ast.AsyncFunctionDef))
    ]
    behaviour = [m for m in methods if m.name != "__init__"]

    mutated_outside_init: set[str] = set()
    subscript_writers: dict[str, set[str]] = {}
    recorded: set[str] = set()
    for method in behaviour:
        assigned, subscripted, appended = _written_attrs(method)
        mutated_outside_init |= assigned | subscripted | appended
        recorded |= appended
        for name in subscripted | appended:
            subscript_writers.setdefault(name, set()).add(method.name)

    holds_state = False
    for method in behaviour:
        for name in _returned_state_reads(method):
            writers = subscript_writers.get(name, set())
            if writers - {method.name}:
                holds_state = True

    return DoubleProfile(
        name=node.name,
        location=Location(path, node.lineno + line_offset, node.name),
        language=Language.PYTHON,
        declared_kind=kind,
        method_count=len(methods),
        records_calls=bool(recorded),
        verifies_calls=any(_has_verification(m) for m in behaviour),
        returns_canned=any(_canned_returns(m, mutated_outside_init) for m in behaviour),
        holds_state=holds_state,
        inert=all(_is_trivial_body(m.body) for m in behaviour),
    )


# ============================================================================
# C# class profiling
# ============================================================================

_CS_FIELD_COLLECTION = re.compile(r"\b(?:Dictionary|List|HashSet|Queue|Stack)<[^;=]*?>\s+(_?\w+)\s*[=;]")
_CS_METHOD_BODY = re.compile(
    r"\b(?:public|internal|private|protected)\s+(?:override\s+|virtual\s+|static\s+|async\s+)*"
    r"[\w<>\[\],\s]+?\s+(\w+)\s*\([^)]*\)\s*(?:\{|(?==>))"
)


def _braced_body(text: str, start: int) -> str:
    """Return the text between the first '{' after start and its matching '}'."""
    open_at = text.find("{", start)
    if open_at == -1:
        return ""
    depth = 0
    for index in range(open_at, len(text)):
        char = text[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[open_at + 1:index]
    return text[open_at + 1:]


def _enclosing_cs_class(text: str, position: int) -> str | None:
    enclosing = None
    for cls in SourceExtractor._CS_CLASS.finditer(text, 0, position):
        enclosing = cls.group(1)
    return enclosing


def profile_csharp_class(
    name: str,
    body: str,
    kind: DoubleKind,
    location: Location,
) -> DoubleProfile:
    """Collect the structural facts of a C# double class."""
    method_names = [
        m.group(1) for m in _CS_METHOD_BODY.finditer(body) if m.group(1) != name
    ]
    # Strip the constructor before looking for behaviour
    behaviour = re.sub(rf"\b{re.escape(name)}\s*\([^)]*\)\s*\{{[^}}]*\}}", "", body)

    collections = set(_CS_FIELD_COLLECTION.findall(behaviour))
    written = {
        field_name for field_name in collections
        if re.search(rf"\b{re.escape(field_name)}\s*\[[^\]]+\]\s*=|\b{re.escape(field_name)}\.(?:Add|Remove|Enqueue|Push)\(", behaviour)
    }
    read_back = {
        field_name for field_name in written
        if re.search(rf"return\s+[^;]*\b{re.escape(field_name)}\b(?:\[|\.(?:TryGetValue|ContainsKey|Contains|Get|Where|FirstOrDefault|Count))", behaviour)
    }
    counters = re.search(r"\b_?\w*(?:[Cc]alls?|[Cc]ount)\w*\s*(?:\+\+|\+=)", behaviour)
    appended = re.search(r"\b_?\w+\.Add\(", behaviour)

    # Whatever is left once signatures, braces and no-op statements are gone
    signatures_removed = _CS_METHOD_BODY.sub("", re.sub(r"//[^\n]*", "", behaviour))
    statements = re.sub(
        r"throw\s+new\s+NotImplementedException\(\)|return\s+(?:null|default)|return(?=\s*;)|[{}\s;]",
        "",
        signatures_removed,
    )

    return DoubleProfile(
        name=name,
        location=location,
        language=Language.CSHARP,
        declared_kind=kind,
        method_count=len(method_names),
        records_calls=bool(counters or (appended and not read_back)),
        verifies_calls=bool(
            re.search(r"\b(?:Verify|Assert)\w*\s*\(", behaviour)
            or re.search(r"throw\s+new\s+\w*Assert\w*Exception", behaviour)
        ),
        returns_canned=bool(
            re.search(r"return\s+(?:\"[^\"]*\"|\d+(?:\.\d+)?|true|false|new\s+\w+\s*\(\s*\))\s*;", behaviour)
            or re.search(r"=>\s*(?:\"[^\"]*\"|\d+(?:\.\d+)?|true|false)\s*;", behaviour)
        ),
        holds_state=bool(read_back),
        inert=not statements.strip(),
    )
