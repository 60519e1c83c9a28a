"""Line grammar for requirement and test-definition documents.

Requirement document:
    Any ``FR-<n>`` token declares a requirement (first-seen order). A line of
    the form ``FR-<n>: text`` supplies its text. ``AC-<n>`` tokens declare
    acceptance criteria the same way.

Test-definition document:
    A block starts at ``### TC-<n>[: title]`` and runs until the next heading
    of level 1-3 outside fenced code, or the end of the document. Inside a
    block, ``- Title:`` sets the title and the first ``- Trace:`` line lists
    comma-separated ids.
"""

from __future__ import annotations

import logging
import re

from frproof.errors import ParseError
from frproof.trace.models import (
    AcceptanceCriterion,
    Requirement,
    RequirementDocument,
    TestCase,
    TestDefinitionDocument,
    TraceIssue,
    TraceSet,
)

logger = logging.getLogger(__name__)

FR_TOKEN_PATTERN = re.compile(r"\bFR-\d+\b")
AC_TOKEN_PATTERN = re.compile(r"\bAC-\d+\b")
TRACE_ID_PATTERN = re.compile(r"\b(FR|AC|US)-\d+\b")
DECLARATION_PATTERN = re.compile(
    r"\b(?P<id>(?:FR|AC)-\d+)\b\s*[:—-]\s*(?P<text>\S.*)$"
)
TC_HEADING_PATTERN = re.compile(
    r"^###\s*(?P<id>TC-\d+)\b(?:\s*[:—-]?\s*(?P<title>.*))?$"
)
SECTION_HEADING_PATTERN = re.compile(r"^#{1,3}\s")
FENCE_PATTERN = re.compile(r"^\s*(?:```|~~~)")
TITLE_LINE_PATTERN = re.compile(r"^\s*[-*]?\s*Title:\s*(?P<title>.*)$", re.IGNORECASE)
TRACE_LINE_PATTERN = re.compile(r"^\s*[-*]?\s*Trace:(?P<ids>.*)$", re.IGNORECASE)


def parse_requirement_document(content: str) -> RequirementDocument:
    """Parse declared FR and AC ids (with text where declared)."""
    text = content or ""
    declared_text: dict[str, str] = {}
    for line in text.splitlines():
        match = DECLARATION_PATTERN.search(line)
        if match and match.group("id") not in declared_text:
            declared_text[match.group("id")] = match.group("text").strip()

    requirements = tuple(
        Requirement(id=fr_id, text=declared_text.get(fr_id, ""))
        for fr_id in _unique_tokens(FR_TOKEN_PATTERN, text)
    )
    criteria = tuple(
        AcceptanceCriterion(id=ac_id, text=declared_text.get(ac_id, ""))
        for ac_id in _unique_tokens(AC_TOKEN_PATTERN, text)
    )
    return RequirementDocument(requirements=requirements, acceptance_criteria=criteria)


def parse_fr_ids(content: str) -> list[str]:
    """Return declared FR ids in first-seen order."""
    return parse_requirement_document(content).fr_ids


def parse_trace_annotation(tc_id: str, ids_text: str) -> TraceSet:
    """Classify the ids of one Trace annotation by prefix.

    Raises:
        ParseError: If the annotation holds no FR/AC/US id at all.
    """
    buckets: dict[str, list[str]] = {"FR": [], "AC": [], "US": []}
    for match in TRACE_ID_PATTERN.finditer(ids_text):
        token = match.group(0)
        bucket = buckets[match.group(1)]
        if token not in bucket:
            bucket.append(token)

    trace = TraceSet(
        fr_ids=tuple(buckets["FR"]),
        ac_ids=tuple(buckets["AC"]),
        us_ids=tuple(buckets["US"]),
    )
    if trace.is_empty:
        raise ParseError(
            tc_id, f"Trace annotation has no recognizable ids: {ids_text.strip()!r}"
        )
    return trace


def parse_test_definitions(content: str) -> TestDefinitionDocument:
    """Parse TC blocks into typed test cases.

    Duplicate TC ids keep their first block. Missing or malformed Trace
    lines degrade to an empty trace and are reported as issues.
    """
    test_cases: list[TestCase] = []
    issues: list[TraceIssue] = []
    seen: set[str] = set()

    for tc_id, heading_title, body in _split_blocks(content or ""):
        if tc_id in seen:
            logger.warning("Duplicate test case %s ignored (first wins)", tc_id)
            issues.append(TraceIssue(tc_id, "duplicate test case id; first block kept"))
            continue
        seen.add(tc_id)

        title_line: str | None = None
        trace_text: str | None = None
        for line in body:
            if trace_text is None and (trace_match := TRACE_LINE_PATTERN.match(line)):
                trace_text = trace_match.group("ids")
            elif title_line is None and (title_match := TITLE_LINE_PATTERN.match(line)):
                title_line = title_match.group("title").strip()
        title = title_line or heading_title

        try:
            if trace_text is None:
                raise ParseError(tc_id, "missing Trace annotation")
            trace = parse_trace_annotation(tc_id, trace_text)
        except ParseError as exc:
            logger.info("Untraced test case: %s", exc)
            issues.append(TraceIssue(tc_id, exc.message))
            trace = TraceSet()

        test_cases.append(TestCase(id=tc_id, title=title, trace=trace))

    return TestDefinitionDocument(test_cases=tuple(test_cases), issues=tuple(issues))


def _split_blocks(content: str) -> list[tuple[str, str, list[str]]]:
    """Split a document into ``(tc_id, heading_title, body_lines)`` blocks."""
    blocks: list[tuple[str, str, list[str]]] = []
    current: tuple[str, str, list[str]] | None = None
    in_fence = False

    for line in content.splitlines():
        if FENCE_PATTERN.match(line):
            in_fence = not in_fence
        # Headings inside fenced code do not delimit blocks
        heading = None if in_fence else TC_HEADING_PATTERN.match(line)
        if heading:
            current = (
                heading.group("id"),
                (heading.group("title") or "").strip(),
                [],
            )
            blocks.append(current)
            continue
        if not in_fence and SECTION_HEADING_PATTERN.match(line):
            current = None
            continue
        if current is not None:
            current[2].append(line)

    return blocks


def _unique_tokens(pattern: re.Pattern[str], text: str) -> list[str]:
    seen: list[str] = []
    for match in pattern.finditer(text):
        token = match.group(0)
        if token not in seen:
            seen.append(token)
    return seen
