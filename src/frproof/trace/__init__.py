"""Traceability resolver: requirement and test-definition parsing."""

from frproof.trace.models import (
    AcceptanceCriterion,
    Requirement,
    RequirementDocument,
    TestCase,
    TestDefinitionDocument,
    TraceIssue,
    TraceSet,
)
from frproof.trace.parser import (
    parse_fr_ids,
    parse_requirement_document,
    parse_test_definitions,
    parse_trace_annotation,
)
from frproof.trace.scanner import ScanMode, ScanResult, scan_stubs

__all__ = [
    "AcceptanceCriterion",
    "Requirement",
    "RequirementDocument",
    "ScanMode",
    "ScanResult",
    "TestCase",
    "TestDefinitionDocument",
    "TraceIssue",
    "TraceSet",
    "parse_fr_ids",
    "parse_requirement_document",
    "parse_test_definitions",
    "parse_trace_annotation",
    "scan_stubs",
]
