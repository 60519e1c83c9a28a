"""Combine trace map and test case results into a proof record."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime

from frproof.proof.models import (
    FrProof,
    MutationScore,
    ProofRecord,
    ProofSummary,
    TcResult,
)
from frproof.trace.models import TraceSet

logger = logging.getLogger(__name__)


def build_fr_proof(
    fr_id: str,
    trace_map: Mapping[str, TraceSet],
    tc_results: Mapping[str, TcResult],
) -> FrProof:
    """Proof status for one requirement from the test cases that trace it."""
    tracing = tuple(
        tc_id for tc_id, trace in trace_map.items() if fr_id in trace.fr_ids
    )
    via = tuple(
        tc_id for tc_id in tracing if tc_id in tc_results and tc_results[tc_id].proves
    )
    evidence = tuple(
        file for tc_id in via if (file := tc_results[tc_id].file) is not None
    )
    mutation_score = MutationScore.combine(
        summary.as_score()
        for tc_id in via
        if (summary := tc_results[tc_id].mutation) is not None
    )
    return FrProof(
        proven=bool(via),
        via=via,
        tracing_tcs=tracing,
        evidence=evidence,
        mutation_score=mutation_score,
    )


def build_proof_record(
    feature: str,
    fr_ids: Sequence[str],
    trace_map: Mapping[str, TraceSet],
    tc_results: Mapping[str, TcResult],
    *,
    proven_at: datetime | None = None,
) -> ProofRecord:
    """Build the full record; ``ok`` needs every FR proven and no blocked TC."""
    declared = set(fr_ids)
    for tc_id, trace in trace_map.items():
        for fr_id in trace.fr_ids:
            if fr_id not in declared:
                logger.info("%s traces undeclared requirement %s", tc_id, fr_id)

    fr_proof = {
        fr_id: build_fr_proof(fr_id, trace_map, tc_results) for fr_id in fr_ids
    }

    trivial_tcs = tuple(
        tc_id for tc_id, result in tc_results.items() if result.trivial
    )
    unimplemented_tcs = tuple(
        tc_id for tc_id, result in tc_results.items() if result.contract_unimplemented
    )
    missing_tcs = tuple(
        tc_id for tc_id, result in tc_results.items() if result.file is None
    )
    unproven_frs = tuple(
        fr_id for fr_id, proof in fr_proof.items() if not proof.proven
    )
    proven_count = len(fr_proof) - len(unproven_frs)

    # Advisory only; mutation results never change ok
    overall_mutation = MutationScore.combine(
        result.mutation.as_score()
        for result in tc_results.values()
        if result.mutation is not None
    )

    summary = ProofSummary(
        total=len(fr_proof),
        proven=proven_count,
        unproven_frs=unproven_frs,
        trivial_tcs=trivial_tcs,
        unimplemented_contract_tcs=unimplemented_tcs,
        missing_stub_tcs=missing_tcs,
        mutation=overall_mutation,
    )
    ok = (
        len(fr_proof) > 0
        and proven_count == len(fr_proof)
        and not trivial_tcs
        and not unimplemented_tcs
    )
    return ProofRecord(
        feature=feature,
        ok=ok,
        summary=summary,
        fr_proof=fr_proof,
        tc_results=dict(tc_results),
        proven_at=proven_at or datetime.now(UTC),
    )
