"""Human and machine views of a proof record."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.text import Text

from frproof.proof.models import FrProof, ProofRecord

LOW_MUTATION_PERCENT = 50

STATUS_STYLES = {
    True: ("PROVEN", "bold green"),
    False: ("UNPROVEN", "bold red"),
}


def _fr_line(fr_id: str, proof: FrProof) -> Text:
    label, style = STATUS_STYLES[proof.proven]
    line = Text(f"  {fr_id}: ")
    line.append(label, style=style)
    if proof.via:
        line.append(f" via {', '.join(proof.via)}")
    else:
        line.append(" (no passing TCs)", style="dim")
    if proof.mutation_score is not None:
        score = proof.mutation_score
        line.append(
            f" [mutation: {score.detected}/{score.total} = {score.percent}%]",
            style="cyan",
        )
    return line


def render_report(record: ProofRecord, proof_file: str | None = None) -> list[Text]:
    """Build the human-readable report as styled lines."""
    summary = record.summary
    lines: list[Text] = [
        Text(""),
        Text(f"Proof of Compliance: {record.feature}", style="bold"),
        Text(f"FRs proven: {summary.proven}/{summary.total}"),
    ]
    lines.extend(_fr_line(fr_id, proof) for fr_id, proof in record.fr_proof.items())

    if summary.trivial_tcs:
        lines += [
            Text(""),
            Text(
                "TRIVIAL stubs (contract imported but not invoked): "
                + ", ".join(summary.trivial_tcs),
                style="yellow",
            ),
            Text("These tests pass but do not verify behavioral compliance."),
            Text(
                "Invoke the contract function inside the test to make it meaningful."
            ),
        ]

    if summary.unimplemented_contract_tcs:
        lines += [
            Text(""),
            Text(
                "UNIMPLEMENTED contracts (stub passes but contract is still a "
                "scaffold placeholder): "
                + ", ".join(summary.unimplemented_contract_tcs),
                style="yellow",
            ),
            Text("Implement the contract functions before proving compliance."),
        ]

    if summary.missing_stub_tcs:
        lines += [
            Text(""),
            Text(
                "Missing TC stubs: " + ", ".join(summary.missing_stub_tcs),
                style="yellow",
            ),
        ]

    if summary.mutation is not None:
        mutation = summary.mutation
        lines += [
            Text(""),
            Text(
                f"Mutation analysis: {mutation.detected}/{mutation.total} mutations "
                f"detected ({mutation.percent}% confidence)"
            ),
        ]
        if mutation.percent < LOW_MUTATION_PERCENT:
            lines.append(
                Text("  Low mutation score - consider strengthening test assertions.")
            )

    lines.append(Text(""))
    if record.ok:
        lines.append(Text("All functional requirements proven.", style="bold green"))
    elif summary.unproven_frs:
        lines.append(
            Text(
                "UNPROVEN requirements: " + ", ".join(summary.unproven_frs),
                style="bold red",
            )
        )

    if proof_file is not None:
        lines += [Text(""), Text(f"Proof record: {proof_file}")]
        if not record.ok:
            lines.append(
                Text(
                    "Fix failing tests and re-run: "
                    f"frproof prove --feature {record.feature}"
                )
            )
    return lines


def print_report(
    record: ProofRecord,
    proof_file: str | None = None,
    *,
    console: Console | None = None,
) -> None:
    console = console or Console(highlight=False)
    for line in render_report(record, proof_file):
        console.print(line)


def record_payload(
    record: ProofRecord, proof_file: str | None = None
) -> dict[str, Any]:
    """The record as printed in JSON mode, with the record location added."""
    payload = record.to_dict()
    if proof_file is not None:
        payload["proofFile"] = proof_file
    return payload


def render_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def error_payload(feature: str | None, code: str) -> dict[str, Any]:
    return {"ok": False, "feature": feature, "error": code}
