"""Evaluate command: run the eligibility checks for a claim."""

from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from courial_shield.cli._app import app
from courial_shield.cli._common import (
    handle_errors,
    init_command,
    load_model,
    load_model_list,
    read_json,
)
from courial_shield.cli._console import console, output_result, print_err, print_ok, print_warn
from courial_shield.policy.eligibility import EligibilityEvaluator
from courial_shield.schemas.claim import Claim, ClaimSubmission
from courial_shield.schemas.coverage import CoverageLedger
from courial_shield.schemas.eligibility import CheckVerdict
from courial_shield.schemas.member import Member


@app.command("evaluate", help="Check whether a claim is eligible.")
def evaluate_cmd(
    ctx: typer.Context,
    member_path: Path = typer.Option(..., "--member", "-m", help="Member JSON"),
    ledger_path: Path = typer.Option(..., "--ledger", "-l", help="Coverage ledger JSON"),
    claim_path: Path = typer.Option(..., "--claim", help="Claim submission JSON"),
    history_path: Optional[Path] = typer.Option(
        None, "--history", help="JSON array of the member's previous claims"
    ),
    submitted_at: Optional[datetime] = typer.Option(
        None, "--submitted-at", help="Submission time (default: now)"
    ),
):
    """Evaluate a claim submission and print each check's verdict."""
    settings = init_command(ctx)

    with handle_errors():
        member = load_model(member_path, Member)
        ledger = load_model(ledger_path, CoverageLedger)
        submission = ClaimSubmission.from_payload(read_json(claim_path))
        history = load_model_list(history_path, Claim)
        result = EligibilityEvaluator(settings).evaluate(
            member, ledger, submission, history, submitted_at
        )

    if ctx.obj["json"]:
        output_result(result.model_dump(mode="json"), ctx=ctx)
        return

    marks = {
        CheckVerdict.PASS: "[green]PASS[/green]",
        CheckVerdict.FAIL: "[red]FAIL[/red]",
        CheckVerdict.WARN: "[yellow]WARN[/yellow]",
    }
    for check in result.checks:
        console.print(f"  {marks[check.verdict]} {check.check_name}: {check.reason}")
    for warning in result.warnings:
        print_warn(warning)
    if result.eligible:
        print_ok(result.reason)
    else:
        print_err(f"{result.denial_code}: {result.reason}")
        raise SystemExit(2)
