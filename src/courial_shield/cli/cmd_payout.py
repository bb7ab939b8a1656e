"""Payout command: quote the payout for a ticket amount."""

from pathlib import Path
from typing import Optional

import typer

from courial_shield.catalog.plans import get_plan_config
from courial_shield.cli._app import app
from courial_shield.cli._common import handle_errors, init_command, load_model
from courial_shield.cli._console import output_result
from courial_shield.errors import InvalidInput
from courial_shield.policy.ledger import open_ledger, record_approval
from courial_shield.policy.payout import calculate_payout_breakdown
from courial_shield.schemas.coverage import CoverageLedger


@app.command("payout", help="Quote the payout for a ticket.")
def payout_cmd(
    ctx: typer.Context,
    amount: str = typer.Option(..., "--amount", "-a", help="Ticket amount, e.g. 85 or $85.00"),
    violation: str = typer.Option("parking_meter", "--violation", help="Violation code or label"),
    plan: str = typer.Option("basic", "--plan", "-p", help="Plan tier (ignored with --ledger)"),
    used: str = typer.Option("0", "--used", help="Amount already used this period"),
    ledger_path: Optional[Path] = typer.Option(
        None, "--ledger", help="Coverage ledger JSON instead of --plan/--used"
    ),
):
    """Calculate deductible, caps and payout for one ticket."""
    settings = init_command(ctx)

    with handle_errors():
        if ledger_path is not None:
            ledger = load_model(ledger_path, CoverageLedger)
        else:
            config = get_plan_config(plan)
            ledger = open_ledger("quote", config, settings=settings)
            try:
                ledger = record_approval(ledger, used)
            except InvalidInput:
                raise InvalidInput(f"Invalid --used amount: {used!r}", field="used")
        breakdown = calculate_payout_breakdown(amount, violation, ledger)

    data = breakdown.model_dump(mode="json")
    data["plan"] = ledger.plan_id.value
    data["remaining_after"] = str(ledger.remaining_amount - breakdown.payout_amount)
    output_result(data, ctx=ctx, title="Payout quote")
