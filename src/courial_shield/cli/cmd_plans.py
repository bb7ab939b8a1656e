"""Plans command: list the membership plan catalog."""

import typer

from courial_shield.catalog.plans import all_plan_configs, paid_plan_configs
from courial_shield.cli._app import app
from courial_shield.cli._common import init_command
from courial_shield.cli._console import output_table


@app.command("plans", help="List membership plans and their limits.")
def plans_cmd(
    ctx: typer.Context,
    paid_only: bool = typer.Option(False, "--paid", help="Only paid plans"),
):
    """Print the plan catalog."""
    init_command(ctx)
    plans = paid_plan_configs() if paid_only else all_plan_configs()

    if ctx.obj["json"]:
        output_table([p.model_dump(mode="json") for p in plans], ctx=ctx)
        return

    rows = [
        {
            "plan": p.name,
            "monthly": f"${p.monthly_price}",
            "annual cap": f"${p.annual_cap}",
            "tickets/yr": p.max_tickets_per_year,
            "co-pay": f"{int(p.deductible_rate * 100)}%",
            "waiting": f"{p.waiting_period_days}d",
            "per claim": f"${p.max_coverage_per_claim}" if p.max_coverage_per_claim else "-",
        }
        for p in plans
    ]
    output_table(rows, ctx=ctx, title="Courial Shield plans")
