"""Cancel-check command: is the member allowed to cancel?"""

from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from courial_shield.cli._app import app
from courial_shield.cli._common import handle_errors, init_command, load_model
from courial_shield.cli._console import output_result, print_err, print_ok
from courial_shield.policy.cancellation import check_cancellation_eligibility
from courial_shield.schemas.member import Member


@app.command("cancel-check", help="Check the post-payout cancellation restriction.")
def cancel_check_cmd(
    ctx: typer.Context,
    member_path: Path = typer.Option(..., "--member", "-m", help="Member JSON"),
    now: Optional[datetime] = typer.Option(None, "--now", help="Reference time (default: now)"),
):
    """Report whether the member may cancel and, if not, for how long."""
    settings = init_command(ctx)

    with handle_errors():
        member = load_model(member_path, Member)
        result = check_cancellation_eligibility(member, now=now, settings=settings)

    if ctx.obj["json"]:
        output_result(result.model_dump(mode="json"), ctx=ctx)
    elif result.can_cancel:
        print_ok(f"Member {member.id} may cancel")
    else:
        print_err(result.reason or "Cancellation is restricted")
        raise SystemExit(2)
