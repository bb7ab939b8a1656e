"""Denial-code command: explain a denial code."""

from typing import Optional

import typer

from courial_shield.catalog.denial_codes import all_denial_codes, get_denial_code
from courial_shield.cli._app import app
from courial_shield.cli._common import handle_errors, init_command
from courial_shield.cli._console import output_result, output_table


@app.command("denial-code", help="Explain a denial code (symbolic or D0xx).")
def denial_code_cmd(
    ctx: typer.Context,
    code: Optional[str] = typer.Argument(None, help="Denial code, e.g. WAITING_PERIOD or D011"),
):
    """Show one denial code, or all codes when none is given."""
    init_command(ctx)

    if code is None:
        rows = [
            {
                "code": d.code,
                "legacy": d.legacy_code,
                "reason": d.reason,
                "appealable": "yes" if d.appealable else "no",
            }
            for d in all_denial_codes()
        ]
        output_table(rows, ctx=ctx, title="Denial codes")
        return

    with handle_errors():
        entry = get_denial_code(code)
    output_result(entry.model_dump(mode="json"), ctx=ctx, title=entry.code)
