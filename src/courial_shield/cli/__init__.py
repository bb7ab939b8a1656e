"""CLI package: Typer-based command-line interface.

Usage:
    courial-shield --help
    python -m courial_shield.cli payout --amount 85 --plan basic
"""

from courial_shield.cli._app import app

# Register command modules (side-effect imports)
import courial_shield.cli.cmd_plans  # noqa: F401
import courial_shield.cli.cmd_denial  # noqa: F401
import courial_shield.cli.cmd_payout  # noqa: F401
import courial_shield.cli.cmd_evaluate  # noqa: F401
import courial_shield.cli.cmd_cancel  # noqa: F401

__all__ = ["app"]
