"""Entry point for ``python -m courial_shield.cli``."""

from courial_shield.cli import app

if __name__ == "__main__":
    app()
