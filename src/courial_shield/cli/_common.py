"""Shared utilities for CLI commands."""

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional, Type, TypeVar

import typer
from pydantic import BaseModel, ValidationError
from rich.logging import RichHandler

from courial_shield.config.settings import (
    PolicySettings,
    get_policy_settings,
    load_policy_settings,
)
from courial_shield.errors import InvalidInput, ShieldError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    from courial_shield.cli._console import console

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def init_command(ctx: typer.Context) -> PolicySettings:
    """Configure logging and load policy settings for a command."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    config_path = ctx.obj.get("config")
    with handle_errors():
        if config_path is not None:
            return load_policy_settings(config_path)
        return get_policy_settings()


def read_json(path: Path) -> Any:
    """Read a JSON file.

    Raises:
        InvalidInput: If the file is missing or not valid JSON.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise InvalidInput(f"File not found: {path}")
    except json.JSONDecodeError as e:
        raise InvalidInput(f"Invalid JSON in {path}: {e}")


def load_model(path: Path, model: Type[ModelT]) -> ModelT:
    """Read a JSON file into a pydantic model."""
    try:
        return model.model_validate(read_json(path))
    except ValidationError as e:
        raise InvalidInput(f"Invalid {model.__name__} in {path}: {e}")


def load_model_list(path: Optional[Path], model: Type[ModelT]) -> List[ModelT]:
    """Read a JSON array of models; a missing path yields an empty list."""
    if path is None:
        return []
    data = read_json(path)
    if not isinstance(data, list):
        raise InvalidInput(f"Expected a JSON array in {path}")
    try:
        return [model.model_validate(item) for item in data]
    except ValidationError as e:
        raise InvalidInput(f"Invalid {model.__name__} in {path}: {e}")


@contextmanager
def handle_errors() -> Iterator[None]:
    """Print engine errors on the console and exit with status 1."""
    from courial_shield.cli._console import print_err

    try:
        yield
    except ShieldError as e:
        logger.debug(f"Command failed: {e!r}")
        print_err(str(e))
        raise SystemExit(1)
