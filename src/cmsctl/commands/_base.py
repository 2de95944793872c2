"""Click base classes and shared argument helpers.

``CmsCommand``/``CmsGroup`` take an ``examples`` string and expose it via
an eager ``--examples`` flag, so ``--help`` stays short.
"""

from __future__ import annotations

import json
from typing import IO, Any

import click


class _ExamplesMixin:
    params: list[click.Parameter]

    def _install_examples(self, examples: str | None) -> None:
        self.examples = examples
        if not examples:
            return

        def _show(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
            if value:
                click.echo(f"Examples for '{ctx.command_path}':\n\n{examples}")
                ctx.exit(0)

        self.params.append(
            click.Option(
                ["--examples"],
                is_flag=True,
                expose_value=False,
                is_eager=True,
                callback=_show,
                help="Show usage examples.",
            )
        )


class CmsCommand(_ExamplesMixin, click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._install_examples(examples)


class CmsGroup(_ExamplesMixin, click.Group):
    """Group whose subcommands default to :class:`CmsCommand`."""

    command_class = CmsCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._install_examples(examples)


def read_json_object(source: IO[str], *, what: str) -> dict[str, Any]:
    """Parse a JSON object from an open file (``-`` for stdin).

    Raises:
        click.BadParameter: invalid JSON or not an object.
    """
    try:
        payload = json.load(source)
    except json.JSONDecodeError as exc:
        msg = f"{what} is not valid JSON: {exc}"
        raise click.BadParameter(msg) from exc
    if not isinstance(payload, dict):
        msg = f"{what} must be a JSON object"
        raise click.BadParameter(msg)
    return payload
