"""AppContext — shared Click context for all commands.

Created once by the root group and passed down via ``@click.pass_obj``.
The store and the actor context are built lazily so ``--help`` never
touches the database.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import click

from cmsctl.config.logging import configure_logging
from cmsctl.output.formatters import OutputSettings, format_result
from cmsctl.services.telemetry import enable_telemetry

if TYPE_CHECKING:
    from cmsctl.config.settings import CmsSettings
    from cmsctl.infrastructure.store import Store
    from cmsctl.services.authorization import ActorContext
    from cmsctl.services.result import ServiceResult


class AppContext:
    """Settings, lazy store, acting identity and result emission."""

    def __init__(self, settings: CmsSettings) -> None:
        self.settings = settings
        self._store: Store | None = None
        self._actor: ActorContext | None = None

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if settings.verbose:
            enable_telemetry()

    @property
    def store(self) -> Store:
        if self._store is None:
            from cmsctl.infrastructure.store import Store

            self._store = Store(self.settings)
        return self._store

    @property
    def actor(self) -> ActorContext:
        """The acting identity.

        ``--actor``/``CMSCTL_ACTOR`` selects it; without one the seeded
        administrator acts.
        """
        if self._actor is None:
            from cmsctl.infrastructure.database.engine import ADMIN_ACTOR_ID
            from cmsctl.services.authorization import AuthorizationService

            actor_id = ADMIN_ACTOR_ID
            if self.settings.actor:
                try:
                    actor_id = uuid.UUID(self.settings.actor)
                except ValueError as exc:
                    msg = f"Invalid actor id {self.settings.actor!r}"
                    raise click.BadParameter(msg, param_hint="--actor") from exc
            self._actor = AuthorizationService(self.store).context_for(
                actor_id, roles=self.settings.roles
            )
        return self._actor

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
            self._store = None

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; failures go to stderr and exit with code 1.

        Warnings go to stderr in human mode; JSON output already carries them.
        """
        output_settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=output_settings)
        if result.ok:
            click.echo(output)
            if not output_settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
            return
        click.echo(output, err=True)
        raise SystemExit(1)
