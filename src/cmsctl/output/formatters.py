"""Output mode selection for ServiceResult.

``--json`` dumps the whole result, ``--quiet`` prints ids only, and the
default is the Rich rendering from :mod:`cmsctl.output.renderers`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from cmsctl.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from cmsctl.services.result import ServiceResult


class OutputSettings(BaseModel):
    model_config = {"frozen": True}

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
