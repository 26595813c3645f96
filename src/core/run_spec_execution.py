"""Shared run-spec execution engine for CLI and SDK workflows.

This module maps validated run-spec steps to client operations so different
entry points can execute one declarative pipeline path without drift.
"""

from __future__ import annotations

from dataclasses import asdict
import json
from typing import Any, Protocol

from core.constants import (
    DEFAULT_QUERY_LIMIT,
    OUTPUT_FORMAT_BOTH,
    QUERY_SOURCE_DOCUMENTS,
    SUPPORTED_OUTPUT_FORMATS,
    SUPPORTED_QUERY_SOURCES,
)
from core.errors import WaterQRunSpecError
from core.run_spec import RunSpec, RunSpecStep, load_run_spec
from core.run_spec_fields import (
    choice_with_default,
    int_with_default,
    optional_string,
    required_string,
)
from core.types import BuildOptions, BuildResult, QueryPage, QueryParams


class RunSpecClient(Protocol):
    """Client API contract required by run-spec execution."""

    def with_output_root(self, output_root: str) -> Any: ...

    def build(self, options: BuildOptions) -> BuildResult: ...

    def query(self, params: QueryParams, source: str = QUERY_SOURCE_DOCUMENTS) -> QueryPage: ...


def execute_run_spec_file(client: RunSpecClient, spec_file: str) -> tuple[str, ...]:
    """Load and execute a run-spec file, returning printable output lines."""
    spec = load_run_spec(spec_file)
    return execute_run_spec(client, spec)


def execute_run_spec(client: RunSpecClient, spec: RunSpec) -> tuple[str, ...]:
    """Execute a parsed run-spec object and return output lines."""
    execution_client = (
        client.with_output_root(spec.defaults.output_root) if spec.defaults.output_root else client
    )
    output_lines: list[str] = []
    for step in spec.steps:
        output_lines.extend(_execute_step(execution_client, step))
    return tuple(output_lines)


def format_build_result(result: BuildResult) -> tuple[str, ...]:
    """Render a build summary as ``key=value`` lines."""
    return tuple(
        f"{key}={'-' if value is None else value}" for key, value in asdict(result).items()
    )


def _execute_step(client: RunSpecClient, step: RunSpecStep) -> tuple[str, ...]:
    if step.command == "build":
        return _execute_build_step(client, step)
    if step.command == "query":
        return (_execute_query_step(client, step),)
    raise WaterQRunSpecError(f"Unsupported run-spec command '{step.command}'.")


def _execute_build_step(client: RunSpecClient, step: RunSpecStep) -> tuple[str, ...]:
    options = BuildOptions(
        samples_path=required_string(step.args, "samples"),
        zip_codes_path=optional_string(step.args, "zip_codes"),
        additional_path=optional_string(step.args, "additional"),
        output_format=choice_with_default(
            step.args, "format", SUPPORTED_OUTPUT_FORMATS, OUTPUT_FORMAT_BOTH
        ),
    )
    return format_build_result(client.build(options))


def _execute_query_step(client: RunSpecClient, step: RunSpecStep) -> str:
    params = QueryParams(
        pwsid=optional_string(step.args, "pwsid"),
        pws_name=optional_string(step.args, "pws_name"),
        state=optional_string(step.args, "state"),
        zipcode=optional_string(step.args, "zipcode"),
        limit=int_with_default(step.args, "limit", DEFAULT_QUERY_LIMIT),
        offset=int_with_default(step.args, "offset", 0),
    )
    source = choice_with_default(
        step.args, "source", SUPPORTED_QUERY_SOURCES, QUERY_SOURCE_DOCUMENTS
    )
    page = client.query(params, source=source)
    return json.dumps(page.to_payload(), sort_keys=True)
