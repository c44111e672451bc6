# =============================================================================
# tools/registry.py  —  Declarative Tool Registration
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Most tools are near-identical: "scrape this URL" with one flag flipped,
#   or "trigger dataset X and wait" with a different input list.  Instead
#   of hand-writing dozens of handlers, each tool is a data record and one
#   generic constructor turns records into registered tools.
#
#     ScrapeTool   → name, description, markdown flag
#     DatasetSpec  → name, description, dataset id, inputs (core/datasets.py)
#
# DYNAMIC SIGNATURES:
#   FastMCP builds a tool's input schema from its Python signature.  Dataset
#   tools have different inputs per row, so we construct the signature with
#   inspect.Signature and attach it to a generic body.  ToolGate then swaps
#   the leading ToolContext for the framework Context, exactly as it does
#   for hand-written tools.
# =============================================================================

import asyncio
import inspect
from dataclasses import dataclass
from typing import Annotated, Any, Awaitable, Callable, Iterable

from fastmcp import FastMCP
from pydantic import Field

from core.datasets import DATASETS
from core.models import DatasetSpec, ToolContext
from core.poller import MAX_ATTEMPTS, SnapshotPoller
from tools.invocation import ToolGate


UrlStr = Annotated[str, Field(pattern=r"^https?://\S+$", description="Absolute http(s) URL")]


@dataclass(frozen=True)
class ScrapeTool:
    name: str
    description: str
    markdown: bool


SCRAPE_TOOLS = [
    ScrapeTool(
        name="scrape_as_markdown",
        description=(
            "Scrape a single webpage URL with advanced options for content "
            "extraction and get back the results in MarkDown language. This "
            "tool can unlock any webpage even if it uses bot detection or CAPTCHA."
        ),
        markdown=True,
    ),
    ScrapeTool(
        name="scrape_as_html",
        description=(
            "Scrape a single webpage URL with advanced options for content "
            "extraction and get back the results in HTML. This tool can unlock "
            "any webpage even if it uses bot detection or CAPTCHA."
        ),
        markdown=False,
    ),
]


def _scrape_body(spec: ScrapeTool) -> Callable[..., Awaitable[str]]:
    async def scrape(call: ToolContext, url: UrlStr) -> str:
        return await call.upstream.request(url, call.unlocker_zone, markdown=spec.markdown)

    scrape.__name__ = spec.name
    scrape.__doc__ = spec.description
    return scrape


def register_scrape_tools(
    mcp: FastMCP, gate: ToolGate, specs: Iterable[ScrapeTool] = SCRAPE_TOOLS
) -> list[str]:
    names = []
    for spec in specs:
        handler = gate.tool(spec.name)(_scrape_body(spec))
        mcp.tool(name=spec.name, description=spec.description)(handler)
        names.append(spec.name)
    return names


# -----------------------------------------------------------------------------
# Dataset tools
# -----------------------------------------------------------------------------
def dataset_signature(spec: DatasetSpec) -> inspect.Signature:
    """``(call, *, url: UrlStr, other: str = default, ...) -> str``"""
    params = [
        inspect.Parameter(
            "call", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=ToolContext
        )
    ]
    for field_name in spec.inputs:
        annotation = UrlStr if field_name == "url" else str
        default = spec.defaults.get(field_name, inspect.Parameter.empty)
        params.append(
            inspect.Parameter(
                field_name,
                inspect.Parameter.KEYWORD_ONLY,
                annotation=annotation,
                default=default,
            )
        )
    return inspect.Signature(params, return_annotation=str)


def _dataset_body(
    spec: DatasetSpec,
    max_attempts: int,
    sleep: Callable[[float], Awaitable[Any]],
) -> Callable[..., Awaitable[str]]:
    async def collect(call: ToolContext, **inputs) -> str:
        poller = SnapshotPoller(
            call.upstream, max_attempts=max_attempts, sleep=sleep, label=call.tool_name
        )
        payload = {key: str(value) for key, value in inputs.items()}
        for key, value in spec.defaults.items():
            payload.setdefault(key, value)
        return await poller.collect(spec.dataset_id, payload, call.report_progress)

    collect.__name__ = spec.tool_name
    collect.__doc__ = spec.description
    collect.__signature__ = dataset_signature(spec)
    return collect


def register_dataset_tools(
    mcp: FastMCP,
    gate: ToolGate,
    datasets: Iterable[DatasetSpec] = DATASETS,
    max_attempts: int = MAX_ATTEMPTS,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> list[str]:
    names = []
    for spec in datasets:
        handler = gate.tool(spec.tool_name)(_dataset_body(spec, max_attempts, sleep))
        mcp.tool(name=spec.tool_name, description=spec.description)(handler)
        names.append(spec.tool_name)
    return names
