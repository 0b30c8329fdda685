"""Tools declared to the chat model and their JSON-argument dispatch."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ValidationError

from research_chat.agents import booking
from research_chat.errors import FetchError, error_payload
from research_chat.models.research import ResearchPlan
from research_chat.models.schemas import (
    AdvancedDeepResearchArgs,
    AnalyzeUrlArgs,
    CreateReservationArgs,
    DisplayBoardingPassArgs,
    FlightStatusArgs,
    GetWeatherArgs,
    PerformSearchArgs,
    ReservationIdArgs,
    SearchFlightsArgs,
    SelectSeatsArgs,
    SimpleDeepResearchArgs,
)
from research_chat.research import orchestrator
from research_chat.services.logger import log_tool_call, logger
from research_chat.tools import weather


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    args_model: type[BaseModel]
    handler: Callable[[Any], Awaitable[dict[str, Any]]]
    # Result keys passed to the model but never streamed to the browser.
    hidden_fields: frozenset[str] = field(default_factory=frozenset)

    @property
    def input_schema(self) -> dict[str, Any]:
        schema = self.args_model.model_json_schema(by_alias=True)
        defs = schema.pop("$defs", {})
        schema.pop("title", None)
        return _inline_refs(schema, defs)

    def declaration(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


def _inline_refs(node: Any, defs: dict[str, Any]) -> Any:
    """Replace local ``$ref`` pointers with the definitions they name."""
    if isinstance(node, list):
        return [_inline_refs(item, defs) for item in node]
    if not isinstance(node, dict):
        return node
    ref = node.get("$ref")
    if isinstance(ref, str) and ref.startswith("#/$defs/"):
        target = dict(defs[ref.rsplit("/", 1)[-1]])
        target.pop("title", None)
        merged = {**target, **{k: v for k, v in node.items() if k != "$ref"}}
        return _inline_refs(merged, defs)
    return {k: _inline_refs(v, defs) for k, v in node.items()}

async def _perform_search(args: PerformSearchArgs) -> dict[str, Any]:
    return await orchestrator.simple_search(args.query, args.num_results, args.category)


async def _simple_deep_research(args: SimpleDeepResearchArgs) -> dict[str, Any]:
    return await orchestrator.deep_research(args.query, args.num_results)


async def _advanced_deep_research(args: AdvancedDeepResearchArgs) -> dict[str, Any]:
    plan = None
    if args.research_plan is not None and args.research_plan.sub_questions:
        plan = ResearchPlan(
            sub_questions=tuple(args.research_plan.sub_questions),
            rationale=args.research_plan.rationale,
        )
    return await orchestrator.advanced_research(
        args.query,
        plan=plan,
        max_searches=args.max_searches,
        include_details=args.include_details,
    )


async def _analyze_url(args: AnalyzeUrlArgs) -> dict[str, Any]:
    return await orchestrator.analyze_url(args.url)


async def _get_weather(args: GetWeatherArgs) -> dict[str, Any]:
    t0 = time.monotonic()
    try:
        forecast = await weather.get_forecast(args.latitude, args.longitude)
    except FetchError as e:
        log_tool_call("getWeather", "error", int((time.monotonic() - t0) * 1000), error=str(e))
        return error_payload("Failed to get weather", e)
    log_tool_call("getWeather", "success", int((time.monotonic() - t0) * 1000))
    return forecast


TOOLS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec(
            name="getWeather",
            description="Get the current weather at a location",
            args_model=GetWeatherArgs,
            handler=_get_weather,
        ),
        ToolSpec(
            name="analyzeURL",
            description="Analyze the content of a webpage URL and provide insights",
            args_model=AnalyzeUrlArgs,
            handler=_analyze_url,
            hidden_fields=frozenset({"rawContent"}),
        ),
        ToolSpec(
            name="performSearch",
            description="Search the web for information using Tavily",
            args_model=PerformSearchArgs,
            handler=_perform_search,
        ),
        ToolSpec(
            name="simpleDeepResearch",
            description="Perform deep research by searching and analyzing top results",
            args_model=SimpleDeepResearchArgs,
            handler=_simple_deep_research,
        ),
        ToolSpec(
            name="advancedDeepResearch",
            description=(
                "Perform multi-step deep research by executing multiple searches based on "
                "your research plan and synthesizing findings"
            ),
            args_model=AdvancedDeepResearchArgs,
            handler=_advanced_deep_research,
        ),
        ToolSpec(
            name="displayFlightStatus",
            description="Display the status of a flight",
            args_model=FlightStatusArgs,
            handler=booking.display_flight_status,
        ),
        ToolSpec(
            name="searchFlights",
            description="Search for flights based on the given parameters",
            args_model=SearchFlightsArgs,
            handler=booking.search_flights,
        ),
        ToolSpec(
            name="selectSeats",
            description="Select seats for a flight",
            args_model=SelectSeatsArgs,
            handler=booking.select_seats,
        ),
        ToolSpec(
            name="createReservation",
            description="Display pending reservation details",
            args_model=CreateReservationArgs,
            handler=booking.create_reservation,
        ),
        ToolSpec(
            name="authorizePayment",
            description="User will enter credentials to authorize payment, wait for user to respond when they are done",
            args_model=ReservationIdArgs,
            handler=booking.authorize_payment,
        ),
        ToolSpec(
            name="verifyPayment",
            description="Verify payment status",
            args_model=ReservationIdArgs,
            handler=booking.verify_payment,
        ),
        ToolSpec(
            name="displayBoardingPass",
            description="Display a boarding pass",
            args_model=DisplayBoardingPassArgs,
            handler=booking.display_boarding_pass,
        ),
    )
}


def declarations(names: list[str] | None = None) -> list[dict[str, Any]]:
    """Tool declarations in the order they were registered."""
    return [spec.declaration() for name, spec in TOOLS.items() if names is None or name in names]


async def dispatch(name: str, arguments: dict[str, Any] | None) -> dict[str, Any]:
    """Run a tool by name. Never raises: failures come back as error payloads."""
    spec = TOOLS.get(name)
    if spec is None:
        logger.warning(f"Model requested unknown tool: {name}")
        return error_payload(f"Unknown tool: {name}", f"Available tools: {', '.join(TOOLS)}")

    try:
        args = spec.args_model.model_validate(arguments or {})
    except ValidationError as e:
        logger.warning(f"Invalid arguments for {name}: {e.errors()}")
        return error_payload(f"Invalid arguments for {name}", e)

    return await spec.handler(args)


def client_view(name: str, result: dict[str, Any]) -> dict[str, Any]:
    """Copy of a tool result safe to stream to the browser."""
    spec = TOOLS.get(name)
    if spec is None or not spec.hidden_fields:
        return result
    return {k: v for k, v in result.items() if k not in spec.hidden_fields}
