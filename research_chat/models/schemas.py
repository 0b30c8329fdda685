from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _ToolArgs(BaseModel):
    """Tool arguments arrive as camelCase JSON from the model."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# --- Tool arguments ---


class PerformSearchArgs(_ToolArgs):
    query: str = Field(min_length=1, description="The search query")
    num_results: int = Field(
        default=5,
        ge=1,
        alias="numResults",
        description="Number of results to return (default: 5)",
    )
    category: str = Field(
        default="general",
        description="Optional category for search (general, news, finance)",
    )


class SimpleDeepResearchArgs(_ToolArgs):
    query: str = Field(min_length=1, description="The research query")
    num_results: int = Field(
        default=3,
        ge=1,
        alias="numResults",
        description="Number of top results to analyze in depth (default: 3)",
    )


class ResearchPlanArgs(_ToolArgs):
    sub_questions: list[str] = Field(
        default_factory=list,
        alias="subQuestions",
        description="List of specific sub-questions to search for (3-5 recommended)",
    )
    rationale: str | None = Field(
        default=None,
        description="Optional explanation of the research approach",
    )

    @field_validator("sub_questions")
    @classmethod
    def _drop_blank(cls, value: list[str]) -> list[str]:
        return [q.strip() for q in value if q and q.strip()]


class AdvancedDeepResearchArgs(_ToolArgs):
    query: str = Field(min_length=1, description="The main research question")
    research_plan: ResearchPlanArgs | None = Field(
        default=None,
        alias="researchPlan",
        description="Your research plan with targeted sub-questions",
    )
    max_searches: int | None = Field(
        default=None,
        ge=1,
        alias="maxSearches",
        description="Maximum number of search queries to perform (default: 5)",
    )
    include_details: bool = Field(
        default=False,
        alias="includeDetails",
        description="Whether to include detailed research process in output (default: false)",
    )


class AnalyzeUrlArgs(_ToolArgs):
    url: str = Field(min_length=1, description="The URL to analyze")


class GetWeatherArgs(_ToolArgs):
    latitude: float = Field(description="Latitude coordinate")
    longitude: float = Field(description="Longitude coordinate")


class SearchFlightsArgs(_ToolArgs):
    origin: str = Field(min_length=1, description="Origin airport or city")
    destination: str = Field(min_length=1, description="Destination airport or city")


class FlightStatusArgs(_ToolArgs):
    flight_number: str = Field(min_length=1, alias="flightNumber", description="Flight number")
    date: str = Field(min_length=1, description="Date of the flight")


class SelectSeatsArgs(_ToolArgs):
    flight_number: str = Field(min_length=1, alias="flightNumber", description="Flight number")


class EndpointArgs(_ToolArgs):
    city_name: str = Field(alias="cityName", description="Name of the city")
    airport_code: str = Field(alias="airportCode", description="Code of the airport")
    timestamp: str = Field(description="ISO 8601 date of departure or arrival")
    gate: str = Field(default="", description="Gate")
    terminal: str = Field(default="", description="Terminal")


class BoardingEndpointArgs(EndpointArgs):
    airport_name: str = Field(default="", alias="airportName", description="Name of the airport")


class CreateReservationArgs(_ToolArgs):
    seats: list[str] = Field(min_length=1, description="Seats selected by the passenger")
    flight_number: str = Field(min_length=1, alias="flightNumber", description="Flight number")
    departure: EndpointArgs
    arrival: EndpointArgs
    passenger_name: str = Field(min_length=1, alias="passengerName", description="Name of the passenger")


class ReservationIdArgs(_ToolArgs):
    reservation_id: str = Field(
        min_length=1, alias="reservationId", description="Unique identifier for the reservation"
    )


class DisplayBoardingPassArgs(_ToolArgs):
    reservation_id: str = Field(alias="reservationId", description="Unique identifier for the reservation")
    passenger_name: str = Field(alias="passengerName", description="Name of the passenger, in title case")
    flight_number: str = Field(alias="flightNumber", description="Flight number")
    seat: str = Field(description="Seat number")
    departure: BoardingEndpointArgs
    arrival: BoardingEndpointArgs


# --- Requests ---


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str = ""


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    messages: list[ChatMessage]
    system_prompt: str | None = Field(default=None, alias="systemPrompt")
    prompt: str | None = None
    max_searches: int | None = Field(default=None, ge=1, alias="maxSearches")


# --- Responses ---


class ToolInfo(BaseModel):
    name: str
    description: str
    input_schema: dict[str, Any]


class ToolsResponse(BaseModel):
    tools: list[ToolInfo]


class PromptsResponse(BaseModel):
    prompts: list[str]
    default: str
