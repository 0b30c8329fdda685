"""Shapes of the generated flight-booking sample data.

Field names follow the camelCase JSON the chat UI renders (``priceInUSD``,
``airportCode`` ...); dump with ``by_alias=True``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FlightEndpoint(_CamelModel):
    city_name: str
    airport_code: str
    timestamp: str


class AirportDetails(FlightEndpoint):
    airport_name: str = ""
    terminal: str = ""
    gate: str = ""


class FlightOption(_CamelModel):
    id: str
    departure: FlightEndpoint
    arrival: FlightEndpoint
    airlines: list[str] = Field(default_factory=list)
    price_in_usd: float = Field(alias="priceInUSD")
    number_of_stops: int = 0


class FlightSearchResults(_CamelModel):
    flights: list[FlightOption]


class FlightStatus(_CamelModel):
    flight_number: str
    departure: AirportDetails
    arrival: AirportDetails
    total_distance_in_miles: float


class Seat(_CamelModel):
    seat_number: str
    price_in_usd: float = Field(alias="priceInUSD")
    is_available: bool


class SeatMap(_CamelModel):
    seats: list[Seat]


class ReservationPrice(_CamelModel):
    total_price_in_usd: float = Field(alias="totalPriceInUSD")
