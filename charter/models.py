"""Domain models for the charter quote engine.

Pydantic models for airports, trips, legs, line items, rejection reasons
and the terminal quote result.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting both camelCase keys and field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Enums ---


class TripType(str, Enum):
    """Trip shapes a quote can be requested for."""

    ONE_WAY = "ONE_WAY"
    ROUND_TRIP = "ROUND_TRIP"


class CategoryId(str, Enum):
    """Aircraft size categories, smallest to largest."""

    CAT1 = "CAT1"
    CAT2 = "CAT2"
    CAT3 = "CAT3"
    CAT4 = "CAT4"
    CAT5 = "CAT5"
    CAT6 = "CAT6"
    CAT7 = "CAT7"
    CAT8 = "CAT8"


class Side(str, Enum):
    """Side of the Mississippi reference line an airport sits on."""

    EAST = "EAST"
    WEST = "WEST"


class LegKind(str, Enum):
    """Revenue vs. non-revenue flight segment."""

    OCCUPIED = "OCCUPIED"
    REPO = "REPO"


class RepoDirection(str, Enum):
    """Which end of the itinerary a repositioning leg serves."""

    ORIGIN = "origin"  # base -> itinerary start
    DESTINATION = "destination"  # itinerary end -> base


class QuoteStatus(str, Enum):
    OK = "OK"
    REJECTED = "REJECTED"


class LineItemCode(str, Enum):
    """Closed vocabulary of priced contributions to a quote."""

    BASE_OCCUPIED = "BASE_OCCUPIED"
    BASE_REPO = "BASE_REPO"
    BASE_REPO_ZONE = "BASE_REPO_ZONE"
    DISCOUNT_VHB = "DISCOUNT_VHB"
    DISCOUNT_TIME_BASED = "DISCOUNT_TIME_BASED"
    DISCOUNT_MAX_TRIP_PRICE_CAP = "DISCOUNT_MAX_TRIP_PRICE_CAP"
    FEE_GROUND_HANDLING = "FEE_GROUND_HANDLING"
    FEE_HIGH_DENSITY = "FEE_HIGH_DENSITY"
    FEE_LANDING = "FEE_LANDING"
    FEE_OVERNIGHT = "FEE_OVERNIGHT"
    FEE_DAILY = "FEE_DAILY"
    FEE_MIN_PRICE_PER_LEG = "FEE_MIN_PRICE_PER_LEG"
    FEE_MIN_TRIP_PRICE = "FEE_MIN_TRIP_PRICE"
    INFO_MATCH_SCORE = "INFO_MATCH_SCORE"
    INFO_SPLIT = "INFO_SPLIT"


# --- Reference data ---


class Airport(CamelModel):
    """Airport reference data. Immutable; looked up by ICAO code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    icao: str = Field(min_length=3, max_length=4, description="ICAO-style airport code")
    lat: float
    lon: float
    country: Optional[str] = None
    state: Optional[str] = None
    mississippi_direction: Side = Field(alias="mississippi_direction")
    timezone_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def resolve_code(cls, data: Any) -> Any:
        """Accept a bare airport code and resolve it from reference data."""
        if not isinstance(data, str):
            return data
        from charter.airports import lookup_airport

        airport = lookup_airport(data)
        if airport is None:
            raise ValueError(f"unknown airport code {data!r}")
        return airport.model_dump()

    @field_validator("icao", "country", "state", mode="before")
    @classmethod
    def uppercase_codes(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if isinstance(v, str) else v

    @property
    def region(self) -> Optional[str]:
        """Region code used for zone lookup: state when known, else country."""
        return self.state or self.country

    def same_as(self, other: Optional["Airport"]) -> bool:
        return other is not None and self.icao == other.icao


# --- Legs ---


class LegMeta(CamelModel):
    """Metadata accumulated on a leg as it moves through the pipeline."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    chosen_base_icao: Optional[str] = None
    actual_hours: Optional[float] = None
    adjusted_hours: Optional[float] = None
    distance_nm: Optional[float] = None
    # Zone-network attribution
    is_zone_repo: bool = False
    zone_id: Optional[str] = None
    zone_name: Optional[str] = None
    zone_repo_time: Optional[float] = None
    repo_direction: Optional[RepoDirection] = None
    peak_period_name: Optional[str] = None
    is_peak_override: Optional[bool] = None
    missing_zone_repo_time: Optional[bool] = None
    applied_rate: Optional[float] = None
    peak_multiplier: Optional[float] = None


class Leg(CamelModel):
    """A directed flight segment. Stages derive new legs via ``with_meta``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    kind: LegKind
    origin: Airport = Field(alias="from")
    destination: Airport = Field(alias="to")
    meta: LegMeta = Field(default_factory=LegMeta)

    def with_meta(self, **updates: Any) -> "Leg":
        """Return a copy of this leg carrying additional metadata."""
        return self.model_copy(update={"meta": self.meta.model_copy(update=updates)})

    @property
    def is_occupied(self) -> bool:
        return self.kind == LegKind.OCCUPIED

    @property
    def is_repo(self) -> bool:
        return self.kind == LegKind.REPO

    @property
    def is_zero_length(self) -> bool:
        return self.origin.icao == self.destination.icao

    @property
    def route(self) -> str:
        return f"{self.origin.icao}-{self.destination.icao}"


# --- Trip ---


class Trip(CamelModel):
    """A quote request's passenger itinerary. Never mutated."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    trip_type: TripType
    category: CategoryId
    aircraft_model_id: Optional[str] = None
    origin: Airport = Field(alias="from")
    destination: Airport = Field(alias="to")
    depart_local: datetime = Field(alias="departLocalISO")
    depart_timezone: Optional[str] = None
    return_local: Optional[datetime] = Field(default=None, alias="returnLocalISO")
    return_timezone: Optional[str] = None
    passengers: Optional[int] = Field(default=None, ge=1)

    @property
    def is_round_trip(self) -> bool:
        return self.trip_type == TripType.ROUND_TRIP

    @property
    def itinerary_end(self) -> Airport:
        """Where the aircraft sits after the last occupied leg."""
        return self.origin if self.is_round_trip else self.destination

    @property
    def timezone(self) -> Optional[str]:
        return self.depart_timezone or self.origin.timezone_id

    @property
    def span_end(self) -> Optional[datetime]:
        """Return timestamp for round trips, None for one-ways."""
        return self.return_local if self.is_round_trip else None

    def occupied_legs(self) -> list[Leg]:
        """Expand the trip into one occupied leg, or two for a round trip."""
        out = Leg(kind=LegKind.OCCUPIED, origin=self.origin, destination=self.destination)
        if not self.is_round_trip:
            return [out]
        back = Leg(kind=LegKind.OCCUPIED, origin=self.destination, destination=self.origin)
        return [out, back]

    def outbound_one_way(self) -> "Trip":
        """Outbound half of a split round trip."""
        return self.model_copy(
            update={
                "trip_type": TripType.ONE_WAY,
                "return_local": None,
                "return_timezone": None,
            }
        )

    def return_one_way(self) -> "Trip":
        """Return half of a split round trip: endpoints swapped, departing at return time."""
        return self.model_copy(
            update={
                "trip_type": TripType.ONE_WAY,
                "origin": self.destination,
                "destination": self.origin,
                "depart_local": self.return_local,
                "depart_timezone": self.return_timezone,
                "return_local": None,
                "return_timezone": None,
            }
        )


# --- Result models ---


class RejectReason(CamelModel):
    """Machine-readable reason a quote was rejected."""

    code: str
    message: str
    field_path: Optional[str] = None


class LineItem(CamelModel):
    """A priced contribution to the bill. Negative amounts are discounts."""

    code: LineItemCode
    label: str
    amount: float = 0.0
    meta: dict[str, Any] = Field(default_factory=dict)

    def tagged(self, **extra: Any) -> "LineItem":
        return self.model_copy(update={"meta": {**self.meta, **extra}})


class TimeSummary(CamelModel):
    occupied_hours: float = 0.0
    repo_hours: float = 0.0
    total_hours: float = 0.0
    match_score: Optional[float] = None
    overnights: int = 0
    calendar_days_touched: int = 1


class Totals(CamelModel):
    base_occupied: float = 0.0
    base_repo: float = 0.0
    discounts: float = 0.0
    fees: float = 0.0
    total: float = 0.0


class ZoneSideInfo(CamelModel):
    zone_id: str
    zone_name: str
    selected_airport: str
    base_repo_time: float = 0.0
    applied_repo_time: float = 0.0
    repo_direction: RepoDirection


class RateInfo(CamelModel):
    base_rate: float
    applied_rate: float


class PeakInfo(CamelModel):
    id: str
    name: str
    outbound_repo_time: Optional[float] = None
    inbound_repo_time: Optional[float] = None
    repo_rate_multiplier: Optional[float] = None
    occupied_multiplier: Optional[float] = None


class ZoneCalculationInfo(CamelModel):
    """How zone-based pricing arrived at its repositioning numbers."""

    outbound_zone: Optional[ZoneSideInfo] = None
    inbound_zone: Optional[ZoneSideInfo] = None
    repo_rate: Optional[RateInfo] = None
    occupied_rate: Optional[RateInfo] = None
    peak_period: Optional[PeakInfo] = None


class QuoteResult(CamelModel):
    """Terminal artifact: either rejection reasons or a full priced payload."""

    status: QuoteStatus
    reject_reasons: list[RejectReason] = Field(default_factory=list)
    legs: list[Leg] = Field(default_factory=list)
    times: Optional[TimeSummary] = None
    line_items: list[LineItem] = Field(default_factory=list)
    totals: Optional[Totals] = None
    zone_calculation: Optional[ZoneCalculationInfo] = None

    @model_validator(mode="after")
    def _payload_matches_status(self) -> "QuoteResult":
        if self.status == QuoteStatus.REJECTED:
            if not self.reject_reasons:
                raise ValueError("REJECTED result requires at least one reject reason")
            if self.totals is not None or self.line_items:
                raise ValueError("REJECTED result must not carry a priced payload")
        elif self.totals is None or self.times is None:
            raise ValueError("OK result requires times and totals")
        elif self.reject_reasons:
            raise ValueError("OK result must not carry reject reasons")
        return self

    @classmethod
    def rejected(cls, reason: RejectReason) -> "QuoteResult":
        return cls(status=QuoteStatus.REJECTED, reject_reasons=[reason])

    @property
    def ok(self) -> bool:
        return self.status == QuoteStatus.OK

    @property
    def reject_reason(self) -> Optional[RejectReason]:
        return self.reject_reasons[0] if self.reject_reasons else None

    @property
    def total(self) -> Optional[float]:
        return self.totals.total if self.totals else None


def reject(code: str, message: str, field_path: Optional[str] = None) -> RejectReason:
    """Shorthand for building a RejectReason."""
    return RejectReason(code=code, message=message, field_path=field_path)
