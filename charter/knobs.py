"""Pricing configuration ("knobs") models.

A nested, mostly-optional configuration tree supplied per quote request and
treated as read-only input. Keys load from the camelCase JSON/YAML the
configuration UI writes, or from snake_case field names.
"""

from datetime import date as Date
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import AliasChoices, Field, field_validator

from charter.models import Airport, CamelModel, CategoryId


# --- Enums ---


class RepoMode(str, Enum):
    """Where the aircraft starts and ends relative to the itinerary."""

    FIXED_BASE = "fixed_base"
    VHB_NETWORK = "vhb_network"
    ZONE_NETWORK = "zone_network"
    FLOATING_FLEET = "floating_fleet"


class RepoPolicy(str, Enum):
    BOTH = "both"
    OUTBOUND_ONLY = "outbound_only"
    INBOUND_ONLY = "inbound_only"


class VhbSelection(str, Enum):
    CLOSEST_BY_DISTANCE = "closest_by_distance"


class AdjustmentTarget(str, Enum):
    """Which legs receive taxi and buffer time."""

    OCCUPIED = "occupied"
    REPO = "repo"
    BOTH = "both"


class RateModel(str, Enum):
    SINGLE_HOURLY = "single_hourly"
    DUAL_RATE = "dual_rate_repo_occupied"
    ZONE_BASED = "zone_based"


class VhbDiscountMode(str, Enum):
    NONE = "none"
    ORIGIN_OR_DESTINATION = "origin_or_destination"
    BOTH_REQUIRED = "both_required"


class DiscountBase(str, Enum):
    """Amount a discount percentage is taken from."""

    BASE_ONLY = "base_only"
    SUBTOTAL_BEFORE_FEES = "subtotal_before_fees"  # base + fees
    TOTAL = "total"  # running total before this discount


class MatchScoreAction(str, Enum):
    REJECT = "reject"
    RANK_ONLY = "rank_only"


class GroundHandlingScope(str, Enum):
    OCCUPIED_ONLY = "occupied_only"
    ALL_LEGS = "all_legs"


class HighDensityCounting(str, Enum):
    SEGMENT_ENDPOINTS = "segment_endpoints"
    ARRIVALS_ONLY = "arrivals_only"
    LANDINGS = "landings"


class LandingCounting(str, Enum):
    ARRIVALS_ONLY = "arrivals_only"
    LANDINGS = "landings"


class LandingLogic(str, Enum):
    STANDARD = "standard"
    HOMEBASE_CONDITIONAL = "homebase_conditional"


class OvernightTrigger(str, Enum):
    NONE = "none"
    ROUND_TRIP_ONLY = "round_trip_only"
    ALWAYS = "always"


class DayCounting(str, Enum):
    UNIQUE_DATES_TOUCHED = "unique_dates_touched"
    NIGHTS_PLUS_ONE = "nights_plus_one"


class SideRequirement(str, Enum):
    BOTH_EAST = "both_east"
    BOTH_WEST = "both_west"


class SideName(str, Enum):
    EAST = "east"
    WEST = "west"


class ResultSelection(str, Enum):
    LOWEST = "lowest"
    HIGHEST = "highest"
    ALL = "all"


class RankMetric(str, Enum):
    PRICE = "price"
    MATCH_SCORE = "matchScore"


# --- Repositioning ---


class VhbSets(CamelModel):
    default: list[Airport] = Field(default_factory=list)
    by_category: dict[CategoryId, list[Airport]] = Field(default_factory=dict)


class RepoConstraints(CamelModel):
    max_origin_repo_hours: Optional[float] = None
    max_destination_repo_hours: Optional[float] = None
    reject_if_exceeded: bool = False


class Zone(CamelModel):
    """A named set of region codes (US states, or countries)."""

    id: str
    name: str
    regions: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("regions", "states")
    )

    @field_validator("regions", mode="before")
    @classmethod
    def uppercase_regions(cls, v):
        if isinstance(v, list):
            return [r.upper() if isinstance(r, str) else r for r in v]
        return v


class ZoneRepoTimes(CamelModel):
    """Repositioning hours charged when a trip starts or ends in a zone."""

    zone_id: str
    origin_repo_time: float = 0.0
    destination_repo_time: float = 0.0


class PeakPeriod(CamelModel):
    """Date range overriding zone repo times and/or multiplying rates.

    A time override of 0 (or a missing entry) means "no override".
    """

    id: str
    name: str
    start_date: Date
    end_date: Date
    zone_time_overrides: list[ZoneRepoTimes] = Field(default_factory=list)
    repo_rate_multiplier: Optional[float] = None
    occupied_multiplier: Optional[float] = None

    def contains(self, day: Date) -> bool:
        return self.start_date <= day <= self.end_date

    def time_override_for(self, zone_id: str) -> Optional[ZoneRepoTimes]:
        for override in self.zone_time_overrides:
            if override.zone_id == zone_id:
                return override
        return None


class ZoneNetworkConfig(CamelModel):
    zones: list[Zone] = Field(default_factory=list)
    zone_repo_times: list[ZoneRepoTimes] = Field(default_factory=list)
    peak_periods: list[PeakPeriod] = Field(default_factory=list)

    def zone_for_region(self, region: Optional[str]) -> Optional[Zone]:
        """First zone (in list order) whose region set contains ``region``."""
        if not region:
            return None
        region = region.upper()
        for zone in self.zones:
            if region in zone.regions:
                return zone
        return None

    def repo_times_for(self, zone_id: str) -> Optional[ZoneRepoTimes]:
        for times in self.zone_repo_times:
            if times.zone_id == zone_id:
                return times
        return None

    def peak_for(self, day: Date) -> Optional[PeakPeriod]:
        """First peak period (in list order) covering ``day``."""
        for peak in self.peak_periods:
            if peak.contains(day):
                return peak
        return None


class RepoKnobs(CamelModel):
    mode: RepoMode
    policy: RepoPolicy = RepoPolicy.BOTH
    fixed_base: Optional[Airport] = Field(
        default=None, validation_alias=AliasChoices("fixedBase", "fixedBaseIcao", "fixed_base")
    )
    vhb_sets: VhbSets = Field(default_factory=VhbSets)
    vhb_selection: VhbSelection = VhbSelection.CLOSEST_BY_DISTANCE
    constraints: Optional[RepoConstraints] = None
    zone_network: Optional[ZoneNetworkConfig] = None


# --- Time ---


class TimeMinimums(CamelModel):
    min_actual_flight_hours_per_leg: Optional[float] = None
    min_first_occupied_leg_hours: Optional[float] = None
    min_total_trip_hours: Optional[float] = None
    min_occupied_hours_total: Optional[float] = None


class DailyLimits(CamelModel):
    max_occupied_hours_per_day: Optional[float] = None


class TimeKnobs(CamelModel):
    taxi_hours_per_leg: float = 0.0
    buffer_hours_per_leg: float = 0.0
    apply_to: AdjustmentTarget = AdjustmentTarget.OCCUPIED
    minimums: TimeMinimums = Field(default_factory=TimeMinimums)
    daily_limits: DailyLimits = Field(default_factory=DailyLimits)


# --- Pricing ---


class PricingModelKnobs(CamelModel):
    currency: Literal["USD"] = "USD"
    rate_model: RateModel
    hourly_rate: Optional[float] = None
    repo_rate: Optional[float] = None
    occupied_rate: Optional[float] = None


# --- Discounts and scoring ---


class VhbDiscount(CamelModel):
    """Home-base discount. ``percent`` is a fraction (0.10 = 10%)."""

    mode: VhbDiscountMode = VhbDiscountMode.NONE
    percent: float = Field(default=0.0, ge=0)
    applies_to: DiscountBase = DiscountBase.BASE_ONLY


class TimeBasedDiscount(CamelModel):
    """Discount when every occupied leg flies long enough. Whole percent."""

    enabled: bool = False
    min_occupied_hours_per_leg: float = 0.0
    discount_percent: float = Field(default=0.0, ge=0)
    applies_to: DiscountBase = DiscountBase.BASE_ONLY


class DiscountKnobs(CamelModel):
    vhb_discount: Optional[VhbDiscount] = None
    time_based_discount: Optional[TimeBasedDiscount] = None


class MatchScoreKnobs(CamelModel):
    enabled: bool = False
    threshold: float = Field(default=0.0, ge=0, le=10)
    action: MatchScoreAction = MatchScoreAction.REJECT


class ScoringKnobs(CamelModel):
    match_score: Optional[MatchScoreKnobs] = None


# --- Fees ---


class GroundHandlingFee(CamelModel):
    per_segment_amount: float = 0.0
    applies_to: GroundHandlingScope = GroundHandlingScope.OCCUPIED_ONLY


class HighDensityFee(CamelModel):
    airports: list[Airport] = Field(default_factory=list)
    fee_per_visit: float = 0.0
    counting_mode: HighDensityCounting = HighDensityCounting.SEGMENT_ENDPOINTS
    round_trip_origin_double_charge: bool = False
    trip_cap: Optional[float] = None


class LandingFees(CamelModel):
    counting_mode: LandingCounting = LandingCounting.ARRIVALS_ONLY
    default_amount: float = 0.0
    hd_override_amount: Optional[float] = None
    hd_airports: list[Airport] = Field(default_factory=list)
    conditional_logic: LandingLogic = LandingLogic.STANDARD
    homebase: Optional[Airport] = None


class OvernightFee(CamelModel):
    amount_per_night: float = 0.0
    applies_when: OvernightTrigger = OvernightTrigger.NONE


class DailyOverride(CamelModel):
    start_date: Date
    end_date: Date
    amount_per_day: float
    label: Optional[str] = None

    def contains(self, day: Date) -> bool:
        return self.start_date <= day <= self.end_date


class DailyFee(CamelModel):
    amount_per_calendar_day: float = 0.0
    calendar_day_counting: DayCounting = DayCounting.UNIQUE_DATES_TOUCHED
    date_overrides: list[DailyOverride] = Field(default_factory=list)


class PriceConstraints(CamelModel):
    min_price_per_leg: Optional[float] = None
    min_trip_price: Optional[float] = None
    max_trip_price: Optional[float] = None


class FeeKnobs(CamelModel):
    ground_handling: Optional[GroundHandlingFee] = None
    high_density: Optional[HighDensityFee] = None
    landing_fees: Optional[LandingFees] = None
    overnight: Optional[OvernightFee] = None
    daily: Optional[DailyFee] = None
    price_constraints: Optional[PriceConstraints] = None


# --- Eligibility ---


class MississippiRule(CamelModel):
    """Trips constrained by which side of the Mississippi airports fall on."""

    type: Literal["mississippi_rule"] = "mississippi_rule"
    one_way_requires: SideRequirement
    round_trip_up_to_nights_requires_origin: int = 0
    round_trip_up_to_nights_side: SideName = SideName.EAST
    round_trip_beyond_nights_requires: SideRequirement


class AllowedCountriesRule(CamelModel):
    type: Literal["allowed_countries"] = "allowed_countries"
    countries: list[str] = Field(default_factory=list)


GeoRule = Annotated[Union[MississippiRule, AllowedCountriesRule], Field(discriminator="type")]


class EligibilityKnobs(CamelModel):
    domestic_only: bool = False
    max_advance_days: Optional[float] = None
    max_passengers: Optional[int] = None
    exclude_states: list[str] = Field(default_factory=list)
    geo_rules: list[GeoRule] = Field(default_factory=list)
    max_occupied_hours_per_leg: Optional[float] = None
    max_same_day_round_trip_hours: Optional[float] = None


# --- Results and trip-level settings ---


class ResultsKnobs(CamelModel):
    selection: ResultSelection = ResultSelection.LOWEST
    rank_metric: RankMetric = RankMetric.PRICE


class TripKnobs(CamelModel):
    max_nights_before_split: Optional[int] = None


class PricingKnobs(CamelModel):
    """Fully-resolved pricing configuration for one quote request."""

    repo: RepoKnobs
    time: TimeKnobs = Field(default_factory=TimeKnobs)
    pricing: PricingModelKnobs
    discounts: DiscountKnobs = Field(default_factory=DiscountKnobs)
    scoring: ScoringKnobs = Field(default_factory=ScoringKnobs)
    fees: FeeKnobs = Field(default_factory=FeeKnobs)
    eligibility: EligibilityKnobs = Field(default_factory=EligibilityKnobs)
    results: ResultsKnobs = Field(default_factory=ResultsKnobs)
    trip: TripKnobs = Field(default_factory=TripKnobs)
