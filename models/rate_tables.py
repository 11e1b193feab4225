"""
Rate table models.

Rate tables are read-only inputs to the engine, owned by an external
rate-management store. The service hands the engine one RateTables
snapshot per calculation; nothing in the engine mutates it.

Invariant:
    Ranged tables are non-empty, non-overlapping and ordered by their
    lower bound. A lookup outside every range resolves to the last entry
    (extrapolation), except where a table documents its own default.
    RateTables checks this on construction and raises RateTableError.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Dict, Any, List, Optional, Sequence, Tuple, Type, TypeVar

from core.exceptions import RateTableError
from models.machine import MachineClass


T = TypeVar("T")


# =============================================================================
# RANGED ENTRIES
# =============================================================================

@dataclass(frozen=True)
class RangeEntry:
    """Base for entries keyed by an inclusive [min_value, max_value] range."""

    min_value: float
    max_value: float

    def contains(self, value: float) -> bool:
        return self.min_value <= value <= self.max_value


@dataclass(frozen=True)
class WastageEntry(RangeEntry):
    """
    Waste allowance for one quantity range.

    Columns are selected by the effective colour count. When
    is_percentage is set the column values are percentages of quantity.
    """

    four_color: float = 0.0
    two_color: float = 0.0
    one_color: float = 0.0
    is_percentage: bool = False

    def column_for(self, max_colors: int) -> float:
        if max_colors >= 4:
            return self.four_color
        if max_colors >= 2:
            return self.two_color
        return self.one_color


@dataclass(frozen=True)
class ImpressionRateEntry(RangeEntry):
    """Legacy rate per 1,000 impressions for an impressions-per-form range."""

    rates: Dict[str, float] = field(default_factory=dict)
    """Keyed by MachineClass value."""

    def rate_for(self, machine_class: MachineClass) -> float:
        if machine_class.value in self.rates:
            return self.rates[machine_class.value]
        return self.rates[MachineClass.FAV.value]


@dataclass(frozen=True)
class SurchargeBand(RangeEntry):
    """Printing surcharge for thin papers, keyed by gsm."""

    percent: float = 0.0


@dataclass(frozen=True)
class PerfectBindingTier(RangeEntry):
    rate_per_16pp: float = 0.0
    gathering_rate: float = 0.0
    setup_cost: float = 0.0


@dataclass(frozen=True)
class SaddleStitchTier(RangeEntry):
    rate_per_copy: float = 0.0
    setup_cost: float = 0.0


@dataclass(frozen=True)
class HardcaseTier(RangeEntry):
    """
    Section-sewn hardcase rates.

    fixed_per_copy bundles the per-copy case work that does not depend on
    page count (tipping, lining, casing-in, pressing, glue, trimming,
    inspection, case lamination, head/tail band).
    """

    sewing_rate_per_16pp: float = 0.0
    fixed_per_copy: float = 0.0
    setup_cost: float = 0.0


@dataclass(frozen=True)
class SpotUVTier(RangeEntry):
    rate_per_copy: float = 0.0
    block_cost: float = 0.0


# =============================================================================
# PLAIN ENTRIES
# =============================================================================

@dataclass(frozen=True)
class PaperSize:
    """Standard press sheet size."""

    label: str
    width_in: float
    height_in: float

    @property
    def area_sq_in(self) -> float:
        return self.width_in * self.height_in


@dataclass(frozen=True)
class PaperRate:
    """Price of one ream (500 sheets) of a paper at a given size."""

    paper_type: str
    code: str
    gsm: float
    size_label: str
    landed_cost: float
    charge_rate: float
    rate_per_kg: float = 0.0


@dataclass(frozen=True)
class BoardType:
    """Greyboard sheet stock for hardcase boards."""

    board_id: str
    name: str
    thickness_mm: float
    sheet_width_in: float
    sheet_height_in: float
    rate_per_sheet: float


@dataclass(frozen=True)
class WireOEntry:
    """Wire-O size that can bind a block up to max_thickness_mm."""

    diameter: str
    max_thickness_mm: float
    standard_per_100: float


@dataclass(frozen=True)
class FinishingRate:
    """Per-copy finishing rate with one-off tooling and a minimum charge."""

    rate_per_copy: float
    setup_cost: float = 0.0
    minimum_order: float = 0.0


@dataclass(frozen=True)
class Destination:
    """Freight rates for one delivery destination."""

    destination_id: str
    name: str
    country: str = ""
    is_overseas: bool = False
    sea_per_container20: float = 0.0
    sea_per_pallet: float = 0.0
    surface_per_pallet: float = 0.0
    surface_per_truck: float = 0.0
    surface_per_ton: float = 0.0
    air_per_kg: float = 0.0
    clearance_charges: float = 0.0
    cha_charges: float = 0.0
    port_handling: float = 0.0
    documentation: float = 0.0
    bl_charges: float = 0.0

    @property
    def overseas_charges(self) -> float:
        if not self.is_overseas:
            return 0.0
        return (
            self.clearance_charges
            + self.cha_charges
            + self.port_handling
            + self.documentation
            + self.bl_charges
        )


@dataclass(frozen=True)
class VolumeDiscountTier:
    """Discount percent for quantities at or above min_quantity."""

    min_quantity: int
    percent: float


# =============================================================================
# GROUPED TABLES
# =============================================================================

@dataclass(frozen=True)
class ImpositionRules:
    paper_sizes: Tuple[PaperSize, ...]
    bleed_mm: float = 3.0
    gripper_mm: float = 12.0
    pages_per_form_options: Tuple[int, ...] = (4, 8, 16, 32)


@dataclass(frozen=True)
class PrintingRules:
    impression_rates: Tuple[ImpressionRateEntry, ...]
    thin_paper_surcharges: Tuple[SurchargeBand, ...] = ()
    default_make_ready_per_form: float = 1500.0
    default_ctp_rate: float = 271.0


@dataclass(frozen=True)
class BindingRates:
    perfect: Tuple[PerfectBindingTier, ...]
    saddle: Tuple[SaddleStitchTier, ...]
    hardcase: Tuple[HardcaseTier, ...]
    wire_o: Tuple[WireOEntry, ...]
    wire_o_punching_per_copy: float = 0.15
    wire_o_binding_per_copy: float = 0.25
    wire_o_setup_cost: float = 0.0


@dataclass(frozen=True)
class FinishingRates:
    lamination: Dict[str, FinishingRate]
    spot_uv: Tuple[SpotUVTier, ...]
    embossing: FinishingRate
    foil_blocking: FinishingRate
    die_cutting: Dict[str, FinishingRate]
    reference_area_sq_in: float = 5.83 * 8.27
    """A5 cover area used to scale lamination."""

    minimum_area_factor: float = 1.0


@dataclass(frozen=True)
class PackingRates:
    carton_cost: float = 45.0
    pallet_cost: float = 1350.0
    stretch_wrap_per_pallet: float = 250.0
    strapping_per_pallet: float = 80.0
    carton_length_mm: float = 595.0
    carton_width_mm: float = 420.0
    carton_height_mm: float = 320.0
    max_carton_weight_kg: float = 14.0
    pallet_length_mm: float = 1200.0
    pallet_width_mm: float = 1000.0
    pallet_base_height_mm: float = 150.0
    max_pallet_height_mm: float = 1500.0
    max_pallet_weight_kg: float = 800.0


@dataclass(frozen=True)
class FreightRules:
    destinations: Tuple[Destination, ...]
    pallets_per_container20: int = 10
    truck_capacity_kg: float = 9000.0

    def destination(self, destination_id: str) -> Optional[Destination]:
        key = (destination_id or "").lower()
        for destination in self.destinations:
            if destination.destination_id.lower() == key:
                return destination
        return None


@dataclass(frozen=True)
class PricingRules:
    volume_discounts: Tuple[VolumeDiscountTier, ...]
    turnaround_multipliers: Dict[str, float] = field(default_factory=lambda: {
        "standard": 1.00,
        "rush": 1.15,
        "express": 1.30,
    })
    minimum_order_value: float = 25000.0


# =============================================================================
# RATE TABLE SNAPSHOT
# =============================================================================

@dataclass(frozen=True)
class RateTables:
    """
    Complete, immutable snapshot of every table the engine reads.

    Usage:
        tables = default_rate_tables()          # built-in defaults
        tables = RateTables.from_dict(payload)  # from a JSON document
        entry = tables.wastage_entry(5000)
    """

    paper_rates: Tuple[PaperRate, ...]
    bulk_factors: Dict[str, float]
    wastage: Tuple[WastageEntry, ...]
    imposition: ImpositionRules
    printing: PrintingRules
    binding: BindingRates
    board_types: Tuple[BoardType, ...]
    finishing: FinishingRates
    packing: PackingRates
    freight: FreightRules
    pricing: PricingRules
    fallback_paper_rate_per_kg: float = 80.0
    version: str = "default"

    def __post_init__(self):
        _check_ranges("wastage", self.wastage)
        _check_ranges("impression_rates", self.printing.impression_rates)
        if self.printing.thin_paper_surcharges:
            _check_ranges("thin_paper_surcharges", self.printing.thin_paper_surcharges)
        _check_ranges("perfect_binding", self.binding.perfect)
        _check_ranges("saddle_stitching", self.binding.saddle)
        _check_ranges("hardcase", self.binding.hardcase)
        _check_ranges("spot_uv", self.finishing.spot_uv)
        _check_not_empty("paper_sizes", self.imposition.paper_sizes)
        _check_not_empty("wire_o", self.binding.wire_o)
        _check_volume_discounts(self.pricing.volume_discounts)
        for entry in self.printing.impression_rates:
            if MachineClass.FAV.value not in entry.rates:
                raise RateTableError(
                    "impression_rates",
                    f"range {entry.min_value:g}-{entry.max_value:g} has no default 'fav' column",
                )

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def wastage_entry(self, quantity: int) -> WastageEntry:
        return resolve_range(self.wastage, quantity)

    def impression_rate_entry(self, impressions_per_form: int) -> ImpressionRateEntry:
        return resolve_range(self.printing.impression_rates, impressions_per_form)

    def thin_paper_surcharge_percent(self, gsm: float) -> float:
        """
        Surcharge for thin stock. No band means no surcharge (not extrapolated).

        Each band runs up to the next band's lower bound, so fractional gsm
        between the listed integer ranges belongs to the band below it.
        """
        bands = list(self.printing.thin_paper_surcharges)
        for band, following in zip(bands, bands[1:] + [None]):
            upper_ok = gsm < following.min_value if following else gsm <= band.max_value
            if band.min_value <= gsm and upper_ok:
                return band.percent
        return 0.0

    def perfect_binding_tier(self, quantity: int) -> PerfectBindingTier:
        return resolve_range(self.binding.perfect, quantity)

    def saddle_stitch_tier(self, quantity: int) -> SaddleStitchTier:
        return resolve_range(self.binding.saddle, quantity)

    def hardcase_tier(self, quantity: int) -> HardcaseTier:
        return resolve_range(self.binding.hardcase, quantity)

    def spot_uv_tier(self, quantity: int) -> SpotUVTier:
        return resolve_range(self.finishing.spot_uv, quantity)

    def wire_o_entry(self, spine_mm: float) -> WireOEntry:
        """Smallest wire that holds the block; the largest wire otherwise."""
        for entry in self.binding.wire_o:
            if spine_mm <= entry.max_thickness_mm:
                return entry
        return self.binding.wire_o[-1]

    def volume_discount_percent(self, quantity: int) -> float:
        percent = 0.0
        for tier in self.pricing.volume_discounts:
            if quantity >= tier.min_quantity:
                percent = tier.percent
        return percent

    def turnaround_multiplier(self, turnaround: str) -> float:
        return self.pricing.turnaround_multipliers.get(turnaround, 1.0)

    def board_type(self, board_type_id: str) -> Optional[BoardType]:
        for board in self.board_types:
            if board.board_id == board_type_id:
                return board
        return None

    def board_type_for_thickness(self, thickness_mm: float) -> Optional[BoardType]:
        """First board stock of the requested thickness (tables list preferred stock first)."""
        for board in self.board_types:
            if abs(board.thickness_mm - thickness_mm) < 1e-9:
                return board
        return None

    def paper_size(self, label: str) -> Optional[PaperSize]:
        for size in self.imposition.paper_sizes:
            if size.label == label:
                return size
        return None

    def bulk_factor(self, paper_type: str) -> float:
        """
        Caliper multiplier for a paper type.

        Exact key first, then case-insensitive, then substring either way.
        Unknown papers behave like matt art (1.0).
        """
        if paper_type in self.bulk_factors:
            return self.bulk_factors[paper_type]
        lower = (paper_type or "").lower()
        for key, value in self.bulk_factors.items():
            if key.lower() == lower:
                return value
        if lower:
            for key, value in self.bulk_factors.items():
                key_lower = key.lower()
                if key_lower in lower or lower in key_lower:
                    return value
        return 1.0

    # -------------------------------------------------------------------------
    # Deserialization
    # -------------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RateTables":
        """
        Build a snapshot from a JSON-style document.

        Raises:
            RateTableError: if a section is missing or a table is malformed
        """
        try:
            imposition = data["imposition"]
            printing = data["printing"]
            binding = data["binding"]
            finishing = data["finishing"]
            freight = data["freight"]
            pricing = data["pricing"]

            return cls(
                version=str(data.get("version", "custom")),
                paper_rates=_build_all(PaperRate, data["paper_rates"]),
                bulk_factors={str(k): float(v) for k, v in data.get("bulk_factors", {}).items()},
                fallback_paper_rate_per_kg=float(data.get("fallback_paper_rate_per_kg", 80.0)),
                wastage=_build_all(WastageEntry, data["wastage"]),
                imposition=ImpositionRules(
                    paper_sizes=_build_all(PaperSize, imposition["paper_sizes"]),
                    bleed_mm=float(imposition.get("bleed_mm", 3.0)),
                    gripper_mm=float(imposition.get("gripper_mm", 12.0)),
                    pages_per_form_options=tuple(
                        int(p) for p in imposition.get("pages_per_form_options", (4, 8, 16, 32))
                    ),
                ),
                printing=PrintingRules(
                    impression_rates=_build_all(ImpressionRateEntry, printing["impression_rates"]),
                    thin_paper_surcharges=_build_all(
                        SurchargeBand, printing.get("thin_paper_surcharges", [])
                    ),
                    default_make_ready_per_form=float(
                        printing.get("default_make_ready_per_form", 1500.0)
                    ),
                    default_ctp_rate=float(printing.get("default_ctp_rate", 271.0)),
                ),
                binding=BindingRates(
                    perfect=_build_all(PerfectBindingTier, binding["perfect"]),
                    saddle=_build_all(SaddleStitchTier, binding["saddle"]),
                    hardcase=_build_all(HardcaseTier, binding["hardcase"]),
                    wire_o=_build_all(WireOEntry, binding["wire_o"]),
                    wire_o_punching_per_copy=float(binding.get("wire_o_punching_per_copy", 0.15)),
                    wire_o_binding_per_copy=float(binding.get("wire_o_binding_per_copy", 0.25)),
                    wire_o_setup_cost=float(binding.get("wire_o_setup_cost", 0.0)),
                ),
                board_types=_build_all(BoardType, data.get("board_types", [])),
                finishing=FinishingRates(
                    lamination={
                        name: _build(FinishingRate, rate)
                        for name, rate in finishing["lamination"].items()
                    },
                    spot_uv=_build_all(SpotUVTier, finishing["spot_uv"]),
                    embossing=_build(FinishingRate, finishing["embossing"]),
                    foil_blocking=_build(FinishingRate, finishing["foil_blocking"]),
                    die_cutting={
                        name: _build(FinishingRate, rate)
                        for name, rate in finishing["die_cutting"].items()
                    },
                    reference_area_sq_in=float(
                        finishing.get("reference_area_sq_in", 5.83 * 8.27)
                    ),
                    minimum_area_factor=float(finishing.get("minimum_area_factor", 1.0)),
                ),
                packing=_build(PackingRates, data.get("packing", {})),
                freight=FreightRules(
                    destinations=_build_all(Destination, freight["destinations"]),
                    pallets_per_container20=int(freight.get("pallets_per_container20", 10)),
                    truck_capacity_kg=float(freight.get("truck_capacity_kg", 9000.0)),
                ),
                pricing=PricingRules(
                    volume_discounts=_build_all(VolumeDiscountTier, pricing["volume_discounts"]),
                    turnaround_multipliers={
                        str(k): float(v)
                        for k, v in pricing.get(
                            "turnaround_multipliers",
                            {"standard": 1.0, "rush": 1.15, "express": 1.30},
                        ).items()
                    },
                    minimum_order_value=float(pricing.get("minimum_order_value", 25000.0)),
                ),
            )
        except KeyError as e:
            raise RateTableError(str(e.args[0]), "required section or field is missing") from e
        except (TypeError, ValueError) as e:
            raise RateTableError("document", f"invalid value: {e}") from e


# =============================================================================
# HELPERS
# =============================================================================

def resolve_range(entries: Sequence[T], value: float) -> T:
    """Entry whose range contains value, else the last entry."""
    for entry in entries:
        if entry.contains(value):
            return entry
    return entries[-1]


def _check_not_empty(table: str, entries: Sequence[Any]) -> None:
    if not entries:
        raise RateTableError(table, "table is empty")


def _check_ranges(table: str, entries: Sequence[RangeEntry]) -> None:
    _check_not_empty(table, entries)
    previous: Optional[RangeEntry] = None
    for entry in entries:
        if entry.min_value > entry.max_value:
            raise RateTableError(
                table, f"range {entry.min_value:g}-{entry.max_value:g} is inverted"
            )
        if previous is not None and entry.min_value <= previous.max_value:
            raise RateTableError(
                table,
                f"range {entry.min_value:g}-{entry.max_value:g} overlaps or precedes "
                f"{previous.min_value:g}-{previous.max_value:g}",
            )
        previous = entry


def _check_volume_discounts(tiers: Sequence[VolumeDiscountTier]) -> None:
    previous: Optional[VolumeDiscountTier] = None
    for tier in tiers:
        if previous is not None:
            if tier.min_quantity <= previous.min_quantity:
                raise RateTableError("volume_discounts", "thresholds must strictly increase")
            if tier.percent < previous.percent:
                raise RateTableError(
                    "volume_discounts", "a larger quantity may not get a smaller discount"
                )
        previous = tier


def _build(cls: Type[T], data: Dict[str, Any]) -> T:
    known = {f.name for f in fields(cls)}
    return cls(**{key: value for key, value in data.items() if key in known})


def _build_all(cls: Type[T], items: List[Dict[str, Any]]) -> Tuple[T, ...]:
    return tuple(_build(cls, item) for item in items)
