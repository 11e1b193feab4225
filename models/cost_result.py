"""
Cost result data models.

One CostResult is built per (specification, quantity) pair by the
estimation orchestrator. All models here are frozen: a recalculation
produces a new result and never patches an old one.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Dict, Any, List, Optional, Tuple


@dataclass(frozen=True)
class ImpositionResult:
    """How one printed component is laid out on press sheets."""

    pages_per_form: int
    number_of_forms: int
    ups: int
    """Complete forms that fit on one press sheet."""

    paper_size_label: str
    sheet_width_in: float
    sheet_height_in: float
    form_width_in: float
    form_height_in: float
    orientation: str
    waste_percent: float

    @property
    def sheets_per_copy(self) -> float:
        return self.number_of_forms / self.ups

    @property
    def format_label(self) -> str:
        return f"{self.form_width_in:.1f}x{self.form_height_in:.1f}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pages_per_form": self.pages_per_form,
            "number_of_forms": self.number_of_forms,
            "ups": self.ups,
            "paper_size": self.paper_size_label,
            "sheet_width_in": self.sheet_width_in,
            "sheet_height_in": self.sheet_height_in,
            "format": self.format_label,
            "orientation": self.orientation,
            "waste_percent": round(self.waste_percent, 2),
            "sheets_per_copy": round(self.sheets_per_copy, 4),
        }


@dataclass(frozen=True)
class WastageResult:
    """Waste sheets allowed per form, and over all forms."""

    wastage_per_form: int
    total_wastage: int
    is_percentage: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wastage_per_form": self.wastage_per_form,
            "total_wastage": self.total_wastage,
            "is_percentage": self.is_percentage,
        }


@dataclass(frozen=True)
class PaperCost:
    net_sheets: int
    gross_sheets: int
    reams: float
    rate_per_ream: float
    cost: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "net_sheets": self.net_sheets,
            "gross_sheets": self.gross_sheets,
            "reams": self.reams,
            "rate_per_ream": self.rate_per_ream,
            "cost": self.cost,
        }


@dataclass(frozen=True)
class PrintingCost:
    """
    Printing figures for one component.

    costing_path is "physics", "legacy" or "unprinted".
    """

    costing_path: str
    plates_per_form: int
    total_plates: int
    gross_sheets_per_form: int
    impressions_per_form: int
    total_impressions: int
    effective_impressions: float
    rate_per_1000: float
    running_hours: float
    printing_cost: float
    make_ready_cost: float
    plate_cost: float

    @property
    def total_cost(self) -> float:
        return round(self.printing_cost + self.make_ready_cost + self.plate_cost, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "costing_path": self.costing_path,
            "plates_per_form": self.plates_per_form,
            "total_plates": self.total_plates,
            "gross_sheets_per_form": self.gross_sheets_per_form,
            "impressions_per_form": self.impressions_per_form,
            "total_impressions": self.total_impressions,
            "effective_impressions": self.effective_impressions,
            "rate_per_1000": self.rate_per_1000,
            "running_hours": round(self.running_hours, 4),
            "printing_cost": self.printing_cost,
            "make_ready_cost": self.make_ready_cost,
            "plate_cost": self.plate_cost,
            "total_cost": self.total_cost,
        }


@dataclass(frozen=True)
class ComponentCost:
    """Paper and printing for one printed component (text section, cover, ...)."""

    name: str
    kind: str
    """One of "text", "cover", "jacket", "endleaves"."""

    machine_id: str
    imposition: ImpositionResult
    wastage: WastageResult
    paper: PaperCost
    printing: PrintingCost

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "machine_id": self.machine_id,
            "imposition": self.imposition.to_dict(),
            "wastage": self.wastage.to_dict(),
            "paper": self.paper.to_dict(),
            "printing": self.printing.to_dict(),
        }


@dataclass(frozen=True)
class BookGeometry:
    """Spine and single-copy weight (grams)."""

    spine_mm: float
    spine_with_board_mm: float
    text_weight_g: float
    cover_weight_g: float = 0.0
    endleaves_weight_g: float = 0.0
    jacket_weight_g: float = 0.0
    board_weight_g: float = 0.0
    misc_weight_g: float = 0.0
    total_weight_g: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spine_mm": self.spine_mm,
            "spine_with_board_mm": self.spine_with_board_mm,
            "text_weight_g": self.text_weight_g,
            "cover_weight_g": self.cover_weight_g,
            "endleaves_weight_g": self.endleaves_weight_g,
            "jacket_weight_g": self.jacket_weight_g,
            "board_weight_g": self.board_weight_g,
            "misc_weight_g": self.misc_weight_g,
            "total_weight_g": self.total_weight_g,
        }


@dataclass(frozen=True)
class BindingCost:
    binding_type: str
    per_copy: float
    setup_cost: float
    total: float
    breakdown: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "binding_type": self.binding_type,
            "per_copy": self.per_copy,
            "setup_cost": self.setup_cost,
            "total": self.total,
            "breakdown": dict(self.breakdown),
        }


@dataclass(frozen=True)
class FinishingCost:
    lamination: float = 0.0
    spot_uv: float = 0.0
    embossing: float = 0.0
    foil_blocking: float = 0.0
    die_cutting: float = 0.0

    @property
    def other_total(self) -> float:
        """Everything except lamination."""
        return round(self.spot_uv + self.embossing + self.foil_blocking + self.die_cutting, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lamination": self.lamination,
            "spot_uv": self.spot_uv,
            "embossing": self.embossing,
            "foil_blocking": self.foil_blocking,
            "die_cutting": self.die_cutting,
        }


@dataclass(frozen=True)
class PackingResult:
    books_per_carton: int
    cartons: int
    cartons_per_pallet: int
    pallets: int
    consignment_weight_kg: float
    cost: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "books_per_carton": self.books_per_carton,
            "cartons": self.cartons,
            "cartons_per_pallet": self.cartons_per_pallet,
            "pallets": self.pallets,
            "consignment_weight_kg": self.consignment_weight_kg,
            "cost": self.cost,
        }


@dataclass(frozen=True)
class FreightResult:
    mode: str
    destination_id: str
    basis: str
    """Which rate won, e.g. "per_pallet", "per_container20", "per_kg"."""

    base_cost: float
    overseas_charges: float
    total: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "destination_id": self.destination_id,
            "basis": self.basis,
            "base_cost": self.base_cost,
            "overseas_charges": self.overseas_charges,
            "total": self.total,
        }


@dataclass(frozen=True)
class PricingResult:
    """Output of the fixed-order pricing pipeline."""

    subtotal: float
    rush_surcharge: float
    surcharged_subtotal: float
    volume_discount_percent: float
    volume_discount_amount: float
    discounted_subtotal: float
    minimum_order_adjustment: float
    production_floor_subtotal: float
    sell_before_tax: float
    margin_amount: float
    tax_amount: float
    grand_total: float
    cost_per_copy: float
    sell_per_copy: float


@dataclass(frozen=True)
class CostResult:
    """
    Itemized cost and price for one requested quantity.

    Every top-level numeric field is finite; the orchestrator checks this
    as its last step before returning.
    """

    quantity: int

    # Cost centers
    paper_cost: float
    cover_cost: float
    printing_cost: float
    plate_cost: float
    make_ready_cost: float
    binding_cost: float
    lamination_cost: float
    finishing_cost: float
    packing_cost: float
    freight_cost: float

    # Pricing
    subtotal: float
    rush_surcharge: float
    volume_discount_percent: float
    volume_discount_amount: float
    minimum_order_adjustment: float
    production_floor_subtotal: float
    sell_before_tax: float
    margin_amount: float
    tax_amount: float
    grand_total: float
    cost_per_copy: float
    sell_per_copy: float

    # Derived quantities
    reams: float
    plates: int
    impressions: int
    forms: int
    spine_thickness_mm: float
    spine_with_board_mm: float
    book_weight_g: float
    cartons: int
    pallets: int

    # Detail
    components: Tuple[ComponentCost, ...] = ()
    geometry: Optional[BookGeometry] = None
    binding: Optional[BindingCost] = None
    finishing: Optional[FinishingCost] = None
    packing: Optional[PackingResult] = None
    freight: Optional[FreightResult] = None

    @property
    def total_cost(self) -> float:
        """Production cost after surcharge, discount and floor."""
        return self.production_floor_subtotal

    def numeric_fields(self) -> Dict[str, float]:
        """Top-level numeric fields by name."""
        values = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                values[f.name] = value
        return values

    def non_finite_fields(self) -> List[str]:
        return [name for name, value in self.numeric_fields().items() if not math.isfinite(value)]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        result: Dict[str, Any] = dict(self.numeric_fields())
        result["components"] = [c.to_dict() for c in self.components]
        result["geometry"] = self.geometry.to_dict() if self.geometry else None
        result["binding"] = self.binding.to_dict() if self.binding else None
        result["finishing"] = self.finishing.to_dict() if self.finishing else None
        result["packing"] = self.packing.to_dict() if self.packing else None
        result["freight"] = self.freight.to_dict() if self.freight else None
        return result
