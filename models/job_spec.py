"""
Job specification data models.

Two distinct shapes exist for the same job:

- RawJobSpecification: the untyped mapping received from a caller, with
  numbers still arriving as text. Only the validator reads it.
- JobSpecification: the normalized, strictly typed form produced by the
  validator. The calculation engine only ever sees this one.

All normalized models are frozen dataclasses so they can be shared across
worker threads without copying.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Any, List, Optional, Tuple


# =============================================================================
# ENUMERATIONS
# =============================================================================

class BindingType(Enum):
    """Closed set of binding methods the engine can cost."""

    PERFECT_BINDING = "perfect_binding"
    SADDLE_STITCHING = "saddle_stitching"
    SECTION_SEWN_HARDCASE = "section_sewn_hardcase"
    WIRE_O = "wire_o"


class PrintingMethod(Enum):
    """
    How the two sides of a sheet are printed.

    Sheetwise and perfector need separate plates for each side;
    work-and-turn/tumble reuse one plate set for both sides.
    """

    SHEETWISE = "sheetwise"
    WORK_AND_TURN = "work_and_turn"
    WORK_AND_TUMBLE = "work_and_tumble"
    PERFECTOR = "perfector"


class Turnaround(Enum):
    """Production speed requested by the customer."""

    STANDARD = "standard"
    RUSH = "rush"
    EXPRESS = "express"


class PricingMode(Enum):
    """Whether the pricing percent is a margin on sell or a markup on cost."""

    MARGIN = "margin"
    MARKUP = "markup"


class LaminationType(Enum):
    """Film lamination applied to cover or jacket sheets."""

    NONE = "none"
    GLOSS = "gloss"
    MATT = "matt"
    VELVET = "velvet"
    ANTI_SCRATCH = "anti_scratch"


class DieCutComplexity(Enum):
    """Die-cutting difficulty, selects the die cost and per-copy rate."""

    NONE = "none"
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class FreightMode(Enum):
    """Transport mode for delivery."""

    NONE = "none"
    SEA = "sea"
    AIR = "air"
    SURFACE = "surface"


# =============================================================================
# RAW (PRE-VALIDATION) FORM
# =============================================================================

@dataclass(frozen=True)
class RawJobSpecification:
    """
    Untyped job specification as received from a caller.

    Numeric fields may be strings, numbers or missing. Nothing here is
    trusted until the validator has produced a JobSpecification.
    """

    fields: Dict[str, Any] = field(default_factory=dict)
    """Top-level mapping (usually a decoded JSON body)."""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RawJobSpecification":
        return cls(fields=dict(data or {}))

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def section(self, key: str) -> Optional[Dict[str, Any]]:
        """Return a nested mapping, or None when absent or explicitly null."""
        value = self.fields.get(key)
        if value is None:
            return None
        return value if isinstance(value, dict) else {"__invalid__": value}


# =============================================================================
# NORMALIZED (POST-VALIDATION) FORM
# =============================================================================

@dataclass(frozen=True)
class TextSection:
    """One block of text pages printed on the same paper and machine."""

    pages: int
    """Page count, a positive multiple of 4."""

    gsm: float
    """Paper weight in grams per square metre."""

    paper_type: str
    """Paper type name as it appears in the paper rate table."""

    machine_id: str
    """Identifier of the press this section is printed on."""

    colors_front: int
    """Colours on the front side (0-4)."""

    colors_back: int
    """Colours on the back side (0-4)."""

    printing_method: PrintingMethod = PrintingMethod.SHEETWISE
    enabled: bool = True
    name: str = "Text"

    @property
    def max_colors(self) -> int:
        return max(self.colors_front, self.colors_back)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "enabled": self.enabled,
            "pages": self.pages,
            "gsm": self.gsm,
            "paper_type": self.paper_type,
            "machine_id": self.machine_id,
            "colors_front": self.colors_front,
            "colors_back": self.colors_back,
            "printing_method": self.printing_method.value,
        }


@dataclass(frozen=True)
class CoverSpecification:
    """Printed cover wrapped around the text block."""

    gsm: float
    paper_type: str
    machine_id: str
    colors_front: int = 4
    colors_back: int = 0
    lamination: LaminationType = LaminationType.NONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gsm": self.gsm,
            "paper_type": self.paper_type,
            "machine_id": self.machine_id,
            "colors_front": self.colors_front,
            "colors_back": self.colors_back,
            "lamination": self.lamination.value,
        }


@dataclass(frozen=True)
class JacketSpecification:
    """Dust jacket with 90 mm flaps on either side."""

    gsm: float
    paper_type: str
    machine_id: str
    colors_front: int = 4
    colors_back: int = 0
    lamination: LaminationType = LaminationType.NONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gsm": self.gsm,
            "paper_type": self.paper_type,
            "machine_id": self.machine_id,
            "colors_front": self.colors_front,
            "colors_back": self.colors_back,
            "lamination": self.lamination.value,
        }


@dataclass(frozen=True)
class EndleavesSpecification:
    """Endpapers pasted between text block and case. Usually unprinted."""

    pages: int
    gsm: float
    paper_type: str
    machine_id: str
    colors_front: int = 0
    colors_back: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pages": self.pages,
            "gsm": self.gsm,
            "paper_type": self.paper_type,
            "machine_id": self.machine_id,
            "colors_front": self.colors_front,
            "colors_back": self.colors_back,
        }


@dataclass(frozen=True)
class BoardSpecification:
    """Rigid greyboard for hardcase binding."""

    thickness_mm: float
    board_type_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"thickness_mm": self.thickness_mm, "board_type_id": self.board_type_id}


@dataclass(frozen=True)
class FinishingOptions:
    """Optional cover finishing beyond lamination."""

    spot_uv: bool = False
    embossing: bool = False
    foil_blocking: bool = False
    die_cutting: DieCutComplexity = DieCutComplexity.NONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spot_uv": self.spot_uv,
            "embossing": self.embossing,
            "foil_blocking": self.foil_blocking,
            "die_cutting": self.die_cutting.value,
        }


@dataclass(frozen=True)
class DeliverySpecification:
    """Where the job ships and whether it is packed for transport."""

    destination_id: str = ""
    freight_mode: FreightMode = FreightMode.NONE
    include_packing: bool = False

    @property
    def requires_packing(self) -> bool:
        return self.include_packing or self.freight_mode is not FreightMode.NONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "destination_id": self.destination_id,
            "freight_mode": self.freight_mode.value,
            "include_packing": self.include_packing,
        }


@dataclass(frozen=True)
class PricingConfiguration:
    """Commercial settings turning production cost into a sell price."""

    mode: PricingMode = PricingMode.MARGIN
    percent: float = 0.0
    """Margin or markup percent, 0 <= percent < 100."""

    tax_rate: float = 0.0
    """Tax percent, 0-100."""

    turnaround: Turnaround = Turnaround.STANDARD

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "percent": self.percent,
            "tax_rate": self.tax_rate,
            "turnaround": self.turnaround.value,
        }


@dataclass(frozen=True)
class JobSpecification:
    """
    Validated, strictly typed description of a print job.

    Invariants (enforced by the validator):
        - page counts are positive multiples of 4
        - quantities are positive integers
        - colour counts are integers in [0, 4]
    """

    trim_width_mm: float
    trim_height_mm: float
    text_sections: Tuple[TextSection, ...]
    binding_type: BindingType
    quantities: Tuple[int, ...]
    pricing: PricingConfiguration = field(default_factory=PricingConfiguration)
    cover: Optional[CoverSpecification] = None
    endleaves: Optional[EndleavesSpecification] = None
    jacket: Optional[JacketSpecification] = None
    board: Optional[BoardSpecification] = None
    finishing: FinishingOptions = field(default_factory=FinishingOptions)
    delivery: DeliverySpecification = field(default_factory=DeliverySpecification)
    title: str = ""

    @property
    def enabled_sections(self) -> List[TextSection]:
        return [s for s in self.text_sections if s.enabled]

    @property
    def total_text_pages(self) -> int:
        return sum(s.pages for s in self.enabled_sections)

    @property
    def is_hardcase(self) -> bool:
        return self.binding_type is BindingType.SECTION_SEWN_HARDCASE

    def with_quantities(self, quantities: Tuple[int, ...]) -> "JobSpecification":
        """Return a copy asking for different quantities."""
        return replace(self, quantities=tuple(quantities))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "trim_width_mm": self.trim_width_mm,
            "trim_height_mm": self.trim_height_mm,
            "text_sections": [s.to_dict() for s in self.text_sections],
            "cover": self.cover.to_dict() if self.cover else None,
            "endleaves": self.endleaves.to_dict() if self.endleaves else None,
            "jacket": self.jacket.to_dict() if self.jacket else None,
            "board": self.board.to_dict() if self.board else None,
            "binding_type": self.binding_type.value,
            "finishing": self.finishing.to_dict(),
            "delivery": self.delivery.to_dict(),
            "quantities": list(self.quantities),
            "pricing": self.pricing.to_dict(),
        }
