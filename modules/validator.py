"""
Job specification validator.

Turns a RawJobSpecification (numbers possibly still text) into a strictly
typed JobSpecification, or into the full list of rule violations. Every
rule is checked; nothing stops at the first problem, so a caller can show
all of them at once.

Free-text fields are stripped of markup with bleach and truncated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar, Union

import bleach

from logging_config import get_logger
from models.job_spec import (
    BindingType,
    BoardSpecification,
    CoverSpecification,
    DeliverySpecification,
    DieCutComplexity,
    EndleavesSpecification,
    FinishingOptions,
    FreightMode,
    JacketSpecification,
    JobSpecification,
    LaminationType,
    PricingConfiguration,
    PricingMode,
    PrintingMethod,
    RawJobSpecification,
    TextSection,
    Turnaround,
)


logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)

MAX_DIMENSION_MM = 1000
MAX_PAGES = 5000
MAX_QUANTITY = 1_000_000
MAX_TEXT_GSM = 600
MAX_COVER_GSM = 800
MAX_COLORS = 4
MAX_BOARD_THICKNESS_MM = 10

MAX_TITLE_LENGTH = 200
MAX_NAME_LENGTH = 100
MAX_ID_LENGTH = 50

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off", ""}


def _sanitize_text(text: Any, max_length: int = None) -> str:
    """Sanitize user input text."""
    if text is None:
        return ""
    text = str(text).strip()
    text = bleach.clean(text, tags=[], strip=True)
    if max_length and len(text) > max_length:
        text = text[:max_length]
    return text


@dataclass(frozen=True)
class ValidationOutcome:
    """Either a normalized specification or the violations; never both."""

    specification: Optional[JobSpecification] = None
    errors: Tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return self.specification is not None and not self.errors


class _Checker:
    """Collects violations while coercing raw values."""

    def __init__(self) -> None:
        self.errors: List[str] = []

    def fail(self, message: str) -> None:
        self.errors.append(message)

    def number(
        self,
        value: Any,
        label: str,
        *,
        maximum: Optional[float] = None,
        integer: bool = False,
        allow_zero: bool = False,
        default: Optional[float] = None,
    ) -> Optional[float]:
        """
        Coerce a raw scalar to a number, recording every rule it breaks.

        Returns None when the value is unusable.
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            if default is not None:
                return default
            self.fail(f"{label} is required")
            return None

        if isinstance(value, bool):
            self.fail(f"{label} must be a number (got '{value}')")
            return None

        if isinstance(value, (int, float)):
            number = float(value)
        else:
            try:
                number = float(str(value).strip())
            except ValueError:
                self.fail(f"{label} must be a number (got '{value}')")
                return None

        if not math.isfinite(number):
            self.fail(f"{label} must be a finite number")
            return None

        valid = True
        if integer and not number.is_integer():
            self.fail(f"{label} must be a whole number (got '{value}')")
            valid = False
        if allow_zero:
            if number < 0:
                self.fail(f"{label} must not be negative")
                valid = False
        elif number <= 0:
            self.fail(f"{label} must be greater than 0")
            valid = False
        if maximum is not None and number > maximum:
            self.fail(f"{label} must be at most {maximum:g}")
            valid = False

        return number if valid else None

    def pages(self, value: Any, label: str) -> Optional[int]:
        number = self.number(value, label, maximum=MAX_PAGES, integer=True)
        if number is None:
            return None
        if int(number) % 4 != 0:
            self.fail(f"{label} must be divisible by 4 (got {int(number)})")
            return None
        return int(number)

    def colors(self, value: Any, label: str, default: int) -> Optional[int]:
        number = self.number(
            value, label, maximum=MAX_COLORS, integer=True, allow_zero=True, default=float(default)
        )
        return int(number) if number is not None else None

    def choice(self, value: Any, enum_cls: Type[E], label: str, default: E) -> Optional[E]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return default
        key = str(value).strip().lower()
        for member in enum_cls:
            if member.value == key:
                return member
        options = ", ".join(member.value for member in enum_cls)
        self.fail(f"{label} must be one of: {options} (got '{value}')")
        return None

    def flag(self, value: Any, label: str, default: bool = False) -> bool:
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        key = str(value).strip().lower()
        if key in _TRUE:
            return True
        if key in _FALSE:
            return False
        self.fail(f"{label} must be true or false (got '{value}')")
        return default

    def text(self, value: Any, label: str, max_length: int, required: bool = True) -> str:
        text = _sanitize_text(value, max_length)
        if required and not text:
            self.fail(f"{label} is required")
        return text

    def mapping(self, value: Any, label: str) -> Optional[Dict[str, Any]]:
        if value is None:
            return None
        if isinstance(value, dict) and "__invalid__" not in value:
            return value
        self.fail(f"{label} must be an object")
        return None


class JobValidator:
    """
    Validates raw job specifications.

    Usage:
        outcome = JobValidator(max_quantities=5).validate(payload)
        if outcome.is_valid:
            engine.estimate(outcome.specification)
        else:
            show(outcome.errors)
    """

    def __init__(self, max_quantities: int = 5) -> None:
        self.max_quantities = max_quantities

    def validate(self, raw: Union[RawJobSpecification, Dict[str, Any], None]) -> ValidationOutcome:
        if not isinstance(raw, RawJobSpecification):
            if raw is not None and not isinstance(raw, dict):
                return ValidationOutcome(errors=("Job specification must be an object",))
            raw = RawJobSpecification.from_dict(raw)

        check = _Checker()

        title = check.text(raw.get("title"), "Title", MAX_TITLE_LENGTH, required=False)
        width = check.number(raw.get("trim_width_mm"), "Trim width", maximum=MAX_DIMENSION_MM)
        height = check.number(raw.get("trim_height_mm"), "Trim height", maximum=MAX_DIMENSION_MM)

        binding = None
        if raw.get("binding_type") in (None, ""):
            check.fail("Binding type is required")
        else:
            binding = check.choice(raw.get("binding_type"), BindingType, "Binding type", None)

        sections = self._text_sections(raw.get("text_sections"), check)
        cover = self._cover(check.mapping(raw.section("cover"), "Cover"), check, CoverSpecification, "Cover")
        jacket = self._cover(check.mapping(raw.section("jacket"), "Jacket"), check, JacketSpecification, "Jacket")
        endleaves = self._endleaves(check.mapping(raw.section("endleaves"), "Endleaves"), check)
        board = self._board(check.mapping(raw.section("board"), "Board"), check)
        if binding is BindingType.SECTION_SEWN_HARDCASE and raw.section("board") is None:
            check.fail("Board is required for section_sewn_hardcase binding")

        finishing = self._finishing(check.mapping(raw.section("finishing"), "Finishing"), check)
        delivery = self._delivery(check.mapping(raw.section("delivery"), "Delivery"), check)
        pricing = self._pricing(check.mapping(raw.section("pricing"), "Pricing"), check)
        quantities = self._quantities(raw.get("quantities"), check)

        if check.errors:
            logger.info(f"Specification rejected with {len(check.errors)} violation(s)")
            return ValidationOutcome(errors=tuple(check.errors))

        specification = JobSpecification(
            title=title,
            trim_width_mm=width,
            trim_height_mm=height,
            text_sections=tuple(sections),
            binding_type=binding,
            quantities=tuple(quantities),
            pricing=pricing,
            cover=cover,
            endleaves=endleaves,
            jacket=jacket,
            board=board,
            finishing=finishing,
            delivery=delivery,
        )
        return ValidationOutcome(specification=specification)

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def _text_sections(self, value: Any, check: _Checker) -> List[TextSection]:
        if value is None:
            check.fail("At least one text section is required")
            return []
        if not isinstance(value, list):
            check.fail("Text sections must be a list")
            return []

        sections: List[TextSection] = []
        enabled_count = 0
        for index, raw_section in enumerate(value, start=1):
            label = f"Text section {index}"
            if not isinstance(raw_section, dict):
                check.fail(f"{label} must be an object")
                continue
            if not check.flag(raw_section.get("enabled"), f"{label} enabled", default=True):
                continue
            enabled_count += 1

            pages = check.pages(raw_section.get("pages"), f"{label} pages")
            gsm = check.number(raw_section.get("gsm"), f"{label} GSM", maximum=MAX_TEXT_GSM)
            paper_type = check.text(raw_section.get("paper_type"), f"{label} paper type", MAX_NAME_LENGTH)
            machine_id = check.text(raw_section.get("machine_id"), f"{label} machine", MAX_ID_LENGTH)
            front = check.colors(raw_section.get("colors_front"), f"{label} front colours", 4)
            back = check.colors(raw_section.get("colors_back"), f"{label} back colours", 4)
            method = check.choice(
                raw_section.get("printing_method"), PrintingMethod, f"{label} printing method",
                PrintingMethod.SHEETWISE,
            )
            name = _sanitize_text(raw_section.get("name"), MAX_NAME_LENGTH) or "Text"

            if None in (pages, gsm, front, back, method) or not paper_type or not machine_id:
                continue
            sections.append(TextSection(
                name=name,
                pages=pages,
                gsm=gsm,
                paper_type=paper_type,
                machine_id=machine_id,
                colors_front=front,
                colors_back=back,
                printing_method=method,
            ))

        if enabled_count == 0:
            check.fail("At least one enabled text section is required")
        return sections

    def _cover(self, data, check: _Checker, model, label: str):
        if data is None:
            return None
        gsm = check.number(data.get("gsm"), f"{label} GSM", maximum=MAX_COVER_GSM)
        paper_type = check.text(data.get("paper_type"), f"{label} paper type", MAX_NAME_LENGTH)
        machine_id = check.text(data.get("machine_id"), f"{label} machine", MAX_ID_LENGTH)
        front = check.colors(data.get("colors_front"), f"{label} front colours", 4)
        back = check.colors(data.get("colors_back"), f"{label} back colours", 0)
        lamination = check.choice(
            data.get("lamination"), LaminationType, f"{label} lamination", LaminationType.NONE
        )
        if None in (gsm, front, back, lamination) or not paper_type or not machine_id:
            return None
        return model(
            gsm=gsm,
            paper_type=paper_type,
            machine_id=machine_id,
            colors_front=front,
            colors_back=back,
            lamination=lamination,
        )

    def _endleaves(self, data, check: _Checker) -> Optional[EndleavesSpecification]:
        if data is None:
            return None
        pages = check.pages(data.get("pages"), "Endleaves pages")
        gsm = check.number(data.get("gsm"), "Endleaves GSM", maximum=MAX_TEXT_GSM)
        paper_type = check.text(data.get("paper_type"), "Endleaves paper type", MAX_NAME_LENGTH)
        machine_id = check.text(data.get("machine_id"), "Endleaves machine", MAX_ID_LENGTH)
        front = check.colors(data.get("colors_front"), "Endleaves front colours", 0)
        back = check.colors(data.get("colors_back"), "Endleaves back colours", 0)
        if None in (pages, gsm, front, back) or not paper_type or not machine_id:
            return None
        return EndleavesSpecification(
            pages=pages,
            gsm=gsm,
            paper_type=paper_type,
            machine_id=machine_id,
            colors_front=front,
            colors_back=back,
        )

    def _board(self, data, check: _Checker) -> Optional[BoardSpecification]:
        if data is None:
            return None
        thickness = check.number(
            data.get("thickness_mm"), "Board thickness", maximum=MAX_BOARD_THICKNESS_MM
        )
        board_type_id = _sanitize_text(data.get("board_type_id"), MAX_ID_LENGTH)
        if thickness is None:
            return None
        return BoardSpecification(thickness_mm=thickness, board_type_id=board_type_id)

    def _finishing(self, data, check: _Checker) -> FinishingOptions:
        data = data or {}
        die_cutting = check.choice(
            data.get("die_cutting"), DieCutComplexity, "Die cutting", DieCutComplexity.NONE
        )
        return FinishingOptions(
            spot_uv=check.flag(data.get("spot_uv"), "Spot UV"),
            embossing=check.flag(data.get("embossing"), "Embossing"),
            foil_blocking=check.flag(data.get("foil_blocking"), "Foil blocking"),
            die_cutting=die_cutting or DieCutComplexity.NONE,
        )

    def _delivery(self, data, check: _Checker) -> DeliverySpecification:
        data = data or {}
        destination_id = _sanitize_text(data.get("destination_id"), MAX_ID_LENGTH)
        mode = check.choice(data.get("freight_mode"), FreightMode, "Freight mode", FreightMode.NONE)
        include_packing = check.flag(data.get("include_packing"), "Include packing")
        if mode not in (None, FreightMode.NONE) and not destination_id:
            check.fail("Destination is required when freight is shipped")
        return DeliverySpecification(
            destination_id=destination_id,
            freight_mode=mode or FreightMode.NONE,
            include_packing=include_packing,
        )

    def _pricing(self, data, check: _Checker) -> PricingConfiguration:
        data = data or {}
        mode = check.choice(data.get("mode"), PricingMode, "Pricing mode", PricingMode.MARGIN)
        turnaround = check.choice(data.get("turnaround"), Turnaround, "Turnaround", Turnaround.STANDARD)

        percent = check.number(data.get("percent"), "Margin/markup percent", allow_zero=True, default=0.0)
        if percent is not None and percent >= 100:
            check.fail("Margin/markup percent must be less than 100")
            percent = None

        tax_rate = check.number(
            data.get("tax_rate"), "Tax rate", maximum=100, allow_zero=True, default=0.0
        )

        return PricingConfiguration(
            mode=mode or PricingMode.MARGIN,
            percent=percent if percent is not None else 0.0,
            tax_rate=tax_rate if tax_rate is not None else 0.0,
            turnaround=turnaround or Turnaround.STANDARD,
        )

    def _quantities(self, value: Any, check: _Checker) -> List[int]:
        if value is None or value == "" or value == []:
            check.fail("At least one quantity is required")
            return []
        if not isinstance(value, (list, tuple)):
            value = [value]
        if len(value) > self.max_quantities:
            check.fail(f"At most {self.max_quantities} quantities are allowed (got {len(value)})")

        quantities: List[int] = []
        for index, raw_quantity in enumerate(value, start=1):
            label = "Quantity" if len(value) == 1 else f"Quantity {index}"
            number = check.number(raw_quantity, label, maximum=MAX_QUANTITY, integer=True)
            if number is not None:
                quantities.append(int(number))
        return quantities
