"""
Press machine models.

MachineProfile holds the physical and cost characteristics of one press.
MachineClass is the closed set of columns in the legacy impression-rate
table; it is resolved once from a machine identifier at the service
boundary so the costing core never matches on machine names.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Optional, Tuple


class MachineClass(Enum):
    """
    Press family used to pick a legacy impression-rate column.

    Identifier matching is case-insensitive substring matching, checked in
    a fixed order. Anything unrecognised falls back to FAV.
    """

    FAV = "fav"
    REKORD_AQ = "rekord_aq"
    REKORD = "rekord"
    RMGT_PERFECTO = "rmgt_perfecto"
    RMGT = "rmgt"

    @classmethod
    def from_identifier(cls, identifier: str) -> Tuple["MachineClass", bool]:
        """
        Resolve a machine id or name to its class.

        Returns:
            (machine_class, recognised) - recognised is False when the
            identifier matched nothing and the default was used.
        """
        key = (identifier or "").lower()
        if "fav" in key:
            return cls.FAV, True
        # Order matters: "rekord_no_aq" also contains "aq" and lands here.
        # Both Rekord columns carry the same rates in the default table.
        if "rek" in key and "aq" in key:
            return cls.REKORD_AQ, True
        if "rek" in key:
            return cls.REKORD, True
        if "perfecto" in key:
            return cls.RMGT_PERFECTO, True
        if "rmgt" in key:
            return cls.RMGT, True
        return cls.FAV, False


@dataclass(frozen=True)
class MachineProfile:
    """
    Physical profile of one printing press.

    When speed and hourly rate are both usable (speed > 0) the printing
    calculator costs by running time; otherwise it falls back to the
    legacy impression-rate table.
    """

    machine_id: str
    """Stable identifier (e.g. 'rmgt')."""

    name: str = ""
    """Display name."""

    speed_sph: float = 0.0
    """Rated speed in sheets per hour."""

    hourly_rate: Optional[float] = None
    """Base operating cost per hour (labour, depreciation)."""

    ink_cost_per_hour: float = 0.0
    power_kw: float = 0.0
    electricity_rate: float = 0.0
    """Cost per kWh."""

    make_ready_cost: float = 0.0
    """Flat make-ready cost per form."""

    make_ready_hours: float = 0.0
    """Make-ready time per form, charged at the hourly cost."""

    ctp_rate: Optional[float] = None
    """Cost per plate; None means use the table default."""

    max_sheet_width_in: Optional[float] = None
    max_sheet_height_in: Optional[float] = None
    gripper_mm: Optional[float] = None
    has_perfector: bool = False

    def __post_init__(self):
        if self.speed_sph < 0:
            raise ValueError(f"Machine {self.machine_id}: speed must be non-negative")
        if self.hourly_rate is not None and self.hourly_rate < 0:
            raise ValueError(f"Machine {self.machine_id}: hourly rate must be non-negative")

    @property
    def uses_physics(self) -> bool:
        """Whether this profile is complete enough for time-based costing."""
        return self.speed_sph > 0 and self.hourly_rate is not None

    @property
    def hourly_cost(self) -> float:
        """Total cost of one running hour."""
        return (
            (self.hourly_rate or 0.0)
            + self.ink_cost_per_hour
            + self.power_kw * self.electricity_rate
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "machine_id": self.machine_id,
            "name": self.name,
            "speed_sph": self.speed_sph,
            "hourly_rate": self.hourly_rate,
            "ink_cost_per_hour": self.ink_cost_per_hour,
            "power_kw": self.power_kw,
            "electricity_rate": self.electricity_rate,
            "make_ready_cost": self.make_ready_cost,
            "make_ready_hours": self.make_ready_hours,
            "ctp_rate": self.ctp_rate,
            "max_sheet_width_in": self.max_sheet_width_in,
            "max_sheet_height_in": self.max_sheet_height_in,
            "gripper_mm": self.gripper_mm,
            "has_perfector": self.has_perfector,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MachineProfile":
        hourly_rate = data.get("hourly_rate")
        ctp_rate = data.get("ctp_rate")
        return cls(
            machine_id=str(data["machine_id"]),
            name=str(data.get("name", "")),
            speed_sph=float(data.get("speed_sph", 0.0)),
            hourly_rate=float(hourly_rate) if hourly_rate is not None else None,
            ink_cost_per_hour=float(data.get("ink_cost_per_hour", 0.0)),
            power_kw=float(data.get("power_kw", 0.0)),
            electricity_rate=float(data.get("electricity_rate", 0.0)),
            make_ready_cost=float(data.get("make_ready_cost", 0.0)),
            make_ready_hours=float(data.get("make_ready_hours", 0.0)),
            ctp_rate=float(ctp_rate) if ctp_rate is not None else None,
            max_sheet_width_in=_optional_float(data.get("max_sheet_width_in")),
            max_sheet_height_in=_optional_float(data.get("max_sheet_height_in")),
            gripper_mm=_optional_float(data.get("gripper_mm")),
            has_perfector=bool(data.get("has_perfector", False)),
        )


@dataclass(frozen=True)
class ResolvedMachine:
    """
    A machine identifier resolved at the boundary.

    profile is None when the identifier has no known profile; the
    printing calculator then uses the legacy table with machine_class.
    """

    machine_id: str
    machine_class: MachineClass
    profile: Optional[MachineProfile] = None


def _optional_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None
