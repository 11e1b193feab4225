"""
Built-in rate tables and machine profiles.

These are the house rates the service starts with when no external rate
file is configured. Values are in the quoting currency; sizes in inches
where the trade quotes inches (press sheets, board stock), millimetres
elsewhere.

The service may override a handful of scalars from Config (minimum order,
default make-ready, default CTP rate, bleed, gripper) through
default_rate_tables().
"""

from typing import Dict, List, Optional

from models.machine import MachineProfile
from models.rate_tables import (
    BindingRates,
    BoardType,
    Destination,
    FinishingRate,
    FinishingRates,
    FreightRules,
    HardcaseTier,
    ImpositionRules,
    ImpressionRateEntry,
    PackingRates,
    PaperRate,
    PaperSize,
    PerfectBindingTier,
    PricingRules,
    PrintingRules,
    RateTables,
    SaddleStitchTier,
    SpotUVTier,
    SurchargeBand,
    VolumeDiscountTier,
    WastageEntry,
    WireOEntry,
)


OPEN_END = 999_999_999


# =============================================================================
# MACHINES
# =============================================================================

DEFAULT_MACHINES: List[MachineProfile] = [
    MachineProfile(
        machine_id="fav",
        name="Favourit (FAV)",
        speed_sph=8000,
        hourly_rate=3500,
        make_ready_cost=1500,
        make_ready_hours=0.5,
        ctp_rate=247,
        max_sheet_width_in=28,
        max_sheet_height_in=40,
        gripper_mm=12,
    ),
    MachineProfile(
        machine_id="rekord_aq",
        name="Rekord (With AQ)",
        speed_sph=5500,
        hourly_rate=5500,
        make_ready_cost=1800,
        make_ready_hours=0.5,
        ctp_rate=403,
        max_sheet_width_in=28,
        max_sheet_height_in=40,
        gripper_mm=12,
    ),
    MachineProfile(
        machine_id="rekord_no_aq",
        name="Rekord (Without AQ)",
        speed_sph=5500,
        hourly_rate=5500,
        make_ready_cost=1800,
        make_ready_hours=0.5,
        ctp_rate=403,
        max_sheet_width_in=28,
        max_sheet_height_in=40,
        gripper_mm=12,
    ),
    MachineProfile(
        machine_id="rmgt",
        name="RMGT",
        speed_sph=8000,
        hourly_rate=3200,
        make_ready_cost=1200,
        make_ready_hours=0.3,
        ctp_rate=271,
        max_sheet_width_in=23,
        max_sheet_height_in=36,
        gripper_mm=12,
    ),
    MachineProfile(
        machine_id="rmgt_perfecto",
        name="RMGT Perfecto",
        speed_sph=8000,
        hourly_rate=4000,
        make_ready_cost=1200,
        make_ready_hours=0.3,
        ctp_rate=271,
        max_sheet_width_in=23,
        max_sheet_height_in=36,
        gripper_mm=12,
        has_perfector=True,
    ),
]


def default_machines() -> Dict[str, MachineProfile]:
    """Machine profiles keyed by id. A new dict on every call."""
    return {machine.machine_id: machine for machine in DEFAULT_MACHINES}


# =============================================================================
# PAPER
# =============================================================================

STANDARD_PAPER_SIZES = (
    PaperSize("23x36", 23, 36),
    PaperSize("25x36", 25, 36),
    PaperSize("28x40", 28, 40),
    PaperSize("20x30", 20, 30),
    PaperSize("22x28", 22, 28),
    PaperSize("18x23", 18, 23),
    PaperSize("22x35", 22, 35),
    PaperSize("24x36", 24, 36),
    PaperSize("30x39", 30, 39),
    PaperSize("28x38", 28, 38),
)

BULK_FACTORS = {
    "matt": 1.0,
    "Matt Art Paper": 1.0,
    "gloss": 0.9,
    "Glossy Art Paper": 0.9,
    "CW": 1.4,
    "Woodfree Paper (CW)": 1.4,
    "HB": 2.3,
    "Holmen Bulky": 2.3,
    "Hcream": 2.3,
    "Holmen Creamy": 2.3,
    "map": 1.3,
    "White Uncoated": 1.3,
    "SP": 1.3,
    "Woodfree white offset paper": 1.3,
    "ML70": 2.0,
    "Woodfree Paper (Hibulk)": 2.0,
    "Art Card": 1.2,
    "C1s": 1.6,
    "C1S Art Card": 1.6,
    "Scream": 2.4,
    "Stora creamy": 2.4,
    "Wib": 1.25,
    "Wibalin": 1.25,
    "Munken Pure": 1.6,
    "Munken Lynx": 2.0,
    "Bible Paper": 0.7,
}

PAPER_RATES = (
    PaperRate("Matt Art Paper", "matt", 80, "23x36", 2000, 2500, 80),
    PaperRate("Matt Art Paper", "matt", 100, "23x36", 2500, 3125, 80),
    PaperRate("Matt Art Paper", "matt", 130, "23x36", 3230, 3467, 80),
    PaperRate("Matt Art Paper", "matt", 150, "23x36", 3725, 4000, 80),
    PaperRate("Matt Art Paper", "matt", 150, "25x36", 4051, 4348, 80),
    PaperRate("Matt Art Paper", "matt", 150, "28x40", 5067, 5438, 80),
    PaperRate("Matt Art Paper", "matt", 170, "23x36", 4222, 4533, 80),
    PaperRate("Matt Art Paper", "matt", 200, "23x36", 5000, 5500, 80),
    PaperRate("Matt Art Paper", "matt", 250, "23x36", 6250, 6800, 80),
    PaperRate("Matt Art Paper", "matt", 300, "23x36", 7500, 8200, 80),
    PaperRate("Glossy Art Paper", "gloss", 130, "23x36", 3100, 3400, 82),
    PaperRate("Glossy Art Paper", "gloss", 150, "23x36", 3600, 3900, 82),
    PaperRate("Glossy Art Paper", "gloss", 200, "23x36", 4800, 5200, 82),
    PaperRate("Woodfree Paper (CW)", "CW", 80, "23x36", 2000, 2500, 76.5),
    PaperRate("Woodfree Paper (CW)", "CW", 100, "23x36", 2500, 3125, 76.5),
    PaperRate("Holmen Bulky", "HB", 60, "25x36", 2500, 2800, 73),
    PaperRate("Holmen Bulky", "HB", 70, "25x36", 2700, 2920, 73),
    PaperRate("Holmen Bulky", "HB", 80, "25x36", 2888, 2920, 73),
    PaperRate("White Uncoated", "map", 90, "25x36", 2800, 3000, 82),
    PaperRate("White Uncoated", "map", 100, "25x36", 3100, 3333, 82),
    PaperRate("White Uncoated", "map", 120, "25x36", 3700, 4000, 82),
    PaperRate("White Uncoated", "map", 140, "25x36", 4300, 4667, 82),
    PaperRate("Art Card", "Art card", 300, "23x36", 10880, 9600, 96),
    PaperRate("C1S Art Card", "C1s", 300, "23x36", 14700, 15600, 98),
    PaperRate("C1S Art Card", "C1s", 350, "23x36", 17150, 18200, 98),
    PaperRate("Woodfree Paper (Hibulk)", "ML70", 70, "23x36", 2100, 2500, 88),
    PaperRate("Stora creamy", "Scream", 80, "23x36", 3100, 3400, 84),
    PaperRate("Woodfree white offset paper", "SP", 70, "23x36", 2350, 2700, 91),
    PaperRate("Woodfree white offset paper", "SP", 80, "23x36", 2680, 3000, 91),
)


# =============================================================================
# PRINTING
# =============================================================================

WASTAGE_CHART = (
    WastageEntry(0, 1000, four_color=200, two_color=150, one_color=100),
    WastageEntry(1001, 2000, four_color=250, two_color=200, one_color=150),
    WastageEntry(2001, 3000, four_color=300, two_color=250, one_color=200),
    WastageEntry(3001, 5000, four_color=350, two_color=300, one_color=250),
    WastageEntry(5001, 8000, four_color=400, two_color=350, one_color=300),
    WastageEntry(8001, 10000, four_color=500, two_color=400, one_color=350),
    WastageEntry(10001, 15000, four_color=600, two_color=500, one_color=400),
    WastageEntry(15001, 20000, four_color=750, two_color=600, one_color=500),
    WastageEntry(20001, 30000, four_color=1000, two_color=750, one_color=600),
    WastageEntry(30001, 50000, four_color=1250, two_color=1000, one_color=750),
    WastageEntry(50001, OPEN_END, four_color=2.5, two_color=2.0, one_color=1.5, is_percentage=True),
)


def _impression_rates(fav, rekord_aq, rekord, rmgt, rmgt_perfecto):
    return {
        "fav": fav,
        "rekord_aq": rekord_aq,
        "rekord": rekord,
        "rmgt": rmgt,
        "rmgt_perfecto": rmgt_perfecto,
    }


IMPRESSION_RATES = (
    ImpressionRateEntry(0, 10000, rates=_impression_rates(229, 199, 199, 199, 169)),
    ImpressionRateEntry(10001, 50000, rates=_impression_rates(187, 163, 163, 163, 109)),
    ImpressionRateEntry(50001, OPEN_END, rates=_impression_rates(169, 151, 151, 151, 97)),
)

# Bible and other thin papers run slower and waste more
THIN_PAPER_SURCHARGES = (
    SurchargeBand(0, 30, percent=30),
    SurchargeBand(31, 35, percent=12),
    SurchargeBand(36, 40, percent=8),
    SurchargeBand(41, 45, percent=5),
    SurchargeBand(46, 50, percent=3),
)


# =============================================================================
# BINDING
# =============================================================================

PERFECT_BINDING_TIERS = (
    PerfectBindingTier(0, 3000, rate_per_16pp=0.30, gathering_rate=0.04),
    PerfectBindingTier(3001, 5000, rate_per_16pp=0.25, gathering_rate=0.03),
    PerfectBindingTier(5001, 8000, rate_per_16pp=0.22, gathering_rate=0.025),
    PerfectBindingTier(8001, 10000, rate_per_16pp=0.20, gathering_rate=0.02),
    PerfectBindingTier(10001, 15000, rate_per_16pp=0.18, gathering_rate=0.018),
    PerfectBindingTier(15001, 20000, rate_per_16pp=0.16, gathering_rate=0.015),
    PerfectBindingTier(20001, OPEN_END, rate_per_16pp=0.14, gathering_rate=0.012),
)

SADDLE_STITCH_TIERS = (
    SaddleStitchTier(0, 5000, rate_per_copy=0.40),
    SaddleStitchTier(5001, 10000, rate_per_copy=0.30),
    SaddleStitchTier(10001, 20000, rate_per_copy=0.25),
    SaddleStitchTier(20001, OPEN_END, rate_per_copy=0.20),
)

# sewing 0.11 + folding 0.04 per section; fixed = tipping, lining, casing-in,
# pressing, glue, head/tail band, trimming, inspection, case lamination
HARDCASE_TIERS = (
    HardcaseTier(0, OPEN_END, sewing_rate_per_16pp=0.15, fixed_per_copy=7.56),
)

WIRE_O_SIZES = (
    WireOEntry("3/16", 2, 3.5),
    WireOEntry("1/4", 3, 5),
    WireOEntry("5/16", 5, 6.5),
    WireOEntry("3/8", 6.5, 8),
    WireOEntry("7/16", 8, 16.0),
    WireOEntry("1/2", 9.5, 18.8),
    WireOEntry("9/16", 11, 24.1),
    WireOEntry("5/8", 12.5, 34.2),
    WireOEntry("3/4", 15, 51.8),
    WireOEntry("7/8", 18, 62.3),
    WireOEntry("1", 22.3, 69.2),
)

BOARD_TYPES = (
    BoardType("bd_imp_2", "Imported Board 2mm", 2, 31, 41, 74.62),
    BoardType("bd_imp_25", "Imported Board 2.5mm", 2.5, 31, 41, 93.27),
    BoardType("bd_imp_3", "Imported Board 3mm", 3, 31, 41, 112),
    BoardType("bd_ind_2", "Indian Board 2mm", 2, 31, 41, 21.32),
    BoardType("bd_ind_25", "Indian Board 2.5mm", 2.5, 31, 41, 26.64),
    BoardType("bd_ind_3", "Indian Board 3mm", 3, 31, 41, 31.98),
)


# =============================================================================
# FINISHING
# =============================================================================

LAMINATION_RATES = {
    "gloss": FinishingRate(rate_per_copy=0.78, minimum_order=3500),
    "matt": FinishingRate(rate_per_copy=0.78, minimum_order=3500),
    "velvet": FinishingRate(rate_per_copy=1.20, minimum_order=5000),
    "anti_scratch": FinishingRate(rate_per_copy=1.40, minimum_order=5000),
}

SPOT_UV_TIERS = (
    SpotUVTier(0, 2000, rate_per_copy=1.50, block_cost=2500),
    SpotUVTier(2001, 5000, rate_per_copy=1.28, block_cost=2500),
    SpotUVTier(5001, 10000, rate_per_copy=1.00, block_cost=2500),
    SpotUVTier(10001, OPEN_END, rate_per_copy=0.80, block_cost=2500),
)

DIE_CUTTING_RATES = {
    "simple": FinishingRate(rate_per_copy=0.20, setup_cost=4000),
    "medium": FinishingRate(rate_per_copy=0.30, setup_cost=8000),
    "complex": FinishingRate(rate_per_copy=0.45, setup_cost=15000),
}


# =============================================================================
# DELIVERY
# =============================================================================

def _overseas(destination_id, name, country, sea_container, sea_pallet, air_per_kg):
    return Destination(
        destination_id=destination_id,
        name=name,
        country=country,
        is_overseas=True,
        sea_per_container20=sea_container,
        sea_per_pallet=sea_pallet,
        surface_per_pallet=1500,
        air_per_kg=air_per_kg,
        clearance_charges=8500,
        cha_charges=3500,
        port_handling=3000,
        documentation=1500,
        bl_charges=2500,
    )


DESTINATIONS = (
    Destination("bom", "Bombay (Mumbai)", "India", surface_per_truck=14500, surface_per_ton=3000),
    Destination("nd", "New Delhi", "India", surface_per_truck=6000, surface_per_ton=400),
    _overseas("felix", "Felixstowe", "United Kingdom", 1100, 80, 700),
    _overseas("ham", "Hamburg", "Germany", 1100, 80, 700),
    _overseas("ny", "New York", "United States", 2350, 200, 600),
    _overseas("rot", "Rotterdam", "Netherlands", 1100, 80, 700),
    _overseas("mel", "Melbourne", "Australia", 1700, 150, 900),
    _overseas("sing", "Singapore", "Singapore", 1200, 80, 750),
    _overseas("tor", "Toronto", "Canada", 2400, 200, 900),
    Destination("ex", "Ex Works", "India"),
)


# =============================================================================
# PRICING
# =============================================================================

VOLUME_DISCOUNTS = (
    VolumeDiscountTier(5000, 1.5),
    VolumeDiscountTier(10000, 3),
    VolumeDiscountTier(20000, 5),
    VolumeDiscountTier(50000, 7),
)


def default_rate_tables(
    minimum_order_value: float = 25000.0,
    default_make_ready: float = 1500.0,
    default_ctp_rate: float = 271.0,
    bleed_mm: float = 3.0,
    gripper_mm: float = 12.0,
    version: Optional[str] = None,
) -> RateTables:
    """
    Assemble the built-in rate tables.

    Args:
        minimum_order_value: Production cost floor
        default_make_ready: Make-ready per form on the legacy rate path
        default_ctp_rate: Plate rate for machines without their own
        bleed_mm: Bleed per trim edge used in imposition
        gripper_mm: Gripper margin for machines without their own
        version: Label reported by the health endpoint

    Returns:
        A validated RateTables snapshot
    """
    return RateTables(
        version=version or "default",
        paper_rates=PAPER_RATES,
        bulk_factors=dict(BULK_FACTORS),
        wastage=WASTAGE_CHART,
        imposition=ImpositionRules(
            paper_sizes=STANDARD_PAPER_SIZES,
            bleed_mm=bleed_mm,
            gripper_mm=gripper_mm,
        ),
        printing=PrintingRules(
            impression_rates=IMPRESSION_RATES,
            thin_paper_surcharges=THIN_PAPER_SURCHARGES,
            default_make_ready_per_form=default_make_ready,
            default_ctp_rate=default_ctp_rate,
        ),
        binding=BindingRates(
            perfect=PERFECT_BINDING_TIERS,
            saddle=SADDLE_STITCH_TIERS,
            hardcase=HARDCASE_TIERS,
            wire_o=WIRE_O_SIZES,
        ),
        board_types=BOARD_TYPES,
        finishing=FinishingRates(
            lamination=dict(LAMINATION_RATES),
            spot_uv=SPOT_UV_TIERS,
            embossing=FinishingRate(rate_per_copy=0.45, setup_cost=2500),
            foil_blocking=FinishingRate(rate_per_copy=0.30, setup_cost=3500),
            die_cutting=dict(DIE_CUTTING_RATES),
        ),
        packing=PackingRates(),
        freight=FreightRules(destinations=DESTINATIONS),
        pricing=PricingRules(
            volume_discounts=VOLUME_DISCOUNTS,
            minimum_order_value=minimum_order_value,
        ),
    )
