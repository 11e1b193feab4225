"""Shared fixtures for the estimator test suite."""

import pytest

from models.job_spec import (
    BindingType,
    CoverSpecification,
    JobSpecification,
    LaminationType,
    PricingConfiguration,
    PricingMode,
    TextSection,
)
from models.machine import MachineClass, ResolvedMachine
from modules.rate_defaults import default_machines, default_rate_tables


# Fixtures

@pytest.fixture
def tables():
    """Built-in rate tables."""
    return default_rate_tables()


@pytest.fixture
def machines():
    """Built-in machine profiles keyed by id."""
    return default_machines()


@pytest.fixture
def legacy_machine():
    """A press with no profile, costed from the impression-rate table."""
    return ResolvedMachine(machine_id="heidelberg", machine_class=MachineClass.FAV)


@pytest.fixture
def physics_machine(machines):
    """The RMGT profile, costed by press time."""
    return ResolvedMachine(
        machine_id="rmgt", machine_class=MachineClass.RMGT, profile=machines["rmgt"]
    )


@pytest.fixture
def scenario_payload():
    """
    Raw payload for the reference job: 153x234mm, 256pp 130gsm matt text
    4/4, Art Card 300gsm cover with gloss lamination, perfect bound,
    5,000 copies at a 20% margin.
    """
    return {
        "title": "Reference Title",
        "trim_width_mm": "153",
        "trim_height_mm": "234",
        "binding_type": "perfect_binding",
        "text_sections": [
            {
                "enabled": True,
                "pages": "256",
                "gsm": "130",
                "paper_type": "Matt Art Paper",
                "machine_id": "rmgt",
                "colors_front": "4",
                "colors_back": "4",
                "printing_method": "sheetwise",
            }
        ],
        "cover": {
            "gsm": "300",
            "paper_type": "Art Card",
            "machine_id": "fav",
            "colors_front": "4",
            "colors_back": "0",
            "lamination": "gloss",
        },
        "quantities": ["5000"],
        "pricing": {
            "mode": "margin",
            "percent": "20",
            "tax_rate": "0",
            "turnaround": "standard",
        },
    }


@pytest.fixture
def scenario_spec():
    """The reference job as a normalized specification."""
    return JobSpecification(
        title="Reference Title",
        trim_width_mm=153.0,
        trim_height_mm=234.0,
        text_sections=(
            TextSection(
                pages=256,
                gsm=130.0,
                paper_type="Matt Art Paper",
                machine_id="rmgt",
                colors_front=4,
                colors_back=4,
            ),
        ),
        binding_type=BindingType.PERFECT_BINDING,
        quantities=(5000,),
        pricing=PricingConfiguration(mode=PricingMode.MARGIN, percent=20.0),
        cover=CoverSpecification(
            gsm=300.0,
            paper_type="Art Card",
            machine_id="fav",
            lamination=LaminationType.GLOSS,
        ),
    )
