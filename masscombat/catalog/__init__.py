"""
Catalog - Card definitions, commander templates and battle setup.
"""

from .cards import (
    CULTURES, TERRAINS, SECONDARY_TERRAINS, CLIMATES, SEASONS,
    SAMPLE_CARDS, calculate_vet_cost, minimum_command, load_default_catalog,
)
from .commanders import CommanderTemplate, COMMANDER_TEMPLATES, get_template
from .setup import SideSetup, build_side, build_roster, resolve_bid, setup_battle

__all__ = [
    "CULTURES",
    "TERRAINS",
    "SECONDARY_TERRAINS",
    "CLIMATES",
    "SEASONS",
    "SAMPLE_CARDS",
    "calculate_vet_cost",
    "minimum_command",
    "load_default_catalog",
    "CommanderTemplate",
    "COMMANDER_TEMPLATES",
    "get_template",
    "SideSetup",
    "build_side",
    "build_roster",
    "resolve_bid",
    "setup_battle",
]
