"""
Commander templates - the roster pieces a side is built from.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..engine_core.cards import UnitType
from ..engine_core.state import Commander


@dataclass(frozen=True)
class CommanderTemplate:
    """A recruitable commander profile."""
    number: int
    specialization: UnitType | None
    command: int
    strategy: int = 0
    guard: int = 0
    vet_cost: int = 0

    def __post_init__(self):
        if not 1 <= self.command <= 6:
            raise ValueError(f"Commander #{self.number}: command must be in 1..6")

    @property
    def label(self) -> str:
        spec = self.specialization.value if self.specialization else "Geral"
        return f"#{self.number} {spec}"

    def instantiate(self, commander_id: str, is_general: bool = False) -> Commander:
        """Create a fresh, untapped commander from this template."""
        return Commander(
            commander_id=commander_id,
            name=self.label,
            specialization=self.specialization,
            command_base=self.command,
            command_free=self.command,
            strategy=self.strategy,
            guard=self.guard,
            is_general=is_general,
        )


COMMANDER_TEMPLATES: list[CommanderTemplate] = [
    CommanderTemplate(1, UnitType.INFANTRY, command=1, strategy=1, guard=1, vet_cost=3),
    CommanderTemplate(2, UnitType.INFANTRY, command=2, strategy=1, guard=2, vet_cost=5),
    CommanderTemplate(3, UnitType.CAVALRY, command=1, strategy=2, guard=1, vet_cost=4),
    CommanderTemplate(4, UnitType.CAVALRY, command=3, strategy=2, guard=1, vet_cost=7),
    CommanderTemplate(5, UnitType.ARCHER, command=2, strategy=1, guard=1, vet_cost=5),
    CommanderTemplate(6, UnitType.SIEGE, command=2, strategy=3, guard=0, vet_cost=6),
    CommanderTemplate(7, None, command=3, strategy=3, guard=2, vet_cost=9),
    CommanderTemplate(8, None, command=4, strategy=4, guard=3, vet_cost=12),
]


def get_template(number: int) -> CommanderTemplate:
    for template in COMMANDER_TEMPLATES:
        if template.number == number:
            return template
    raise ValueError(f"Unknown commander template #{number}")


DEFAULT_SPECIALISTS = (get_template(2), get_template(3))
DEFAULT_GENERAL = get_template(7)
