"""
Mass Combat - Tactical card-combat resolution engine.

A deterministic, rules-driven engine for the two-sided mass combat
card game. The engine provides:
- Card and commander state management
- Effect resolution and aggregation
- Command point economy
- Phase-driven battle resolution
- Bot opponents with tunable difficulty
"""

__version__ = "0.1.0"
