"""
Questgen - Quest Generation Engine

A constrained random-draw engine that assembles quests from independently
authored decks of tagged cards. The package provides:
- Card store loading and per-run snapshots
- Tag evaluation and pending cross-deck instructions
- Bounded-retry draw resolution with fallback
- The five-stage quest pipeline with step-through support
- A validator that drives the engine for balance analysis
"""

__version__ = "0.1.0"
