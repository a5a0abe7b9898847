"""
Engine configuration.

Values come from code or from the environment:
    QUESTGEN_MAX_REDRAWS   Rejections before the fallback draw (-1 = draw until match)
    QUESTGEN_DEBUG         "1"/"true" to record verbose run-log entries
    QUESTGEN_SEED          Seed for reproducible runs (int or any string)
"""

from __future__ import annotations
import os
from dataclasses import dataclass

from .random_util import SeedLike


DEFAULT_MAX_REDRAWS = 3
DRAW_UNTIL_MATCH = -1

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class EngineConfig:
    """Tunable knobs for a QuestEngine."""
    max_redraws: int = DEFAULT_MAX_REDRAWS
    debug_mode: bool = False
    seed: SeedLike | None = None

    def __post_init__(self):
        if self.max_redraws < DRAW_UNTIL_MATCH:
            raise ValueError(
                f"max_redraws must be >= {DRAW_UNTIL_MATCH}, got {self.max_redraws}"
            )

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build a config from QUESTGEN_* environment variables."""
        max_redraws = os.getenv("QUESTGEN_MAX_REDRAWS")
        seed = os.getenv("QUESTGEN_SEED") or None
        return cls(
            max_redraws=int(max_redraws) if max_redraws else DEFAULT_MAX_REDRAWS,
            debug_mode=os.getenv("QUESTGEN_DEBUG", "").strip().lower() in _TRUTHY,
            seed=seed,
        )

    @property
    def max_redraws_label(self) -> str:
        if self.max_redraws == DRAW_UNTIL_MATCH:
            return "∞ (draw until match)"
        return str(self.max_redraws)
