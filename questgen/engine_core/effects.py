"""
Modify Effects - Tag additions a drawn card applies to itself or others.

Only Modify/Add instructions are applied. Tags go to:
- the drawn card itself, for ThisCard instructions
- an already-drawn quest card, when the instruction names its role
Anything aimed at a deck reached later, and any other instruction kind
aimed at another deck, is handed back for the pending-instruction ledger.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Mapping

from .state import Card, Instruction, Modification, RunStats, normalize_deck_name
from .run_log import RunLog


@dataclass
class ModifyOutcome:
    """What apply_modify_effects did with a card's instructions."""
    applied: list[Modification] = field(default_factory=list)
    # Instructions for the pending-instruction ledger
    deferred: list[Instruction] = field(default_factory=list)


def apply_modify_effects(
    card: Card,
    log: RunLog,
    stats: RunStats,
    held: Mapping[str, Card] | None = None,
) -> ModifyOutcome:
    """
    Apply the card's Modify/Add instructions.

    Args:
        card: The card just drawn
        log: Run log for this run
        stats: Counters; modify_effects_applied grows per applied instruction
        held: Already-drawn quest cards keyed by role name ("verb", "target", ...)

    Returns:
        ModifyOutcome listing applied modifications and deferred instructions
    """
    outcome = ModifyOutcome()
    held = held or {}

    for instruction in card.instructions:
        if not instruction.target_deck or not instruction.tags:
            continue
        if not instruction.is_modify_add:
            log.log(
                f"→ No Modify effect for {instruction.kind}/{instruction.subtype} instruction on \"{card.name}\"",
                {"source": card.name, "type": instruction.kind, "subtype": instruction.subtype},
                verbose_only=True,
            )
            if not instruction.targets_this_card:
                outcome.deferred.append(instruction)
            continue

        if instruction.targets_this_card:
            recipient, applied_to = card, "ThisCard"
        else:
            recipient = held.get(normalize_deck_name(instruction.target_deck))
            applied_to = instruction.target_deck

        if recipient is None:
            outcome.deferred.append(instruction)
            log.log(
                f"→ Tags [{', '.join(instruction.tags)}] marked for {instruction.target_deck}",
                {"source": card.name, "target_deck": instruction.target_deck, "tags": list(instruction.tags)},
                verbose_only=True,
            )
            continue

        recipient.add_mutable_tags(instruction.tags)
        stats.modify_effects_applied += 1
        modification = Modification(
            source=card.name,
            applied_to=recipient.name if recipient is not card else "ThisCard",
            tags=list(instruction.tags),
        )
        outcome.applied.append(modification)
        log.log(
            f"→ Modify: Added [{', '.join(instruction.tags)}] to {applied_to} (\"{recipient.name}\")",
            {"source": card.name, "applied_to": applied_to, "card": recipient.name, "tags": list(instruction.tags)},
        )

    return outcome
