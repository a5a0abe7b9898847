"""Plain-text rendering of a ValidationReport."""

from __future__ import annotations

from .validator import ValidationReport


def format_report_as_text(report: ValidationReport) -> str:
    summary = report.summary
    lines = [
        "=== QUEST VALIDATOR REPORT ===",
        "",
        "SUMMARY",
        f"Total Iterations: {summary.total_iterations}",
        f"Aborted Runs: {summary.aborted_runs}",
        f"Total Draws: {summary.total_draws}",
        f"Avg Draws/Quest: {summary.avg_draws_per_quest:.2f}",
        f"Fallback Rate: {summary.fallback_rate:.1f}%",
        f"Avg Modify Effects/Quest: {summary.avg_modify_effects_per_quest:.2f}",
        f"Poor Match Pools: {summary.poor_match_pools}",
        "",
        "CARD UTILIZATION",
        f"Total Cards: {report.total_cards}",
        f"Cards Used: {report.cards_used}",
        f"Dead Cards: {len(report.dead_cards)}",
    ]
    for card in report.dead_cards:
        lines.append(f"    - {card['name']} ({card['deck']})")
    lines.append("")

    lines.append(f"Overactive Cards: {len(report.overactive_cards)}")
    for card in report.overactive_cards:
        lines.append(
            f"    - {card.name} ({card.deck}): {card.selected_count} times (ratio: {card.ratio:.2f}x)"
        )
    lines.append("")

    lines.append("TAG UTILIZATION")
    lines.append(f"Unique Tags: {report.unique_tags}")
    lines.append(f"Top {len(report.top_tags)} Tags:")
    for rank, (tag, count) in enumerate(report.top_tags, start=1):
        lines.append(f"  {rank}. {tag}: {count} uses")
    lines.append("")

    lines.append("VERB TIGHTNESS")
    if report.avg_verb_tightness is None:
        lines.append("Avg Match Pool: N/A")
    else:
        lines.append(f"Avg Match Pool: {report.avg_verb_tightness:.1f}%")
    lines.append("Lower = more restrictive verb requirements")
    lines.append("")

    lines.append("ROUTING BOTTLENECKS")
    lines.append(f"Bottleneck Steps: {len(report.bottlenecks)}")
    for bottleneck in report.bottlenecks:
        lines.append(
            f"  {bottleneck.stage}: {bottleneck.occurrences} times ({bottleneck.percentage:.1f}%)"
        )

    return "\n".join(lines) + "\n"
