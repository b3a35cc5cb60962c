"""HBI Insights: rule-based summaries for the constraint and field panels.

There is no model behind these; each insight is a threshold check over the
already computed statistics.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from . import constraints as constraint_views

LOG_COMPLIANCE_TARGET = 95.0
OVERDUE_LOG_PATTERN = 3


def _insight(
    insight_id: str,
    *,
    insight_type: str,
    category: str,
    title: str,
    description: str,
    impact: str,
    confidence: int,
    action_items: list[str],
) -> dict[str, Any]:
    return {
        "id": insight_id,
        "type": insight_type,
        "category": category,
        "title": title,
        "description": description,
        "impact": impact,
        "confidence": confidence,
        "action_items": action_items,
    }


def field_report_insights(filtered: dict[str, list[dict[str, Any]]], metrics: dict[str, Any]) -> list[dict[str, Any]]:
    insights: list[dict[str, Any]] = []

    log_rate = float(metrics.get("log_compliance_rate", 0.0))
    safety_rate = float(metrics.get("safety_compliance_rate", 0.0))
    pass_rate = float(metrics.get("quality_pass_rate", 0.0))
    violations = int(metrics.get("safety_violations", 0))
    defects = int(metrics.get("quality_defects", 0))
    efficiency = float(metrics.get("average_efficiency", 0.0))

    if log_rate < LOG_COMPLIANCE_TARGET:
        missed = int(metrics.get("expected_logs", 0)) - int(metrics.get("completed_logs", 0))
        insights.append(_insight(
            "log-compliance",
            insight_type="alert",
            category="compliance",
            title="Daily Log Compliance Below Target",
            description=(
                f"Current log compliance of {log_rate:.1f}% is below the 95% target. "
                f"{missed} logs are missing or overdue."
            ),
            impact="critical" if log_rate < 85 else "high",
            confidence=95,
            action_items=[
                "Send reminder notifications to field supervisors",
                "Review log submission process for bottlenecks",
            ],
        ))

    if violations > 5 or safety_rate < 90:
        insights.append(_insight(
            "safety-performance",
            insight_type="risk",
            category="safety",
            title="Safety Performance Requires Attention",
            description=(
                f"{violations} safety violations detected with "
                f"{int(metrics.get('at_risk_safety_items', 0))} at-risk items requiring immediate attention."
            ),
            impact="critical" if violations > 10 else "high",
            confidence=92,
            action_items=[
                "Schedule a site safety stand-down",
                "Review at-risk items with trade foremen",
            ],
        ))

    if defects > 0 and pass_rate < 85:
        insights.append(_insight(
            "quality-improvement",
            insight_type="opportunity",
            category="quality",
            title="Quality Performance Improvement Opportunity",
            description=(
                f"{defects} quality defects identified. Current pass rate of {pass_rate:.1f}% "
                "suggests systematic quality issues."
            ),
            impact="medium",
            confidence=88,
            action_items=["Hold pre-installation meetings for affected trades"],
        ))

    if filtered.get("manpower") and efficiency < 75:
        insights.append(_insight(
            "workforce-efficiency",
            insight_type="trend",
            category="efficiency",
            title="Workforce Efficiency Below Optimal",
            description=(
                f"Average workforce efficiency of {efficiency:.1f}% indicates potential productivity "
                f"improvements across {int(metrics.get('total_workers', 0))} workers."
            ),
            impact="medium",
            confidence=80,
            action_items=["Compare crew hours against planned production rates"],
        ))

    overdue_logs = [log for log in filtered.get("daily_logs", []) if log.get("status") == "overdue"]
    if len(overdue_logs) > OVERDUE_LOG_PATTERN:
        insights.append(_insight(
            "overdue-logs-pattern",
            insight_type="trend",
            category="reporting",
            title="Pattern of Overdue Daily Logs",
            description=(
                f"{len(overdue_logs)} daily logs are overdue, indicating potential systemic "
                "reporting issues that could impact project documentation."
            ),
            impact="medium",
            confidence=85,
            action_items=["Assign a backup author for daily logs on each project"],
        ))

    if log_rate > 98 and safety_rate > 95 and pass_rate > 90:
        insights.append(_insight(
            "excellent-performance",
            insight_type="opportunity",
            category="reporting",
            title="Exceptional Field Reporting Performance",
            description=(
                f"Outstanding performance across all metrics: {log_rate:.1f}% log compliance, "
                f"{safety_rate:.1f}% safety score, and {pass_rate:.1f}% quality pass rate."
            ),
            impact="medium",
            confidence=90,
            action_items=["Share current reporting practices with other project teams"],
        ))

    return insights


def constraint_insights(constraints: list[dict[str, Any]], stats: dict[str, Any], today: date) -> list[dict[str, Any]]:
    insights: list[dict[str, Any]] = []
    total = int(stats.get("total", 0))
    open_count = int(stats.get("open", 0))
    overdue = int(stats.get("overdue", 0))

    if overdue:
        insights.append(_insight(
            "overdue-constraints",
            insight_type="alert",
            category="schedule",
            title="Overdue Constraints",
            description=f"{overdue} of {open_count} open constraints are past their due date.",
            impact="critical" if open_count and overdue / open_count > 0.5 else "high",
            confidence=95,
            action_items=["Review overdue items in the next coordination meeting"],
        ))

    open_items = [c for c in constraints if not constraint_views.is_closed(c)]
    open_by_category: dict[str, int] = {}
    for constraint in open_items:
        category = constraint_views.strip_category_prefix(constraint.get("category", ""))
        open_by_category[category] = open_by_category.get(category, 0) + 1
    if open_by_category:
        category, count = max(open_by_category.items(), key=lambda kv: (kv[1], kv[0]))
        insights.append(_insight(
            "category-concentration",
            insight_type="trend",
            category="constraints",
            title=f"Most Open Constraints In {category or 'Uncategorized'}",
            description=f"{count} open constraints are concentrated in {category or 'an uncategorized bucket'}.",
            impact="medium",
            confidence=85,
            action_items=[f"Confirm owners for open {category or 'uncategorized'} constraints"],
        ))

    aged = [
        c for c in open_items
        if constraint_views.days_elapsed(c.get("dateIdentified"), today) > 30
    ]
    if aged:
        insights.append(_insight(
            "aging-constraints",
            insight_type="risk",
            category="constraints",
            title="Aging Open Constraints",
            description=f"{len(aged)} open constraints were identified more than 30 days ago.",
            impact="high" if len(aged) > 5 else "medium",
            confidence=80,
            action_items=["Escalate constraints open longer than 30 days"],
        ))

    if total and not open_count:
        insights.append(_insight(
            "all-clear",
            insight_type="opportunity",
            category="constraints",
            title="All Constraints Resolved",
            description=f"All {total} logged constraints are closed.",
            impact="low",
            confidence=99,
            action_items=[],
        ))

    return insights
