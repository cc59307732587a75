"""Reporting utilities.

Formats summaries into human-readable text and JSON files for the CLI.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional

from .analytics import Summary
from .filters import TransactionFilters


def build_report(summary: Summary, categories: List[Dict], filters: Optional[TransactionFilters] = None) -> Dict:
    report: Dict = {
        "totals": summary.to_dict(),
        "categories": categories,
    }
    if filters is not None:
        report["filters"] = {
            "startDate": filters.start_date.isoformat() if filters.start_date else None,
            "endDate": filters.end_date.isoformat() if filters.end_date else None,
            "type": filters.type,
            "categoryId": filters.category_id,
        }
    return report


def format_text_report(report: Dict) -> str:
    lines: List[str] = []
    t = report["totals"]
    lines.append("=== Finance Summary ===")
    lines.append(f"Income:   ${t['totalIncome']:.2f}")
    lines.append(f"Expenses: ${t['totalExpenses']:.2f}")
    lines.append(f"Balance:  ${t['balance']:.2f}")
    lines.append("")

    lines.append("-- By Category --")
    if not report["categories"]:
        lines.append("(no transactions)")
    for row in report["categories"]:
        lines.append(f"{row['name'][:20]:20} {row['type']:8} ${row['total']:.2f}")
    return "\n".join(lines)


def save_json(report: Dict, path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(report, f, indent=2)
