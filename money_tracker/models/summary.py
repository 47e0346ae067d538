"""
Category summary model for ledger reconciliation.
"""

from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict

MIN_SUMMARY_CELLS = 4


class CategorySummary(BaseModel):
    """Read-only snapshot of one category row in the summary table"""
    model_config = ConfigDict(frozen=True)

    category: str = ""
    monthly_expenses: str = ""
    monthly_budget: str = ""
    budget_left: str = ""
    quota: str = ""
    quota_left: str = ""

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "CategorySummary":
        """
        Build a summary from a sheet row laid out as category, monthly
        expenses, monthly budget, budget left, quota, quota left.

        Rows shorter than four cells yield the zero value; quota columns
        default to empty strings when absent.
        """
        if len(row) < MIN_SUMMARY_CELLS:
            return cls()
        cells = [str(cell) for cell in row[:6]]
        cells.extend([""] * (6 - len(cells)))
        return cls(
            category=cells[0],
            monthly_expenses=cells[1],
            monthly_budget=cells[2],
            budget_left=cells[3],
            quota=cells[4],
            quota_left=cells[5],
        )

    @property
    def is_empty(self) -> bool:
        return self == CategorySummary()
