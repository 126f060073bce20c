"""
Dashboard categories and the Metabase dashboards registered for them.
"""

from enum import Enum
from typing import Dict, Optional


class DashboardCategory(str, Enum):
    """Dashboard categories exposed to schools, keyed by their wire value."""

    FINANCIAL = "financeiro"
    PEDAGOGICAL = "pedagogico"
    AGENDA = "agenda"
    REGISTRAR = "secretaria"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["DashboardCategory"]:
        """Return the category for a wire value, or None if it is unknown."""
        if value is None:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


METABASE_DASHBOARDS: Dict[DashboardCategory, int] = {
    DashboardCategory.FINANCIAL: 52,
    DashboardCategory.PEDAGOGICAL: 131,
    DashboardCategory.AGENDA: 12278,
    DashboardCategory.REGISTRAR: 43,
}

_missing = set(DashboardCategory) - set(METABASE_DASHBOARDS)
if _missing:
    raise RuntimeError(
        f"Dashboard categories without a Metabase dashboard id: "
        f"{sorted(c.value for c in _missing)}"
    )


def dashboard_id_for(category: DashboardCategory) -> int:
    return METABASE_DASHBOARDS[category]
