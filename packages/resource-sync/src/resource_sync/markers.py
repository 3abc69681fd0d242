from __future__ import annotations

from enum import Enum

from resource_sync.models import MarkerStyle, ResourceType

DEFAULT_COLOR = "#6c757d"
POINT_ANALYSIS_COLOR = "#dc3545"

TYPE_COLORS: dict[ResourceType, str] = {
    ResourceType.LIBRARY: "#28a745",
    ResourceType.CLINIC: "#007bff",
    ResourceType.HOSPITAL: "#6f42c1",
    ResourceType.PHARMACY: "#20c997",
    ResourceType.FOOD_BANK: "#ffc107",
    ResourceType.SOCIAL_FACILITY: "#fd7e14",
}

TYPE_LABELS: dict[ResourceType, str] = {
    ResourceType.LIBRARY: "LIB",
    ResourceType.CLINIC: "CLN",
    ResourceType.HOSPITAL: "HSP",
    ResourceType.PHARMACY: "RX",
    ResourceType.FOOD_BANK: "FOOD",
    ResourceType.SOCIAL_FACILITY: "SOC",
}


class MarkerRole(str, Enum):
    PLAIN = "plain"
    POINT_ANALYSIS = "point_analysis"


class MarkerStyleCache:
    """Memo table of marker styles.

    Keys are (type, role) pairs, a fixed and small space, so entries are
    never evicted.
    """

    def __init__(self) -> None:
        self._styles: dict[tuple[ResourceType | None, MarkerRole], MarkerStyle] = {}

    def __len__(self) -> int:
        return len(self._styles)

    def style_for(self, resource_type: ResourceType | None, role: MarkerRole = MarkerRole.PLAIN) -> MarkerStyle:
        key = (resource_type, role)
        style = self._styles.get(key)
        if style is None:
            style = self._build(resource_type, role)
            self._styles[key] = style
        return style

    @staticmethod
    def _build(resource_type: ResourceType | None, role: MarkerRole) -> MarkerStyle:
        label = TYPE_LABELS.get(resource_type, "?") if resource_type else "?"
        if role is MarkerRole.POINT_ANALYSIS:
            return MarkerStyle(color=POINT_ANALYSIS_COLOR, label=label)
        color = TYPE_COLORS.get(resource_type, DEFAULT_COLOR) if resource_type else DEFAULT_COLOR
        return MarkerStyle(color=color, label=label)
