"""Marker layout for an image rendered inside a positioning container.

Marker positions are derived from the stored fractions every time the image
box or the hotspot list changes; nothing here is ever persisted.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from hotspot_pages.client.notifications import ConfirmDialog, ConfirmVariant
from hotspot_pages.domain.entities.hotspot import HotspotEntity
from hotspot_pages.domain.services.coordinates import ImageBox, container_to_fraction, project_many

logger = logging.getLogger(__name__)

MARKER_SIZE = 16
TOOLTIP_FLIP_THRESHOLD = 60
TOOLTIP_GAP_BELOW = 25
TOOLTIP_GAP_ABOVE = 55


class CanvasMode(str, Enum):
    VIEW = "view"
    EDIT = "edit"


class ClickTarget(str, Enum):
    IMAGE = "image"
    MARKER = "marker"


@dataclass(frozen=True)
class ClickEvent:
    target: ClickTarget
    x: float
    y: float
    hotspot_id: str | None = None


@dataclass(frozen=True)
class Marker:
    hotspot_id: str
    center_x: float
    center_y: float
    left: float
    top: float
    text: str
    tooltip_below: bool
    tooltip_top: float


@dataclass(frozen=True)
class PlacementRequest:
    x_pct: float
    y_pct: float
    container_x: float
    container_y: float


class CanvasProjection:
    def __init__(self, mode: CanvasMode = CanvasMode.VIEW) -> None:
        self.mode = mode
        self.box = ImageBox(0, 0)
        self.hotspots: list[HotspotEntity] = []
        self.markers: list[Marker] = []
        self.placement: PlacementRequest | None = None
        self.editing_id: str | None = None
        self.open_tooltip_id: str | None = None

    # layout triggers

    def image_loaded(self, box: ImageBox) -> list[Marker]:
        return self._set_box(box)

    def resized(self, box: ImageBox) -> list[Marker]:
        return self._set_box(box)

    def layout_changed(self, box: ImageBox) -> list[Marker]:
        return self._set_box(box)

    def hotspots_changed(self, hotspots: Iterable[HotspotEntity]) -> list[Marker]:
        self.hotspots = list(hotspots)
        ids = {h.id for h in self.hotspots}
        if self.editing_id not in ids:
            self.editing_id = None
        if self.open_tooltip_id not in ids:
            self.open_tooltip_id = None
        return self._recompute()

    def _set_box(self, box: ImageBox) -> list[Marker]:
        self.box = box
        return self._recompute()

    def _recompute(self) -> list[Marker]:
        if self.box.is_empty or not self.hotspots:
            self.markers = []
            return self.markers
        centres = project_many(((h.x_pct, h.y_pct) for h in self.hotspots), self.box)
        half = MARKER_SIZE / 2
        markers = []
        for hotspot, (cx, cy) in zip(self.hotspots, centres.tolist()):
            below = cy < TOOLTIP_FLIP_THRESHOLD
            markers.append(
                Marker(
                    hotspot_id=hotspot.id,
                    center_x=cx,
                    center_y=cy,
                    left=cx - half,
                    top=cy - half,
                    text=hotspot.text,
                    tooltip_below=below,
                    tooltip_top=cy + TOOLTIP_GAP_BELOW if below else cy - TOOLTIP_GAP_ABOVE,
                )
            )
        self.markers = markers
        return markers

    # interaction

    def click(self, event: ClickEvent) -> PlacementRequest | None:
        """Handle a click in container coordinates.

        Only an image click in edit mode can open a placement. Marker clicks
        open the edit affordance in edit mode and toggle the tooltip in view
        mode, which is also how touch devices reveal tooltip text.
        """
        if event.target is ClickTarget.MARKER:
            if self.mode is CanvasMode.EDIT:
                self.editing_id = event.hotspot_id
            else:
                self.toggle_tooltip(event.hotspot_id)
            return None

        if self.mode is not CanvasMode.EDIT:
            self.open_tooltip_id = None
            return None
        fraction = container_to_fraction(event.x, event.y, self.box)
        if fraction is None:
            logger.debug("Ignoring click outside image at (%s, %s)", event.x, event.y)
            return None
        self.placement = PlacementRequest(
            x_pct=fraction[0], y_pct=fraction[1], container_x=event.x, container_y=event.y
        )
        return self.placement

    def toggle_tooltip(self, hotspot_id: str | None) -> None:
        if hotspot_id is not None and self.open_tooltip_id == hotspot_id:
            self.open_tooltip_id = None
        else:
            self.open_tooltip_id = hotspot_id

    def submit_placement(self, text: str) -> tuple[float, float, str] | None:
        """Close the placement affordance and hand back what to create.

        Blank text keeps the affordance open and returns ``None``.
        """
        if self.placement is None:
            return None
        cleaned = text.strip()
        if not cleaned:
            return None
        placement, self.placement = self.placement, None
        return placement.x_pct, placement.y_pct, cleaned

    def cancel_placement(self) -> None:
        self.placement = None

    def stop_editing(self) -> None:
        self.editing_id = None

    def request_delete(self, hotspot_id: str) -> ConfirmDialog:
        self.editing_id = hotspot_id
        return ConfirmDialog(
            title="Delete hotspot",
            message="Delete this hotspot? This cannot be undone.",
            confirm_text="Delete",
            variant=ConfirmVariant.DANGER,
        )
