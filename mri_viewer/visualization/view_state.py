"""Per-view plane/space/slice state."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Union

from ..spaces import Plane, Space, SpaceResolver, parse_plane, parse_space

LOGGER = logging.getLogger(__name__)


class ViewState:
    """Current plane, space and slice of one view.

    ``0 <= slice <= max_slice`` always holds: out-of-range slices are clamped
    and unknown planes or spaces are ignored.  Every accepted change calls
    ``on_change`` synchronously, including slice requests that leave the value
    unchanged.
    """

    def __init__(
        self,
        resolver: SpaceResolver,
        space: Union[Space, str] = Space.ABSOLUTE,
        plane: Union[Plane, str] = Plane.SAGITTAL,
        on_change: Optional[Callable[["ViewState"], None]] = None,
    ) -> None:
        self._resolver = resolver
        self.on_change = on_change
        self.space = parse_space(space)
        if self.space is None:
            LOGGER.warning("Ignoring unknown space %r; using %s", space, Space.ABSOLUTE.value)
            self.space = Space.ABSOLUTE
        self.plane = parse_plane(plane)
        if self.plane is None:
            LOGGER.warning("Ignoring unknown plane %r; using %s", plane, Plane.SAGITTAL.value)
            self.plane = Plane.SAGITTAL
        self.max_slice = resolver.max_slice(self.space, self.plane)
        self.slice = resolver.mid_slice(self.space, self.plane)

    def _notify(self) -> None:
        if callable(self.on_change):
            self.on_change(self)

    def _reset_geometry(self) -> None:
        self.max_slice = self._resolver.max_slice(self.space, self.plane)
        self.slice = self._resolver.mid_slice(self.space, self.plane)

    def set_plane(self, plane: Union[Plane, str]) -> None:
        parsed = parse_plane(plane)
        if parsed is None:
            LOGGER.warning("Ignoring unknown plane %r", plane)
            return
        self.plane = parsed
        self._reset_geometry()
        LOGGER.debug("Plane -> %s (slice %d/%d)", parsed.value, self.slice, self.max_slice)
        self._notify()

    def set_space(self, space: Union[Space, str]) -> None:
        parsed = parse_space(space)
        if parsed is None:
            LOGGER.warning("Ignoring unknown space %r", space)
            return
        self.space = parsed
        self._reset_geometry()
        LOGGER.debug("Space -> %s (slice %d/%d)", parsed.value, self.slice, self.max_slice)
        self._notify()

    def set_slice(self, slice_number: int) -> None:
        self.slice = max(0, min(int(slice_number), self.max_slice))
        self._notify()

    def next_slice(self) -> None:
        self.set_slice(self.slice + 1)

    def previous_slice(self) -> None:
        self.set_slice(self.slice - 1)

    def as_tuple(self):
        return self.space, self.plane, self.slice, self.max_slice

    def __repr__(self) -> str:
        return (
            f"ViewState(space={self.space.value}, plane={self.plane.value}, "
            f"slice={self.slice}, max_slice={self.max_slice})"
        )


__all__ = ["ViewState"]
