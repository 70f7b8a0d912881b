"""Host-facing slice viewer sessions."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Dict, Iterator, Optional, Union

import numpy as np

from ..config import DEFAULT_CONFIG, ViewerConfig
from ..spaces import Plane, Space, SpaceResolver
from ..volume import VolumeModel
from .rasterizer import SliceRasterizer
from .view_state import ViewState

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedSlice:
    """One finished frame plus the state needed to caption it."""

    pixels: np.ndarray
    space: Space
    plane: Plane
    slice: int
    max_slice: int
    display_height: float

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def buffer(self) -> np.ndarray:
        """Flat RGBA view; pixel ``(x, y)`` starts at ``(y * width + x) * 4``."""
        return self.pixels.reshape(-1)

    @property
    def caption(self) -> str:
        return f"{self.plane.value.capitalize()} {self.slice}/{self.max_slice} ({self.space.value})"


PixelSink = Callable[[RenderedSlice], None]


class SliceViewer:
    """A single view over a loaded volume.

    Every state change repaints synchronously and hands the new frame to the
    attached sink.  No repaint is skipped, even when the state did not
    change.
    """

    def __init__(self, config: ViewerConfig = DEFAULT_CONFIG, sink: Optional[PixelSink] = None) -> None:
        self.config = config
        self.sink = sink
        self.volume: Optional[VolumeModel] = None
        self.state: Optional[ViewState] = None
        self._rasterizer: Optional[SliceRasterizer] = None
        self.frame: Optional[RenderedSlice] = None
        self.frame_count = 0

    def initialize(
        self,
        volume: VolumeModel,
        space: Union[Space, str, None] = None,
        plane: Union[Plane, str, None] = None,
    ) -> RenderedSlice:
        """Bind a fully loaded *volume* and paint the first frame."""
        resolver = SpaceResolver(volume, self.config)
        self.volume = volume
        self._rasterizer = SliceRasterizer(volume, self.config, resolver=resolver)
        self.state = ViewState(
            resolver,
            space=space or self.config.default_space,
            plane=plane or self.config.default_plane,
            on_change=self._repaint,
        )
        LOGGER.info("Viewer initialised with %r (%s)", volume, self.state)
        return self._repaint(self.state)

    def _require_state(self) -> ViewState:
        if self.state is None:
            raise RuntimeError("SliceViewer.initialize() must be called with a loaded volume first")
        return self.state

    def _repaint(self, state: ViewState) -> RenderedSlice:
        desc = self._rasterizer.resolver.resolve(state.space, state.plane)
        pixels = self._rasterizer.render(state.space, state.plane, state.slice, desc=desc)
        self.frame = RenderedSlice(
            pixels=pixels,
            space=state.space,
            plane=state.plane,
            slice=state.slice,
            max_slice=state.max_slice,
            display_height=desc.display_height,
        )
        self.frame_count += 1
        if callable(self.sink):
            self.sink(self.frame)
        return self.frame

    @property
    def rasterizer(self) -> SliceRasterizer:
        self._require_state()
        return self._rasterizer

    def set_plane(self, plane: Union[Plane, str]) -> None:
        self._require_state().set_plane(plane)

    def set_space(self, space: Union[Space, str]) -> None:
        self._require_state().set_space(space)

    def set_slice(self, slice_number: int) -> None:
        self._require_state().set_slice(slice_number)

    def next_slice(self) -> None:
        self._require_state().next_slice()

    def previous_slice(self) -> None:
        self._require_state().previous_slice()

    def render(self, sink: Optional[PixelSink] = None) -> RenderedSlice:
        """Deliver the current frame to *sink* (or the attached sink)."""
        self._require_state()
        target = sink or self.sink
        if callable(target):
            target(self.frame)
        return self.frame

    def sample_at(self, x: int, y: int):
        """Raw value behind pixel ``(x, y)`` of the current frame."""
        state = self._require_state()
        return self._rasterizer.sample(state.space, state.plane, state.slice, x, y)


class ViewerHost:
    """Collection of independent named views."""

    def __init__(self, config: ViewerConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self._views: Dict[str, SliceViewer] = {}

    def add_view(
        self,
        name: str,
        volume: VolumeModel,
        space: Union[Space, str, None] = None,
        plane: Union[Plane, str, None] = None,
        sink: Optional[PixelSink] = None,
    ) -> SliceViewer:
        if name in self._views:
            raise ValueError(f"A view named {name!r} already exists")
        viewer = SliceViewer(self.config, sink=sink)
        viewer.initialize(volume, space=space, plane=plane)
        self._views[name] = viewer
        return viewer

    def remove_view(self, name: str) -> None:
        self._views.pop(name, None)

    def __getitem__(self, name: str) -> SliceViewer:
        return self._views[name]

    def __contains__(self, name: str) -> bool:
        return name in self._views

    def __iter__(self) -> Iterator[str]:
        return iter(self._views)

    def __len__(self) -> int:
        return len(self._views)


__all__ = ["PixelSink", "RenderedSlice", "SliceViewer", "ViewerHost"]
