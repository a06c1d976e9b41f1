"""Selection state machine for the detail panels.

Uses python-statemachine with the model pattern: SelectionContext holds the
data, the machine holds the workflow. The machine is also the
SelectionListener the PointerHandler reports to, so a click turns directly
into a transition.

States:
    IDLE: No panel open
    ANCHOR_OPEN: Anchor detail panel (title, date, note, prev/next)
    TRAILS_OPEN: Trail list for a clicked location or for an anchor's area

Transitions:
    * -> ANCHOR_OPEN: select_anchor (click on an anchor)
    * -> TRAILS_OPEN: select_trails (click on one or more trails)
    ANCHOR_OPEN -> ANCHOR_OPEN: next_anchor, prev_anchor (wrap around the list)
    ANCHOR_OPEN -> TRAILS_OPEN: view_anchor_trails (activities near the anchor)
    ANCHOR_OPEN/TRAILS_OPEN -> IDLE: close

Side effects (log, fresh map component, rerun) are handled by
StreamlitSelectionListener.after_transition(), which is only attached
in the running app.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from passport_map.constants import HitConfig
from passport_map.core.hit_tester import trails_near_anchor
from passport_map.model.anchor import Anchor
from passport_map.model.trail import Trail
from passport_map.ui import infra

logger = logging.getLogger(__name__)


@dataclass
class TrailSelection:
    """Trails listed in the trails panel and where they were picked."""

    trail_ids: list[str] = field(default_factory=list)
    lat: float | None = None
    lon: float | None = None
    source_anchor_id: str | None = None  # Set when opened from an anchor panel

    def clear(self) -> None:
        self.trail_ids = []
        self.lat = None
        self.lon = None
        self.source_anchor_id = None


@dataclass
class SelectionContext:
    """Shared model for the selection machine.

    Note: 'state' is managed by python-statemachine (model pattern).
    """

    state: str | None = None

    anchors: list[Anchor] = field(default_factory=list)
    trails: list[Trail] = field(default_factory=list)

    anchor_id: str | None = None
    trail_selection: TrailSelection = field(default_factory=TrailSelection)

    def anchor_index(self, anchor_id: str) -> int:
        for i, anchor in enumerate(self.anchors):
            if anchor.id == anchor_id:
                return i
        raise KeyError(f"Unknown anchor '{anchor_id}'")

    @property
    def selected_anchor(self) -> Anchor | None:
        if self.anchor_id is None:
            return None
        return self.anchors[self.anchor_index(self.anchor_id)]

    @property
    def selected_trails(self) -> list[Trail]:
        by_id = {t.id: t for t in self.trails}
        return [by_id[tid] for tid in self.trail_selection.trail_ids if tid in by_id]

    def clear(self) -> None:
        self.anchor_id = None
        self.trail_selection.clear()

    def __repr__(self) -> str:
        return (
            f"SelectionContext(state={self.state}, anchor={self.anchor_id}, "
            f"trails={len(self.trail_selection.trail_ids)})"
        )


class StreamlitSelectionListener:
    """Refreshes the map after every selection change.

    Usage:
        sm = SelectionStateMachine(context=context)
        sm.add_listener(StreamlitSelectionListener())
    """

    def after_transition(self, event: str, source: State, target: State) -> None:
        logger.info(f"[STATE] {source.name} --({event})--> {target.name}")
        infra.refresh_map()


class SelectionStateMachine(StateMachine):
    """Workflow behind the anchor and trail detail panels."""

    idle = State("Idle", initial=True)
    anchor_open = State("AnchorOpen")
    trails_open = State("TrailsOpen")

    select_anchor = idle.to(anchor_open) | anchor_open.to(anchor_open) | trails_open.to(anchor_open)
    select_trails = idle.to(trails_open) | anchor_open.to(trails_open) | trails_open.to(trails_open)

    next_anchor = anchor_open.to(anchor_open)
    prev_anchor = anchor_open.to(anchor_open)
    view_anchor_trails = anchor_open.to(trails_open)

    close = anchor_open.to(idle) | trails_open.to(idle)

    def __init__(self, context: SelectionContext | None = None, start_value: str | None = None) -> None:
        """Initialize with the model pattern.

        Args:
            context: Shared model (creates an empty one if None)
            start_value: Optional initial state value (for restoring state)
        """
        super().__init__(model=context or SelectionContext(), start_value=start_value)

    @property
    def context(self) -> SelectionContext:
        return self.model

    # ==========================================================================
    # State checks
    # ==========================================================================

    @property
    def is_idle(self) -> bool:
        return self.idle.is_active

    @property
    def is_anchor_open(self) -> bool:
        return self.anchor_open.is_active

    @property
    def is_trails_open(self) -> bool:
        return self.trails_open.is_active

    def anchor_position(self) -> tuple[int, int]:
        """1-based position of the open anchor and the anchor count."""
        if self.context.anchor_id is None:
            return 0, len(self.context.anchors)
        return self.context.anchor_index(self.context.anchor_id) + 1, len(self.context.anchors)

    # ==========================================================================
    # SelectionListener
    # ==========================================================================

    def on_anchor_selected(self, anchor: Anchor) -> None:
        self.select_anchor(anchor_id=anchor.id)

    def on_trails_selected(self, trails: list[Trail], lat: float, lon: float) -> None:
        self.select_trails(trail_ids=[t.id for t in trails], lat=lat, lon=lon)

    # ==========================================================================
    # Transition actions
    # ==========================================================================

    def before_select_anchor(self, anchor_id: str) -> None:
        self.context.anchor_index(anchor_id)  # raises KeyError for unknown ids
        self.context.trail_selection.clear()
        self.context.anchor_id = anchor_id

    def before_select_trails(self, trail_ids: Sequence[str], lat: float | None = None, lon: float | None = None) -> None:
        self.context.anchor_id = None
        selection = self.context.trail_selection
        selection.trail_ids = list(trail_ids)
        selection.lat = lat
        selection.lon = lon
        selection.source_anchor_id = None

    def before_next_anchor(self) -> None:
        self._step_anchor(+1)

    def before_prev_anchor(self) -> None:
        self._step_anchor(-1)

    def _step_anchor(self, step: int) -> None:
        ctx = self.context
        index = (ctx.anchor_index(ctx.anchor_id) + step) % len(ctx.anchors)
        ctx.anchor_id = ctx.anchors[index].id

    def before_view_anchor_trails(self, radius_km: float = HitConfig.ANCHOR_TRAIL_RADIUS_KM) -> None:
        anchor = self.context.selected_anchor
        nearby = trails_near_anchor(anchor=anchor, trails=self.context.trails, radius_km=radius_km)
        logger.info(f"{len(nearby)} trail(s) within {radius_km} km of anchor {anchor.id}")
        selection = self.context.trail_selection
        selection.trail_ids = [t.id for t in nearby]
        selection.lat = anchor.location.lat
        selection.lon = anchor.location.lon
        selection.source_anchor_id = anchor.id
        self.context.anchor_id = None

    def on_enter_idle(self) -> None:
        self.context.clear()

    # ==========================================================================
    # Utility
    # ==========================================================================

    def get_state_name(self) -> str:
        return self.states_map[self.current_state_value].name

    def try_transition(self, event: str, **kwargs: Any) -> bool:
        """Send an event, returning False instead of raising if not allowed."""
        try:
            self.send(event, **kwargs)
            return True
        except TransitionNotAllowed:
            logger.warning(f"Transition '{event}' not allowed from {self.get_state_name()}")
            return False

    def __repr__(self) -> str:
        return f"SelectionStateMachine(state={self.get_state_name()}, model={self.context!r})"

    @staticmethod
    def create(
        anchors: Sequence[Anchor],
        trails: Sequence[Trail],
        add_ui_listener: bool = True,
    ) -> tuple["SelectionStateMachine", SelectionContext]:
        """Create a machine over the loaded journal.

        Args:
            anchors: Anchors in navigation order
            trails: All trails (for the anchor's nearby-activity list)
            add_ui_listener: Attach StreamlitSelectionListener. False for tests.

        Returns:
            Tuple of (SelectionStateMachine, SelectionContext)
        """
        context = SelectionContext(anchors=list(anchors), trails=list(trails))
        sm = SelectionStateMachine(context=context)
        if add_ui_listener:
            sm.add_listener(StreamlitSelectionListener())
        logger.info(f"Created SelectionStateMachine over {len(context.anchors)} anchors, {len(context.trails)} trails")
        return sm, context
