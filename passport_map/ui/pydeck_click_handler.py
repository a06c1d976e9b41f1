"""Map component wrapper using streamlit-deckgl.

st_deckgl returns the raw deck.gl onClick event for every click, including
clicks on empty map, which st.pydeck_chart does not. The deck built by
deck_builder uses an OrthographicView in pixel units, so the event's
'coordinate' is the screen point of the click inside the map.

Object properties of a picked feature are spread into the event dict
(there is no 'object' key). Our layers tag their data with 'type' and 'id'.
"""

import logging
from dataclasses import dataclass
from typing import Any

import pydeck as pdk
import streamlit as st
from streamlit_deckgl import st_deckgl  # type: ignore[import-untyped]

from passport_map.core.projection import ScreenPoint

logger = logging.getLogger(__name__)

_EVENT_META_KEYS = ("coordinate", "eventType", "pixel", "layer", "index")


@dataclass
class MapClickResult:
    """One new click on the map component.

    Attributes:
        screen_point: (x, y) of the click in map pixels, None if no click
        picked: Picked object data ('type', 'id', ...) or None
    """

    screen_point: ScreenPoint | None
    picked: dict[str, Any] | None = None

    @property
    def is_click(self) -> bool:
        return self.screen_point is not None

    @staticmethod
    def empty() -> "MapClickResult":
        return MapClickResult(screen_point=None, picked=None)


def parse_click_event(event: Any) -> MapClickResult:
    """Extract the screen point and any picked object from an st_deckgl event."""
    if not isinstance(event, dict) or not event:
        return MapClickResult.empty()

    screen_point: ScreenPoint | None = None
    coord = event.get("coordinate")
    if isinstance(coord, (list, tuple)) and len(coord) >= 2 and coord[0] is not None and coord[1] is not None:
        screen_point = (float(coord[0]), float(coord[1]))

    picked: dict[str, Any] | None = None
    if event.get("type") and event.get("type") != "click":
        picked = {k: v for k, v in event.items() if k not in _EVENT_META_KEYS}

    if screen_point is None:
        return MapClickResult.empty()
    return MapClickResult(screen_point=screen_point, picked=picked)


def click_id(result: MapClickResult) -> str:
    """Identity of a click for deduplication across reruns."""
    if result.screen_point is None:
        return ""
    x, y = result.screen_point
    return f"{x:.2f}_{y:.2f}"


def render_map(deck: pdk.Deck, key: str, height: int) -> MapClickResult:
    """Show the deck and return a click not yet handled on a previous rerun.

    Args:
        deck: Deck from deck_builder.build_deck()
        key: Component key (changes with the map version)
        height: Height in pixels

    Returns:
        MapClickResult; empty when there was no new click.
    """
    last_click_key = f"_deckgl_last_click_{key}"
    if last_click_key not in st.session_state:
        st.session_state[last_click_key] = None

    # events=["click"] is required for st_deckgl to report clicks at all
    event = st_deckgl(deck, key=key, height=height, events=["click"])
    result = parse_click_event(event)
    if not result.is_click:
        return MapClickResult.empty()

    # The component keeps returning its last event on every rerun
    this_click = click_id(result)
    if this_click == st.session_state.get(last_click_key):
        return MapClickResult.empty()
    st.session_state[last_click_key] = this_click

    logger.debug(f"[MAP] Click at {result.screen_point}, picked={result.picked}")
    return result
