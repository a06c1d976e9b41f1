"""Passport Map - Trails and memories on an endlessly wrapping world map.

Draws country/state boundaries, recorded trails and memory anchors with
pydeck, and resolves clicks against the frame that was painted.

Run: streamlit run passport_map/app.py
"""

import logging
import traceback

import streamlit as st

from passport_map.constants import AppConfig, DataConfig, MapConfig
from passport_map.core.geometry_source import load_geometry, load_journal
from passport_map.core.viewport import ViewportController
from passport_map.model.boundary import GeometrySet
from passport_map.ui import (
    LayerRenderer,
    PointerHandler,
    SelectionStateMachine,
    SidebarRenderer,
    Theme,
    ThemeStore,
    build_deck,
    render_detail_panel,
    render_map,
)
from passport_map.ui import infra
from passport_map.ui.infra import CLICK_MODE_KEY, MAP_VERSION_KEY, map_component_key
from passport_map.ui.pointer_handler import ClickMode, dispatch_click

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# =============================================================================
# DATA
# =============================================================================


@st.cache_resource(show_spinner=False)
def _load_geometry_cached() -> GeometrySet:
    return load_geometry(
        world_path=DataConfig.WORLD_PATH,
        subdivision_path=DataConfig.SUBDIVISION_PATH,
        fine_subdivision_path=DataConfig.FINE_SUBDIVISION_PATH,
    )


@st.cache_resource(show_spinner=False)
def _load_journal_cached() -> tuple[list, list]:
    return load_journal(path=DataConfig.JOURNAL_PATH)


# =============================================================================
# SESSION STATE
# =============================================================================


def init_session_state() -> None:
    """Create per-session controller, selection machine and stores."""
    if "controller" not in st.session_state:
        st.session_state.controller = ViewportController(
            width=MapConfig.DEFAULT_WIDTH_PX,
            height=MapConfig.DEFAULT_HEIGHT_PX,
        )

    if "theme_store" not in st.session_state:
        st.session_state.theme_store = ThemeStore()

    if "journal" not in st.session_state:
        st.session_state.journal = _load_journal_cached()

    if "state_machine" not in st.session_state:
        trails, anchors = st.session_state.journal
        sm, ctx = SelectionStateMachine.create(anchors=anchors, trails=trails)
        st.session_state.state_machine = sm
        st.session_state.selection_context = ctx

    if MAP_VERSION_KEY not in st.session_state:
        st.session_state[MAP_VERSION_KEY] = 0


def reset_ui_state() -> None:
    """Fresh selection machine and view after an error; loaded data is kept."""
    logger.info("Resetting UI state due to error recovery")
    trails, anchors = st.session_state.journal
    sm, ctx = SelectionStateMachine.create(anchors=anchors, trails=trails)
    st.session_state.state_machine = sm
    st.session_state.selection_context = ctx
    st.session_state.controller = ViewportController(
        width=MapConfig.DEFAULT_WIDTH_PX,
        height=MapConfig.DEFAULT_HEIGHT_PX,
    )
    st.session_state[MAP_VERSION_KEY] = st.session_state.get(MAP_VERSION_KEY, 0) + 1
    logger.info("UI state reset complete - journal preserved")


def load_geometry_data() -> bool:
    """Load boundaries once per session. Returns True when loaded.

    The first run paints the background-only loading frame, then loads and
    reruns.
    """
    if st.session_state.get("geometry") is not None:
        return True

    controller: ViewportController = st.session_state.controller
    theme = Theme.for_mode(st.session_state.theme_store.load())
    loading_scene = LayerRenderer(geometry=None).render(
        view_state=controller.view_state, viewport=controller.viewport, theme=theme
    )
    st.pydeck_chart(build_deck(loading_scene), height=int(loading_scene.height))

    with st.spinner("Loading world boundaries..."):
        try:
            st.session_state.geometry = _load_geometry_cached()
        except Exception as e:
            logger.error(f"[LOAD] Boundary loading failed: {type(e).__name__}: {e}\n{traceback.format_exc()}")
            st.warning("⚠️ World boundaries could not be loaded; showing trails and memories only.")
            st.session_state.geometry = GeometrySet()
    st.rerun()  # Raises StopExecution, never returns


# =============================================================================
# MAP
# =============================================================================


def _render_map() -> None:
    """Render the map and the detail panel, catching unexpected errors."""
    try:
        _render_map_inner()
    except Exception as e:
        error_msg = f"{type(e).__name__}: {e}"
        logger.error(f"[RENDER] Map error caught: {error_msg}\n{traceback.format_exc()}")
        st.error(f"⚠️ [RENDER] Something went wrong: {error_msg}")
        reset_ui_state()
        if st.button("🔄 Reset and Continue", type="primary"):
            st.rerun()


def _render_map_inner() -> None:
    controller: ViewportController = st.session_state.controller
    sm: SelectionStateMachine = st.session_state.state_machine
    trails, anchors = st.session_state.journal
    theme = Theme.for_mode(st.session_state.theme_store.load())

    view_state = controller.view_state
    viewport = controller.viewport
    logger.info(f"[RENDER] state={sm.get_state_name()}, view={view_state}, map_version={st.session_state[MAP_VERSION_KEY]}")

    renderer = LayerRenderer(geometry=st.session_state.geometry, trails=trails, anchors=anchors)
    selected = sm.context.selected_anchor
    scene = renderer.render(
        view_state=view_state,
        viewport=viewport,
        theme=theme,
        hovered_anchor_id=selected.id if selected else None,
    )

    col_map, col_panel = st.columns([3, 1])
    with col_map:
        click = render_map(deck=build_deck(scene), key=map_component_key(), height=int(viewport.height))
    with col_panel:
        render_detail_panel(sm=sm)

    if click.is_click:
        # Resolve against the same view the scene was painted with
        handler = PointerHandler(anchors=anchors, trails=trails, listener=sm)
        mode = ClickMode(st.session_state.get(CLICK_MODE_KEY, ClickMode.SELECT))
        if dispatch_click(
            mode=mode,
            screen_point=click.screen_point,
            controller=controller,
            handler=handler,
            view_state=scene.view_state,
        ):
            infra.refresh_map()


# =============================================================================
# MAIN
# =============================================================================


def main() -> None:
    """Application entry point."""
    st.set_page_config(page_title=AppConfig.TITLE, page_icon=AppConfig.ICON, layout=AppConfig.LAYOUT)
    init_session_state()

    st.title(AppConfig.TITLE)

    trails, anchors = st.session_state.journal
    SidebarRenderer(
        controller=st.session_state.controller,
        theme_store=st.session_state.theme_store,
    ).render(trail_count=len(trails), anchor_count=len(anchors))

    if not load_geometry_data():
        return

    _render_map()


if __name__ == "__main__":
    main()
