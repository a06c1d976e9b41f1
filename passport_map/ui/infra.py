"""Streamlit infrastructure wrappers.

st.rerun() and the map component version live here so callers (the
selection listener, the sidebar buttons, app.py) can be tested by patching
one module instead of every call site.
"""

import logging

import streamlit as st

logger = logging.getLogger(__name__)

MAP_VERSION_KEY = "map_version"
CLICK_MODE_KEY = "click_mode"


def trigger_rerun() -> None:
    """Rerun the script. Raises Streamlit's StopExecution/RerunException.

    Tests patch 'passport_map.ui.infra.trigger_rerun'.
    """
    st.rerun()


def bump_map_version() -> int:
    """Give the deck component a fresh key.

    A remounted st_deckgl has no memory of its last click event, so a click
    that was already handled cannot be reported again after a rerun.

    Returns:
        The new version.
    """
    old_version = st.session_state.get(MAP_VERSION_KEY, 0)
    st.session_state[MAP_VERSION_KEY] = old_version + 1
    logger.info(f"[MAP] Bumped map_version: {old_version} -> {old_version + 1}")
    return old_version + 1


def map_component_key(prefix: str = "passport_map") -> str:
    """Component key for the current map version."""
    return f"{prefix}_{st.session_state.get(MAP_VERSION_KEY, 0)}"


def refresh_map() -> None:
    """Clear stale click state and rerun."""
    bump_map_version()
    trigger_rerun()
