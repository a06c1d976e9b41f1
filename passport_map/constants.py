"""Configuration constants for Passport Map.

All configurable parameters are centralized here for easy tuning.

Classes:
    AppConfig: UI application settings
    MapConfig: Mercator domain and default viewport size
    ViewConfig: Zoom limits and gesture step sizes
    LODConfig: Level-of-detail thresholds for secondary layers
    HitConfig: Hit-testing radii and tolerances
    StyleConfig: Colors, opacities and stroke widths
    ThemeConfig: Light/dark palettes and persisted preference key
    DataConfig: Boundary and journal file locations
"""

from pathlib import Path

# Package root directory (where passport_map/ lives)
PACKAGE_DIR = Path(__file__).parent

# Project root directory (parent of passport_map/)
PROJECT_ROOT = PACKAGE_DIR.parent

# Data directory outside package (downloaded separately, not shipped with package)
DATA_DIR = PROJECT_ROOT / "data"

# Output directory for persisted preferences
OUTPUT_DIR = PROJECT_ROOT / "output"


class AppConfig:
    """UI application settings."""

    TITLE = "Passport Map - Trails & Memories"
    ICON = "🧭"
    LAYOUT = "wide"


class MapConfig:
    """Projection domain and default viewport."""

    # Web Mercator latitude limit; beyond this the projection is undefined for display
    MAX_LATITUDE = 85.05112878

    # Default map pixel size (Streamlit cannot report the real container width)
    DEFAULT_WIDTH_PX = 1000
    DEFAULT_HEIGHT_PX = 640

    # Longitude jumps larger than this between consecutive projected points mark the seam
    SEAM_JUMP_FRACTION = 0.5  # fraction of the on-screen world width


class ViewConfig:
    """Zoom limits and gesture step sizes."""

    K_MIN = 1.0
    K_MAX = 20.0  # Use DEEP_K_MAX for street-level trail inspection
    DEEP_K_MAX = 1000.0

    ZOOM_STEP_FACTOR = 1.5  # Multiplicative factor for zoom in/out buttons
    PAN_STEP_FRACTION = 0.25  # Fraction of viewport per pan button press

    assert K_MIN >= 1.0, "Below k=1 the world strip no longer covers the viewport"
    assert K_MIN < K_MAX <= DEEP_K_MAX


class LODConfig:
    """Level-of-detail policy for boundary layers."""

    # Subdivisions (states/provinces) are hidden below this zoom, shown at or above it
    SUBDIVISION_MIN_K = 2.0

    # Subdivisions fade in over this zoom span once visible
    SUBDIVISION_FADE_START_OPACITY = 0.4
    SUBDIVISION_FADE_SPAN_K = 1.0

    # Fine subdivisions (e.g. US states) appear only deeper in, without a fade
    FINE_SUBDIVISION_MIN_K = 5.0

    assert ViewConfig.K_MIN <= SUBDIVISION_MIN_K <= FINE_SUBDIVISION_MIN_K <= ViewConfig.K_MAX
    assert 0.0 < SUBDIVISION_FADE_START_OPACITY <= 1.0


class HitConfig:
    """Pointer hit-testing thresholds."""

    ANCHOR_RADIUS_PX = 20.0  # Strictly closer than this selects an anchor
    TRAIL_TOLERANCE_KM = 0.15  # 150 m: the pointer is "on" the trail
    ANCHOR_TRAIL_RADIUS_KM = 5.0  # Trails listed when viewing activity around an anchor


class StyleConfig:
    """Visual colors and styling."""

    # Trail colors by category (Tailwind CSS palette)
    TRAIL_COLORS = {
        "Run": "#3B82F6",  # blue-500
        "Ride": "#F97316",  # orange-500
        "Hike": "#22C55E",  # green-500
    }
    TRAIL_FALLBACK_COLOR = "#3B82F6"

    TRAIL_OPACITY = 0.3  # Low opacity so repeated routes accumulate
    TRAIL_BASE_WIDTH_PX = 1.5  # Divided by sqrt(k)
    TRAIL_MIN_WIDTH_PX = 0.5

    # Boundary stroke in world units; screen width is k times this
    BOUNDARY_MAX_STROKE = 0.5

    # Anchor markers (screen pixels, independent of zoom)
    ANCHOR_RADIUS_PX = 5.0
    ANCHOR_HOVER_RADIUS_PX = 8.0
    ANCHOR_HALO_OFFSET_PX = 6.0
    ANCHOR_HALO_OPACITY = 0.2
    ANCHOR_OUTLINE_WIDTH_PX = 2.0
    ANCHOR_COLOR = "#3B82F6"
    ANCHOR_OUTLINE_COLOR = "#FFFFFF"

    assert ANCHOR_HOVER_RADIUS_PX > ANCHOR_RADIUS_PX
    assert 0.0 < TRAIL_OPACITY < 1.0


class ThemeConfig:
    """Light/dark palettes and the persisted theme preference."""

    # Fixed key for the single persisted boolean
    PREFERENCE_KEY = "passport_map.dark_mode"
    PREFERENCES_PATH = OUTPUT_DIR / "preferences.json"

    LIGHT = {
        "background": "#F8FAFC",  # slate-50 (ocean)
        "land": "#FFFFFF",
        "boundary": "#E5E7EB",  # gray-200
        "subdivision": "#D1D5DB",  # gray-300
        "trail_blend": "multiply",
    }
    DARK = {
        "background": "#0F172A",  # slate-900
        "land": "#1E293B",  # slate-800
        "boundary": "#334155",  # slate-700
        "subdivision": "#475569",  # slate-600
        "trail_blend": "additive",
    }
    assert set(LIGHT.keys()) == set(DARK.keys())


class DataConfig:
    """Boundary and journal data locations."""

    WORLD_PATH = DATA_DIR / "ne_10m_admin_0_countries.json"
    SUBDIVISION_PATH = DATA_DIR / "ne_10m_admin_1_states_provinces.json"
    FINE_SUBDIVISION_PATH = DATA_DIR / "us_states.json"
    JOURNAL_PATH = PACKAGE_DIR / "sample_journal.json"

    # Layer names (TopoJSON object keys) tried in order before falling back to the first layer
    WORLD_OBJECT_KEYS = ("countries", "land")
    SUBDIVISION_OBJECT_KEYS = ("subdivisions", "admin1")
    FINE_SUBDIVISION_OBJECT_KEYS = ("states",)

    # Columns tried in order for a feature key; the row index is the fallback
    KEY_PROPERTIES = ("id", "iso_a3", "adm1_code", "postal")

    # Property names tried in order for a feature's display name
    NAME_PROPERTIES = ("name", "NAME", "name_en", "NAME_EN", "admin")
