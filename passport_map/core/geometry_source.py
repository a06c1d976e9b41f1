"""Geometry source - loads boundary polygons and the trail/anchor journal.

Boundary files are read with geopandas, so anything GDAL opens works:
GeoJSON, TopoJSON (one layer per topology object) or a shapefile.

Layer resolution: the first preferred layer name present in the file wins,
otherwise the first layer found.

Failure policy:
    - Low-level helpers raise GeometryLoadError / MalformedGeometryError.
    - load_geometry() never raises: a failed base layer leaves the map empty,
      a failed detail layer leaves the map without that detail. Both are logged.
    - Individual malformed features and journal records are skipped with a warning.
"""

import json
import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import fiona
import geopandas as gpd
from shapely.geometry import MultiPolygon, Polygon

from passport_map.constants import DataConfig
from passport_map.model.anchor import Anchor
from passport_map.model.boundary import BoundaryFeature, GeometrySet, Ring
from passport_map.model.geo_point import GeoPoint
from passport_map.model.trail import Trail, TrailCategory

logger = logging.getLogger(__name__)


class GeometryLoadError(Exception):
    """A boundary or journal file could not be read or parsed."""


class MalformedGeometryError(ValueError):
    """A geometry object does not have the expected structure."""


# =============================================================================
# BOUNDARIES
# =============================================================================


def select_layer(layers: Sequence[str], preferred_keys: Sequence[str]) -> str:
    """Pick the layer to read.

    Args:
        layers: Layer names in file order
        preferred_keys: Names tried in order

    Returns:
        The first preferred name present, else the first layer.

    Raises:
        MalformedGeometryError: If the file has no layers.
    """
    if not layers:
        raise MalformedGeometryError("Boundary file has no layers")
    for key in preferred_keys:
        if key in layers:
            return key
    first = layers[0]
    logger.info(f"No preferred layer {list(preferred_keys)}, using '{first}'")
    return first


def _first_existing_column(columns: Sequence[str], candidates: Sequence[str]) -> str | None:
    """First candidate present in columns, exact match before case-insensitive."""
    by_lower = {str(c).lower(): str(c) for c in columns}
    for candidate in candidates:
        if candidate in columns:
            return candidate
        match = by_lower.get(candidate.lower())
        if match is not None:
            return match
    return None


def _column_values(frame: gpd.GeoDataFrame, column: str | None) -> list[Any]:
    """Column as a list, missing values as None."""
    if column is None:
        return [None] * len(frame)
    present = frame[column].notna().tolist()
    return [value if ok else None for value, ok in zip(frame[column].tolist(), present)]


def _ring(coords: Sequence[Sequence[float]]) -> Ring:
    return tuple((float(c[0]), float(c[1])) for c in coords)


def rings_from_polygon(polygon: Polygon) -> tuple[Ring, ...]:
    """Exterior ring first, then the holes."""
    return (_ring(polygon.exterior.coords), *(_ring(hole.coords) for hole in polygon.interiors))


def _polygons(geometry: Any) -> list[Polygon]:
    if geometry is None or geometry.is_empty:
        return []
    if isinstance(geometry, Polygon):
        return [geometry]
    if isinstance(geometry, MultiPolygon):
        return list(geometry.geoms)
    raise MalformedGeometryError(f"Unsupported boundary geometry type: {geometry.geom_type}")


def features_from_frame(frame: gpd.GeoDataFrame, layer_name: str = "Boundary") -> list[BoundaryFeature]:
    """Convert a GeoDataFrame of (multi)polygons into boundary features.

    Multipolygons become one feature per polygon sharing the row's key.
    Rows without geometry are ignored; non-polygon rows are skipped with a warning.
    Projected frames are reprojected to WGS84 first.
    """
    if frame.crs is not None and not frame.crs.is_geographic:
        frame = frame.to_crs(epsg=4326)

    columns = list(frame.columns)
    keys = _column_values(frame, _first_existing_column(columns, DataConfig.KEY_PROPERTIES))
    names = _column_values(frame, _first_existing_column(columns, DataConfig.NAME_PROPERTIES))

    features: list[BoundaryFeature] = []
    skipped = 0
    for position, (index, geometry) in enumerate(frame.geometry.items()):
        key = str(keys[position]) if keys[position] is not None else str(index)
        name = str(names[position]) if names[position] else ""
        try:
            for polygon in _polygons(geometry):
                features.append(BoundaryFeature(key=key, name=name, rings=rings_from_polygon(polygon)))
        except (MalformedGeometryError, AttributeError, TypeError, ValueError, IndexError) as e:
            skipped += 1
            logger.warning(f"Skipping boundary '{key}' in {layer_name} layer: {e}")

    logger.info(f"Read {len(features)} polygons for {layer_name} layer ({skipped} skipped)")
    return features


def read_boundary_file(path: Path, preferred_keys: Sequence[str]) -> gpd.GeoDataFrame:
    """Read the preferred layer of a boundary file.

    Raises:
        GeometryLoadError: If GDAL cannot open or read the file.
        MalformedGeometryError: If the file has no layers.
    """
    try:
        layers = fiona.listlayers(str(path))
    except Exception as e:
        raise GeometryLoadError(f"Cannot open {path}: {e}") from e

    layer = select_layer(layers=list(layers), preferred_keys=preferred_keys)
    try:
        return gpd.read_file(path, layer=layer)
    except Exception as e:
        raise GeometryLoadError(f"Cannot read layer '{layer}' of {path}: {e}") from e


def load_boundary_layer(path: Path | None, preferred_keys: Sequence[str], layer_name: str) -> tuple[BoundaryFeature, ...]:
    """Load one boundary layer, returning an empty layer on any failure."""
    if path is None:
        return ()
    if not path.exists():
        logger.warning(f"{layer_name} data not found at {path}; layer left empty")
        return ()
    try:
        frame = read_boundary_file(path=path, preferred_keys=preferred_keys)
        return tuple(features_from_frame(frame, layer_name=layer_name))
    except (GeometryLoadError, MalformedGeometryError, AttributeError, KeyError, TypeError, ValueError, IndexError) as e:
        logger.error(f"Failed to load {layer_name} layer: {e}")
        return ()


def load_geometry(
    world_path: Path | None = DataConfig.WORLD_PATH,
    subdivision_path: Path | None = DataConfig.SUBDIVISION_PATH,
    fine_subdivision_path: Path | None = DataConfig.FINE_SUBDIVISION_PATH,
) -> GeometrySet:
    """Load base and detail boundaries; never raises.

    Args:
        world_path: Country boundaries (required for a visible base map)
        subdivision_path: State/province boundaries (optional detail)
        fine_subdivision_path: Finer regional boundaries for deep zoom (optional)

    Returns:
        GeometrySet, with empty layers for anything that failed to load.
    """
    countries = load_boundary_layer(
        path=world_path, preferred_keys=DataConfig.WORLD_OBJECT_KEYS, layer_name="Country"
    )
    subdivisions = load_boundary_layer(
        path=subdivision_path, preferred_keys=DataConfig.SUBDIVISION_OBJECT_KEYS, layer_name="Subdivision"
    )
    fine_subdivisions = load_boundary_layer(
        path=fine_subdivision_path,
        preferred_keys=DataConfig.FINE_SUBDIVISION_OBJECT_KEYS,
        layer_name="Fine subdivision",
    )
    return GeometrySet(countries=countries, subdivisions=subdivisions, fine_subdivisions=fine_subdivisions)


# =============================================================================
# JOURNAL (TRAILS + ANCHORS)
# =============================================================================


def read_json(path: Path) -> Any:
    """Read a JSON file, wrapping I/O and parse errors."""
    try:
        with open(path, encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise GeometryLoadError(f"Cannot read {path}: {e}") from e


def parse_trail(record: dict[str, Any]) -> Trail:
    """Build a Trail from a journal record.

    Raises:
        MalformedGeometryError: On a non-object record, missing id, unknown
            category or bad coordinates.
    """
    if not isinstance(record, dict):
        raise MalformedGeometryError(f"Trail record is not an object: {record!r}")
    if "id" not in record:
        raise MalformedGeometryError(f"Trail record without id: {sorted(record)}")
    try:
        category = TrailCategory(record["type"])
    except (KeyError, ValueError) as e:
        raise MalformedGeometryError(f"Trail {record.get('id')!r} has invalid type: {e}") from e
    try:
        points = tuple(GeoPoint.from_lon_lat(c) for c in record["coordinates"])
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedGeometryError(f"Trail {record.get('id')!r} has invalid coordinates: {e}") from e

    distance = record.get("distance")
    try:
        distance_km = float(distance) if distance is not None else None
    except (TypeError, ValueError) as e:
        raise MalformedGeometryError(f"Trail {record.get('id')!r} has invalid distance: {e}") from e

    return Trail(
        id=str(record["id"]),
        category=category,
        points=points,
        name=record.get("name", ""),
        date=record.get("date", ""),
        distance_km=distance_km,
    )


def parse_anchor(record: dict[str, Any]) -> Anchor:
    """Build an Anchor from a journal record."""
    if not isinstance(record, dict):
        raise MalformedGeometryError(f"Anchor record is not an object: {record!r}")
    try:
        location = GeoPoint.from_lon_lat(record["coordinate"])
        return Anchor(
            id=str(record["id"]),
            location=location,
            title=record["title"],
            timestamp=record.get("date", ""),
            note=record.get("note", ""),
            image_ref=record.get("imageUrl"),
            location_name=record.get("locationName"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedGeometryError(f"Anchor {record.get('id')!r} is malformed: {e}") from e


def _parse_records(records: Any, parser: Callable[[dict[str, Any]], Any], kind: str) -> list[Any]:
    if not isinstance(records, list):
        logger.error(f"Journal {kind} section is not a list; ignored")
        return []
    parsed = []
    for record in records:
        try:
            parsed.append(parser(record))
        except MalformedGeometryError as e:
            logger.warning(f"Skipping {kind}: {e}")
    return parsed


def load_journal(path: Path = DataConfig.JOURNAL_PATH) -> tuple[list[Trail], list[Anchor]]:
    """Load trails and anchors; an unreadable journal yields empty lists.

    Anchors with a duplicate id are dropped (first one wins) so that ids stay
    unique within the anchor set.
    """
    try:
        document = read_json(path)
    except GeometryLoadError as e:
        logger.error(f"Failed to load journal: {e}")
        return [], []
    if not isinstance(document, dict):
        logger.error(f"Journal {path} is not a JSON object")
        return [], []

    trails = _parse_records(document.get("trails", []), parse_trail, "trail")
    anchors: list[Anchor] = []
    seen: set[str] = set()
    for anchor in _parse_records(document.get("anchors", []), parse_anchor, "anchor"):
        if anchor.id in seen:
            logger.warning(f"Duplicate anchor id '{anchor.id}' dropped")
            continue
        seen.add(anchor.id)
        anchors.append(anchor)

    logger.info(f"Loaded journal: {len(trails)} trails, {len(anchors)} anchors")
    return trails, anchors
