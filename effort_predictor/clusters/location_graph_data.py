"""
LocationGraphData captures the effort curves of a single location along with
the predictions made for it. Records are built fresh for each analysis.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from effort_predictor.points import Point, pairs_to_points
from effort_predictor.clusters.config import MAX_VISITS_DOCKED


class EffortFlags(IntFlag):
    MISSING_DATE = 0x01
    MISSING_MONTH = 0x02
    MISSING_DAY_OF_MONTH = 0x04
    MULTI_DAY_PERSON_VISIT = 0x08
    TRAP = 0x10


@dataclass
class LocationGraphData:
    location_id: int
    locality_name: str
    county_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    flags: EffortFlags = EffortFlags(0)
    per_day_points: List[Point] = field(default_factory=list)
    per_visit_points: List[Point] = field(default_factory=list)
    per_person_visit_points: List[Point] = field(default_factory=list)
    # Overwritten by each backtest trial, then with the forward prediction
    predicted_per_visit_diff: Optional[float] = None
    predicted_per_person_visit_diff: Optional[float] = None
    visits_by_taxon_unique: Dict[str, int] = field(default_factory=dict)
    # Taxa first found on each recent visit, oldest visit first
    recent_taxa: List[List[str]] = field(default_factory=list)


PointExtractor = Callable[[LocationGraphData], List[Point]]

POINT_EXTRACTORS: Dict[str, PointExtractor] = {
    'per_day': lambda graph_data: graph_data.per_day_points,
    'per_visit': lambda graph_data: graph_data.per_visit_points,
    'per_person_visit': lambda graph_data: graph_data.per_person_visit_points,
}


def parse_recent_taxa(recent_taxa: Optional[str]) -> List[List[str]]:
    """Split 'a|b#c#' style recent taxa into per-visit lists of taxa"""
    if recent_taxa is None:
        return []
    return [visit_taxa.split('|') if visit_taxa else [] for visit_taxa in recent_taxa.split('#')]


def _to_points(raw_points: Union[str, Sequence[Sequence[float]], None]) -> List[Point]:
    if raw_points is None:
        return []
    if isinstance(raw_points, str):
        raw_points = json.loads(raw_points) if raw_points else []
    return pairs_to_points(raw_points)


def to_location_graph_data(raw_location_effort: Dict[str, Any]) -> LocationGraphData:
    """Convert one raw location effort record (camelCase keys) into graph data"""
    try:
        location_id = raw_location_effort['locationID']
    except KeyError:
        raise ValueError("Location effort record lacks a 'locationID'")

    recent_taxa = raw_location_effort.get('recentTaxa')
    if isinstance(recent_taxa, str) or recent_taxa is None:
        recent_taxa = parse_recent_taxa(recent_taxa)
    if len(recent_taxa) > MAX_VISITS_DOCKED:
        logging.debug(f"Keeping the last {MAX_VISITS_DOCKED} of {len(recent_taxa)} recent visits "
                      f"of location {location_id}")
        recent_taxa = recent_taxa[-MAX_VISITS_DOCKED:]

    graph_data = LocationGraphData(
        location_id=location_id,
        locality_name=raw_location_effort.get('localityName') or str(location_id),
        county_name=raw_location_effort.get('countyName'),
        latitude=raw_location_effort.get('latitude'),
        longitude=raw_location_effort.get('longitude'),
        flags=EffortFlags(int(raw_location_effort.get('flags') or 0)),
        per_day_points=_to_points(raw_location_effort.get('perDayPoints')),
        per_visit_points=_to_points(raw_location_effort.get('perVisitPoints')),
        per_person_visit_points=_to_points(raw_location_effort.get('perPersonVisitPoints')),
        visits_by_taxon_unique=dict(raw_location_effort.get('visitsByTaxonUnique') or {}),
        recent_taxa=[list(visit_taxa) for visit_taxa in recent_taxa]
    )
    if not graph_data.per_visit_points:
        logging.warning(f"Location {location_id} has no per-visit points")
    return graph_data


def to_location_graph_data_set_by_cluster(
        raw_location_effort_set_by_cluster: Sequence[Sequence[Dict[str, Any]]]) -> List[List[LocationGraphData]]:
    return [
        [to_location_graph_data(raw_location_effort) for raw_location_effort in raw_location_effort_set]
        for raw_location_effort_set in raw_location_effort_set_by_cluster
    ]
