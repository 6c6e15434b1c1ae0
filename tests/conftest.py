from typing import List, Optional, Sequence

import pytest

from effort_predictor.points import Point, pairs_to_points
from effort_predictor.clusters.location_graph_data import LocationGraphData


def make_linear_pairs(point_count: int, slope: float) -> List[List[float]]:
    return [[x, slope * x] for x in range(1, point_count + 1)]


def make_graph_data(location_id: int, pairs: Sequence[Sequence[float]],
                    person_visit_pairs: Optional[Sequence[Sequence[float]]] = None,
                    visits_by_taxon_unique: Optional[dict] = None,
                    recent_taxa: Optional[List[List[str]]] = None) -> LocationGraphData:
    return LocationGraphData(
        location_id=location_id,
        locality_name=f"Location {location_id}",
        per_visit_points=pairs_to_points(pairs),
        per_person_visit_points=pairs_to_points(person_visit_pairs if person_visit_pairs is not None else pairs),
        visits_by_taxon_unique=visits_by_taxon_unique or {},
        recent_taxa=recent_taxa or []
    )


@pytest.fixture
def three_location_dataset() -> List[LocationGraphData]:
    """Flat, linear and superlinear curves, whose next deltas never change rank"""
    return [
        make_graph_data(1, [[x, 1] for x in range(1, 7)]),
        make_graph_data(2, make_linear_pairs(6, 3)),
        make_graph_data(3, [[x, x * x] for x in range(1, 7)]),
    ]


@pytest.fixture
def power_curve_points() -> List[Point]:
    return [Point(float(x), 2 * x ** 1.5) for x in range(1, 11)]
