import pytest

from effort_predictor.points import Point
from effort_predictor.clusters.location_graph_data import (
    POINT_EXTRACTORS,
    EffortFlags,
    parse_recent_taxa,
    to_location_graph_data,
    to_location_graph_data_set_by_cluster,
)

RAW_LOCATION = {
    'locationID': 7,
    'localityName': 'Long Cave',
    'countyName': 'Pima',
    'latitude': 32.1,
    'longitude': -110.9,
    'flags': 0x09,
    'perDayPoints': [[1, 2], [2, 3]],
    'perVisitPoints': '[[1, 2], [2, 4], [3, 5]]',
    'perPersonVisitPoints': [[1, 2], [3, 5]],
    'visitsByTaxonUnique': {'a': 2, 'b': 1},
    'recentTaxa': 'a|b#b',
}


class TestParseRecentTaxa:
    """Test splitting of recent taxa strings."""

    def test_visits_and_taxa(self):
        assert parse_recent_taxa('a|b#c') == [['a', 'b'], ['c']]

    def test_visit_without_new_taxa(self):
        assert parse_recent_taxa('a##b') == [['a'], [], ['b']]

    def test_none(self):
        assert parse_recent_taxa(None) == []


class TestToLocationGraphData:
    """Test conversion of raw location records."""

    def test_full_record(self):
        graph_data = to_location_graph_data(RAW_LOCATION)

        assert graph_data.location_id == 7
        assert graph_data.locality_name == 'Long Cave'
        assert graph_data.county_name == 'Pima'
        assert graph_data.flags == EffortFlags.MISSING_DATE | EffortFlags.MULTI_DAY_PERSON_VISIT
        assert graph_data.per_day_points == [Point(1, 2), Point(2, 3)]
        assert graph_data.per_visit_points == [Point(1, 2), Point(2, 4), Point(3, 5)]
        assert graph_data.per_person_visit_points == [Point(1, 2), Point(3, 5)]
        assert graph_data.visits_by_taxon_unique == {'a': 2, 'b': 1}
        assert graph_data.recent_taxa == [['a', 'b'], ['b']]
        assert graph_data.predicted_per_visit_diff is None

    def test_recent_taxa_as_lists(self):
        graph_data = to_location_graph_data({'locationID': 1, 'perVisitPoints': [[1, 1]],
                                             'recentTaxa': [['a'], []]})
        assert graph_data.recent_taxa == [['a'], []]

    def test_minimal_record(self, caplog):
        graph_data = to_location_graph_data({'locationID': 3})

        assert graph_data.locality_name == '3'
        assert graph_data.flags == EffortFlags(0)
        assert graph_data.per_visit_points == []
        assert graph_data.recent_taxa == []
        assert "no per-visit points" in caplog.text

    def test_missing_location_id(self):
        with pytest.raises(ValueError):
            to_location_graph_data({'localityName': 'Nowhere'})

    def test_point_extractors(self):
        graph_data = to_location_graph_data(RAW_LOCATION)
        assert len(POINT_EXTRACTORS['per_day'](graph_data)) == 2
        assert len(POINT_EXTRACTORS['per_visit'](graph_data)) == 3
        assert len(POINT_EXTRACTORS['per_person_visit'](graph_data)) == 2

    def test_by_cluster(self):
        data_set_by_cluster = to_location_graph_data_set_by_cluster([[RAW_LOCATION], [{'locationID': 1}, {'locationID': 2}]])
        assert [len(data_set) for data_set in data_set_by_cluster] == [1, 2]
        assert data_set_by_cluster[1][1].location_id == 2

    def test_keeps_most_recent_visits(self):
        graph_data = to_location_graph_data({'locationID': 1, 'perVisitPoints': [[1, 1]],
                                             'recentTaxa': 'a#b#c#d'})
        assert graph_data.recent_taxa == [['b'], ['c'], ['d']]
