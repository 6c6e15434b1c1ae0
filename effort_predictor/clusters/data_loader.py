import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

REQUIRED_CSV_COLUMNS = ['cluster', 'locationID', 'perVisitPoints', 'perPersonVisitPoints']
_JSON_CSV_COLUMNS = ['perDayPoints', 'perVisitPoints', 'perPersonVisitPoints', 'visitsByTaxonUnique']


@dataclass
class RawCluster:
    """The raw location effort records of one cluster"""
    locations: List[Dict[str, Any]]
    visits_by_taxon_unique: Optional[Dict[str, int]] = None


@dataclass
class LoadedData:
    clusters: List[RawCluster]
    config: Dict[str, Any] = field(default_factory=dict)


class DataLoader:
    """Loads clustered location effort records from a JSON or CSV file

    JSON files hold either a list of clusters or an object with a 'clusters'
    list and an optional 'config' object. Each cluster is either a list of
    location records or an object with 'locations' and an optional
    'visitsByTaxonUnique'. CSV files hold one location per row, with a
    'cluster' column and JSON-encoded point and taxa columns.
    """

    def __init__(self, path: str):
        self.path = Path(path).expanduser()

    def load_data(self) -> LoadedData:
        if self.path.suffix.lower() == '.csv':
            loaded = self._load_csv()
        else:
            loaded = self._load_json()

        location_count = sum(len(cluster.locations) for cluster in loaded.clusters)
        logging.info(f"Loaded {location_count} locations in {len(loaded.clusters)} clusters from {self.path}")
        return loaded

    def _load_json(self) -> LoadedData:
        with open(self.path) as f:
            data = json.load(f)

        config = {}
        if isinstance(data, dict):
            if 'clusters' not in data:
                raise ValueError(f"{self.path} must contain a 'clusters' list")
            config = data.get('config') or {}
            data = data['clusters']

        clusters = []
        for i, cluster in enumerate(data):
            if isinstance(cluster, list):
                clusters.append(RawCluster(locations=cluster))
            elif isinstance(cluster, dict) and 'locations' in cluster:
                clusters.append(RawCluster(
                    locations=cluster['locations'],
                    visits_by_taxon_unique=cluster.get('visitsByTaxonUnique')
                ))
            else:
                raise ValueError(f"Cluster {i} of {self.path} has no locations")
        return LoadedData(clusters=clusters, config=config)

    def _load_csv(self) -> LoadedData:
        df = pd.read_csv(self.path)

        missing = [column for column in REQUIRED_CSV_COLUMNS if column not in df.columns]
        if missing:
            raise ValueError(f"CSV must contain columns {REQUIRED_CSV_COLUMNS}; missing {missing}")

        # Turn NaN into None so absent values read as missing
        df = df.astype(object).where(pd.notna(df), None)
        for column in _JSON_CSV_COLUMNS:
            if column in df.columns:
                df[column] = df[column].map(lambda value: json.loads(value) if isinstance(value, str) else value)

        clusters = []
        for _, cluster_df in df.groupby('cluster', sort=True):
            records = cluster_df.drop(columns=['cluster']).to_dict(orient='records')
            for record in records:
                record['locationID'] = int(record['locationID'])
            clusters.append(RawCluster(locations=records))
        return LoadedData(clusters=clusters)

