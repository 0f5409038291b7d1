"""Export services."""

from .geojson import candidate_to_feature, export_candidates_geojson

__all__ = [
    "candidate_to_feature",
    "export_candidates_geojson",
]
