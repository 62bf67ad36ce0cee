"""canopy: geometry ingestion and layer rendering for schema-less GIS records."""

__version__ = "0.1.0"
