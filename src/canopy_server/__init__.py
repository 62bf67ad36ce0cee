"""canopy-gis HTTP service."""
