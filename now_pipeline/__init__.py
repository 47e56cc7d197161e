"""
NOW Occurrence Pipeline
Package for cleaning, period classification, back-rotation and spatial
annotation of NOW fossil-occurrence exports.
"""

__version__ = "1.0.0"

# Lazy imports to avoid loading geopandas/matplotlib on package import
# Import as needed in code

__all__ = ["config", "io", "cleaning", "periods", "rotation", "spatial", "filters", "qc", "plots", "pipeline"]
