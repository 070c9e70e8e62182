"""
Buffer Dasymetric

Ring-buffer population redistribution around a site point.
Concentric rings, census polygons clipped per ring, population reallocated
by area fraction.
"""

from buffer_dasymetric.main import run_site_analysis
from buffer_dasymetric.config import CONFIG

__all__ = ["run_site_analysis", "CONFIG"]
