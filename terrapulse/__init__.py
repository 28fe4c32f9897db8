"""TerraPulse field measurement and advisor utilities.

Geodesic area and distance for drawn field polygons, the streaming
decoder behind the AI advisor, the advisor client and proxy, and
custom-layer parsing for the precision-agriculture dashboard.
"""

__version__ = "0.1.0"
