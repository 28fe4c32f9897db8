"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants (Earth radii, SSE framing, NDVI bands)
- exceptions: Custom exception hierarchy
"""
