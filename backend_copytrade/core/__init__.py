"""
Core utilities: error taxonomy, fallback resolution, static demo data.

Shared by the route handlers; no HTTP or database imports here.
"""
