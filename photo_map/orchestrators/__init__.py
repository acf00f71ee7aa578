"""Build orchestration.

Runs one end-to-end build:
1. List images from the provider
2. Resolve, enrich and thumbnail each record (optionally on a thread pool)
3. Write the GeoJSON document, map pages and geocache
"""
