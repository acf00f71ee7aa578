"""Per-record and end-of-run build activities.

- materialize_thumbnail: Local thumbnail or external image link per record
- enrich_content: Titles, descriptions and curator rules
- write_artifacts: GeoJSON document and map page output
"""
