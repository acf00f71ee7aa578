"""Dropbox Photo Map builder.

Pulls images from a Dropbox shared folder, resolves a coordinate for each
image (listing media info, EXIF tags, curator overrides, a filename
gazetteer, or optional forward geocoding), generates thumbnails, and writes
a static GeoJSON file plus an HTML page rendering a clustered photo map.
"""

__version__ = "0.1.0"
