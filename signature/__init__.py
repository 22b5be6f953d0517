"""
Signature module.

Captures a signature as a raster image (drawn strokes, uploaded file or a
saved library entry) for exactly one signature field, and keeps a per-user
library of reusable signatures encrypted at rest.
"""
