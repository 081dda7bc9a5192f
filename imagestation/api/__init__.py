"""
FastAPI application layer for ImageStation.

Serves the JSON API and the four browser screens (compression, background
removal, recognition, generation) on top of the same pipelines.
"""
