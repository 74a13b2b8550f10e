"""
HTTP API for PropForecast.

A stateless FastAPI surface over the projection engine.
"""
