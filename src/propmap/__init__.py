"""Property listing search with map, geocoding and nearby amenities."""

__version__ = "0.1.0"
