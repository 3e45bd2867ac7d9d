"""Utility functions for the backend."""

from adspace_backend.utils.normalizers import normalize_traffic_data, serialize_traffic_data

__all__ = ["normalize_traffic_data", "serialize_traffic_data"]
