"""Core utility functions."""

from core.utils.json_serializers import dumps_canonical, json_serializer, serialized_size

__all__ = ["json_serializer", "dumps_canonical", "serialized_size"]
