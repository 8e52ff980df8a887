"""Serializers package for linkweave."""

from linkweave.serializers.abstract import Serializer
from linkweave.serializers.plain import PlainSerializer

__all__ = ["PlainSerializer", "Serializer"]
