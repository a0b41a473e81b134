"""Govee work-mode parsing, response caching and Home Assistant MQTT discovery entities."""

__version__ = "0.1.0"