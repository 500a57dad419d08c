"""Simulated transit display devices for load testing an HTTP and MQTT backend."""

__version__ = "0.1.0"