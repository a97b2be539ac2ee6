"""Telemetry and settings shared across the package."""
