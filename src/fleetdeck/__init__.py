"""Fleetdeck - Mission Control for an autonomous agent fleet."""

__version__ = "0.3.0"
