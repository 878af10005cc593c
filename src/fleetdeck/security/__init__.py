"""Security helpers for the dashboard."""
