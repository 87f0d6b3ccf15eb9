"""Utility modules for the habit streak engine."""
