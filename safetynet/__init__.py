"""Resilient multi-provider weather and disaster data."""
