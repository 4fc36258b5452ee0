"""Agropal realtime presence and notification routing."""
