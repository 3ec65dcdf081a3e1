"""Recorded survey answers."""
