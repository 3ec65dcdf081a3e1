"""Automated outbound phone surveys over Twilio."""

__version__ = "0.1.0"
