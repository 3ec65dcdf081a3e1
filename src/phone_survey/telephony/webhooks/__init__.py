"""Twilio webhook handlers and the call-flow state machine."""
