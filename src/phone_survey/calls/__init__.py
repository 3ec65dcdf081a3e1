"""Call queue and outbound call placement."""
