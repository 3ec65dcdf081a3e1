"""Sign-in through the hosted auth service and per-request caller context."""
