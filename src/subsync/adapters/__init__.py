"""Adapters binding the domain ports to storage and the payment provider."""
