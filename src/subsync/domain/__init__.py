"""Domain layer: subscription model, ports and webhook reconciliation."""
