"""Domain layer: catalog model, reconciliation stages and operator operations."""
