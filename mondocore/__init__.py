"""MondoCore libraries."""
