"""Minimal HTTP service used to exercise REST client timeouts."""
