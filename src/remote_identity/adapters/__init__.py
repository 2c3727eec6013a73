"""Adapters connecting the domain ports to concrete infrastructure."""
