"""Deterministic simulator for Nemeths territory-conquest generations."""

__version__ = "0.1.0"
