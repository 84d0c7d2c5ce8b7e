"""HTTP surface for running and browsing simulated generations."""
