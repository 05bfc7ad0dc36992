"""Data generation, IO and experiment helpers."""
