"""Multilingual smart-home command normalization and execution."""
