"""Prototyper: refine product requirements into a single-file HTML prototype with an LLM."""

__version__ = "1.0.0"
