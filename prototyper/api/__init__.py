"""
FastAPI application layer for the prototype pipeline.

This module provides HTTP endpoints a page or script can drive: pick a backend,
refresh and assign models, edit prompts, optimize requirements, generate a
validated prototype and download it.
"""
