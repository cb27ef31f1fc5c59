"""
Pydantic models for API request/response schemas.

These models define the shape of data that flows between a frontend and the pipeline.
They are separate from the internal pipeline types to maintain clear API boundaries.
"""
