"""
Pydantic models for API request/response schemas.

These are the contract with the browser and API clients, kept separate from
the pipeline dataclasses.
"""
