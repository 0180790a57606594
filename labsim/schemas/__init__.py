"""Pydantic schemas for request payloads and engine results."""
