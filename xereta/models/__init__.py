"""Pydantic models for tracker state, canvas records, and scoring input/output."""
