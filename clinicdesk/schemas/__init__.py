"""Pydantic schemas shared across endpoints."""
