"""Test suite for the consul-parser package.

This package contains unit and integration tests validating
destination shapes, scalar conversions, store clients, and binding
semantics of dataclasses and Pydantic models.
"""
