"""Shared testing utilities for the Document Sync project.

- fakes.py: in-memory cloud provider and a scripted ``requests`` session
"""
