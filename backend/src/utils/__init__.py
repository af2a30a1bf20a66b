"""
Utility modules for the patient records application.

This package contains shared helpers used across the application:
datetime handling, field validation, image payload decoding and blob storage.
"""
