"""Test suite for the pytest-courier package.

This package contains unit and integration tests validating template
resolution, message building, dictionaries, validation, action
execution, YAML parsing and the pytest integration.
"""
