"""Test suite for the doublecheck linter."""
