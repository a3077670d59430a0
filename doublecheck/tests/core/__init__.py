"""Tests for core domain logic."""
