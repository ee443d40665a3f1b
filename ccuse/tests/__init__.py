"""Tests for ccuse."""
