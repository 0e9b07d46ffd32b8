"""Unit tests for individual harness components."""
