"""Tests for :mod:`paperreview`."""
