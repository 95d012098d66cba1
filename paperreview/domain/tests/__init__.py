"""Tests for :mod:`paperreview.domain`."""
