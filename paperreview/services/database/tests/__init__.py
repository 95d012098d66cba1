"""Tests for :mod:`paperreview.services.database`."""
