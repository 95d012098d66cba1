"""Tests for :mod:`reviewapi`."""
