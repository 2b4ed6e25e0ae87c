"""Tests for visionsetup."""
