"""Tests package for Tracker Hub."""
