"""Utility helpers for roadsiege."""
