"""Flat data memory."""
