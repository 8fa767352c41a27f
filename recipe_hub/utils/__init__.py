"""Utility modules for Recipe Hub."""
