"""Utility helpers shared across SOAP Test Utility modules."""
