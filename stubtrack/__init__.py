"""Paystub Tracker - structured records from pay stub text."""

__version__ = "0.1.0"
