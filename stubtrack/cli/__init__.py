"""Paystub Tracker command-line interface."""
