"""Supacrawl command-line interface."""
