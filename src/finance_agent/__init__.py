"""Conversational finance assistant driven by a bounded tool-calling loop."""

__version__ = "0.1.0"
