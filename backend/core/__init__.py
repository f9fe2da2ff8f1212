"""Core shared logic for script parsing, indicators, and signal engines.

This package contains pure business logic with no I/O dependencies
(no network or file access). The HTTP API and CLI in app/ feed it candle
histories and scripts and render what it returns.
"""
