"""Shared testing utilities for the eCFR MCP project.

- fake_ecfr_api.py: In-process stand-in for the eCFR API on httpx.MockTransport
- structure_data.py: Builders for structure documents, titles and search hits
"""
