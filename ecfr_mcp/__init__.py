"""MCP server for the Electronic Code of Federal Regulations (eCFR).

Exposes search, reference, structure and snapshot-comparison tools backed by
the public eCFR API at https://www.ecfr.gov.
"""

__version__ = "0.2.0"
