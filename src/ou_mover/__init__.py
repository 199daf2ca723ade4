"""
OU Mover - a CLI tool for relocating directory objects into an OU in bulk.

This package provides functionality to:
- Read object identifiers from a text file (one per line) or Column A of an XLSX file
- Resolve each identifier against an LDAP / Active Directory server
- Move resolved objects into a target organizational unit
- Classify each outcome (moved, not found, permission denied, other failure)
- Append a timestamped audit log and optionally write a CSV report
"""

__version__ = "0.1.0"
__author__ = "OU Mover Team"
