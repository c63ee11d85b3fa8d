"""
Bootstrap module for acornget.

This module handles:
- Platform detection (OS + architecture + packaging convention)
- Download transport selection (curl or wget)
- Release version resolution
- Install directory and privilege handling
- Installed binary validation
"""
