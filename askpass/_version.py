"""Version information for askpass."""

# This file is auto-generated. Do not edit manually.
__version__ = "1.0.0"
