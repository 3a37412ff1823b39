# diskmat/config.py
"""
Centralized configuration for the diskmat library.
This module provides a single source of truth for the on-disk format and tuning parameters.
"""

# On-disk format
HEADER_SIZE = 64  # Fixed size of the header record at offset 0
MAGIC = b"DISKMAT\x00"  # Written on create, not validated
FILE_MODE = 0o644  # Permissions for newly created backing files

# Largest backing file we will try to create (signed 64-bit file offset)
MAX_FILE_LENGTH = 2**63 - 1

# Element representation used when the caller does not pick one
DEFAULT_DTYPE = "single"

# Core computation parameters
TILE_SIZE = 1024  # Size of tiles for copies and block-wise random fills
PROFILE_HISTORY = 10000  # Most recent measurements the profiler keeps per operation
