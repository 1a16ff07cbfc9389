from __future__ import annotations

"""Fixed format constants for PE images and delta patch containers.

These values come from the PE / MSDelta formats themselves and are not
meant to be tuned; runtime knobs live in :mod:`deltalocate.config`.
"""

# PE images are laid out in 4 KiB pages by linker convention.
PAGE_SIZE = 0x1000

# SizeOfImage is a 32-bit field in the optional header.
MAX_IMAGE_SIZE = 0xFFFFFFFF

# MSDelta file type codes (DELTA_FILE_TYPE_*). Only RAW matters here:
# a raw delta carries no PE preprocessing header, hence no rift table.
FILE_TYPE_RAW = 0x1
FILE_TYPE_I386 = 0x2
FILE_TYPE_IA64 = 0x4
FILE_TYPE_AMD64 = 0x8
FILE_TYPE_CLI4_I386 = 0x10
FILE_TYPE_CLI4_AMD64 = 0x20
FILE_TYPE_CLI4_ARM = 0x40
FILE_TYPE_CLI4_ARM64 = 0x80

# Update packages keep forward deltas under a directory literally named "f".
PATCH_DIR_NAME = "f"

# Resource-only satellites never have a symbol server entry.
SKIPPED_EXTENSIONS = [
    ".mui",
]
