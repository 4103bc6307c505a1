"""
Configuration module for the secure boot simulator.

Centralizes all tunables with environment variable support
and validation.
"""

import hashlib
import os
from typing import Dict

# ============================================================
# Environment Configuration
# ============================================================

# Playback
DEFAULT_ANIMATION_SPEED = float(os.getenv("SECUREBOOT_ANIMATION_SPEED", "1.0"))

# Attestation demo
ATTESTATION_CHUNKS = int(os.getenv("SECUREBOOT_ATTESTATION_CHUNKS", "8"))
CHUNK_DELAY_MS = float(os.getenv("SECUREBOOT_CHUNK_DELAY_MS", "180"))
DIGEST_ALGORITHM = os.getenv("SECUREBOOT_DIGEST_ALGORITHM", "sha256")
DEFAULT_FIRMWARE_ID = os.getenv(
    "SECUREBOOT_FIRMWARE_ID", "DemoFirmwareImage-v1.0-ThisIsSampleData"
)

# Logging
LOG_LEVEL = os.getenv("SECUREBOOT_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("SECUREBOOT_LOG_JSON", "true").lower() in ("1", "true", "yes")


# ============================================================
# Validation
# ============================================================

def validate_config() -> Dict[str, bool]:
    """
    Validate the loaded configuration values.
    Returns dict of setting -> is valid.
    """
    return {
        "animation_speed": DEFAULT_ANIMATION_SPEED > 0,
        "attestation_chunks": ATTESTATION_CHUNKS > 0,
        "chunk_delay_ms": CHUNK_DELAY_MS >= 0,
        "digest_algorithm": DIGEST_ALGORITHM.lower() in hashlib.algorithms_available,
        "log_level": LOG_LEVEL.upper() in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
    }


# ============================================================
# Debug
# ============================================================

def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("SECUREBOOT_DEBUG", "").lower() in ("1", "true", "yes")
