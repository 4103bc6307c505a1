"""
Secure Boot Stage Table

Defines the fixed, ordered sequence of boot stages for the simulated
system-on-chip.

The table always holds 8 stages (ids 0..7). Only the text of stages
5, 6 and 7 depends on the mode: a normal image passes verification and
boots, a tampered image fails verification and halts in safe mode.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class Mode(str, Enum):
    """
    Boot image scenario.

    NORMAL: Untampered image; signature verifies
    TAMPERED: Modified image; signature mismatch
    """
    NORMAL = "normal"
    TAMPERED = "tampered"


@dataclass(frozen=True)
class BootStage:
    """One discrete, named step in the boot sequence."""
    id: int
    name: str
    description: str
    duration: int  # milliseconds, pacing only
    instruction: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "duration": self.duration,
        }
        if self.instruction:
            d["instruction"] = self.instruction
        return d


_BASE_STAGES: Tuple[BootStage, ...] = (
    BootStage(
        id=0,
        name="Power-On Reset",
        description="System power rails stabilize and reset is released",
        instruction="Power sequencing",
        duration=2000,
    ),
    BootStage(
        id=1,
        name="ROM Initialization",
        description="Boot ROM begins execution at reset vector",
        instruction="LDR PC, =0x00000000",
        duration=1500,
    ),
    BootStage(
        id=2,
        name="Key Retrieval",
        description="Reading public key hash from OTP/eFuses",
        instruction="LDR R0, [OTP_BASE]",
        duration=2000,
    ),
    BootStage(
        id=3,
        name="Bootloader Load",
        description="Loading first-stage bootloader from flash memory",
        instruction="BL flash_read",
        duration=2500,
    ),
    BootStage(
        id=4,
        name="Signature Verification",
        description="Cryptographic verification of bootloader signature",
        instruction="BL crypto_verify",
        duration=3000,
    ),
    BootStage(
        id=5,
        name="Verification Complete",
        description="Signature verification passed",
        instruction="CMP R0, #1",
        duration=1000,
    ),
    BootStage(
        id=6,
        name="Execution Transfer",
        description="Control transferred to verified bootloader",
        instruction="BX R1",
        duration=1500,
    ),
    BootStage(
        id=7,
        name="Boot Complete",
        description="Secure boot completed successfully - OS/Application running",
        instruction="OS_main",
        duration=1000,
    ),
)

# Per-mode overrides merged into the base table. Normal mode is the base.
_MODE_OVERRIDES: Dict[Mode, Dict[int, Dict[str, str]]] = {
    Mode.NORMAL: {},
    Mode.TAMPERED: {
        5: {
            "description": "Signature verification failed",
            "instruction": "B error_handler",
        },
        6: {
            "name": "Safe Mode Entry",
            "description": "System enters safe mode - bootloader execution blocked",
            "instruction": "B safe_mode",
        },
        7: {
            "name": "Safe Mode Active",
            "description": "System running in safe mode with limited functionality",
            "instruction": "WFI ; halt",
        },
    },
}

STAGE_COUNT = len(_BASE_STAGES)
LAST_STAGE = STAGE_COUNT - 1

# First stage whose outcome differs between modes
VERIFICATION_RESULT_STAGE = 5


def coerce_mode(mode: Union[Mode, str]) -> Mode:
    """Accept a Mode or its string value; unknown strings raise ValueError."""
    return mode if isinstance(mode, Mode) else Mode(mode)


def build_stage_table(mode: Union[Mode, str] = Mode.NORMAL) -> Tuple[BootStage, ...]:
    """
    Build the ordered stage table for a mode.

    Returns:
        Tuple of BootStage, index == stage id
    """
    overrides = _MODE_OVERRIDES[coerce_mode(mode)]
    return tuple(
        replace(stage, **overrides[stage.id]) if stage.id in overrides else stage
        for stage in _BASE_STAGES
    )
