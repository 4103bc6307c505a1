"""
Hardware State Projection

Derives the simulated register file, memory map and subsystem flags
from a (stage, mode) pair.

The projection is a pure function: nothing here is mutated in place,
and the same inputs always produce an equal snapshot.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Union

from .stages import LAST_STAGE, STAGE_COUNT, VERIFICATION_RESULT_STAGE, Mode, coerce_mode

STACK_POINTER = 0x20008000
CPSR_SUPERVISOR = 0x000001D3
KEY_HASH_WORD = 0x12345678
BOOTLOADER_ADDRESS = 0x00010000
PC_STRIDE = 0x100


@dataclass(frozen=True)
class Registers:
    """Simulated CPU registers."""
    PC: int
    SP: int
    R0: int
    R1: int
    CPSR: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "PC": self.PC,
            "SP": self.SP,
            "R0": self.R0,
            "R1": self.R1,
            "CPSR": self.CPSR,
        }

    def to_hex(self) -> Dict[str, str]:
        """Render as 0x-prefixed 32-bit words."""
        return {name: f"0x{value:08X}" for name, value in self.to_dict().items()}


@dataclass(frozen=True)
class SystemFlags:
    """Subsystem status flags."""
    powerGood: bool
    romActive: bool
    keyLoaded: bool
    signatureValid: bool
    bootComplete: bool
    tamperDetected: bool
    safeMode: bool

    def to_dict(self) -> Dict[str, bool]:
        return {
            "powerGood": self.powerGood,
            "romActive": self.romActive,
            "keyLoaded": self.keyLoaded,
            "signatureValid": self.signatureValid,
            "bootComplete": self.bootComplete,
            "tamperDetected": self.tamperDetected,
            "safeMode": self.safeMode,
        }


@dataclass(frozen=True)
class SystemSnapshot:
    """Registers, memory and flags for one (stage, mode) pair."""
    registers: Registers
    memory: Mapping[str, str]
    flags: SystemFlags

    def to_dict(self) -> Dict[str, Any]:
        return {
            "registers": self.registers.to_dict(),
            "memory": dict(self.memory),
            "flags": self.flags.to_dict(),
        }


@dataclass(frozen=True)
class BootStatus:
    """Headline classification of the boot for display."""
    text: str
    tone: str  # danger | idle | secure | progress

    def to_dict(self) -> Dict[str, str]:
        return {"text": self.text, "tone": self.tone}


def _memory_map(stage: int, mode: Mode) -> Dict[str, str]:
    tampered = mode == Mode.TAMPERED
    memory = {
        "0x00000000": "Boot ROM Code",
        "0x00010000": "Tampered Bootloader" if tampered else "Valid Bootloader",
        "0x00020000": "Signature Data",
        "0x20000000": "SRAM",
    }

    if stage >= 3:
        memory["0x20000000"] = "Tampered bootloader (blocked)" if tampered else "Bootloader loaded"
        if stage >= 7:
            memory["0x30000000"] = "Safe mode handler" if tampered else "OS/Application"
        else:
            memory["0x30000000"] = "Not loaded"

    return memory


def update_system_state(stage: int, mode: Union[Mode, str]) -> SystemSnapshot:
    """
    Project the hardware state for a stage.

    Args:
        stage: Stage id
        mode: Boot scenario

    Returns:
        Frozen SystemSnapshot
    """
    mode = coerce_mode(mode)
    normal = mode == Mode.NORMAL
    tampered = mode == Mode.TAMPERED

    registers = Registers(
        PC=stage * PC_STRIDE,
        SP=STACK_POINTER,
        R0=KEY_HASH_WORD if stage >= 2 else 0,
        R1=BOOTLOADER_ADDRESS if stage >= 3 else 0,
        CPSR=CPSR_SUPERVISOR,
    )

    flags = SystemFlags(
        powerGood=stage >= 0,
        romActive=stage >= 1,
        keyLoaded=stage >= 2,
        signatureValid=stage >= VERIFICATION_RESULT_STAGE and normal,
        bootComplete=stage >= 7 and normal,
        tamperDetected=tampered and stage >= VERIFICATION_RESULT_STAGE,
        safeMode=tampered and stage >= 6,
    )

    return SystemSnapshot(
        registers=registers,
        memory=MappingProxyType(_memory_map(stage, mode)),
        flags=flags,
    )


def boot_status(
    flags: SystemFlags,
    mode: Union[Mode, str],
    stage: int,
    total_stages: int = STAGE_COUNT
) -> BootStatus:
    """
    Classify the boot for the status banner.

    Tampering wins over every other state once the verification
    result is known.
    """
    mode = coerce_mode(mode)
    last = total_stages - 1 if total_stages > 0 else LAST_STAGE

    if flags.tamperDetected or (mode == Mode.TAMPERED and stage >= VERIFICATION_RESULT_STAGE):
        return BootStatus("BOOT FAILED - TAMPERING DETECTED", "danger")

    if stage == 0:
        return BootStatus("System Powered Down", "idle")

    if stage == last and mode == Mode.NORMAL:
        return BootStatus("BOOT COMPLETE - SECURE", "secure")

    return BootStatus(f"Boot Stage {stage} - In Progress", "progress")
