"""
Chip Activity Model

Which on-chip blocks, internal subcomponents and bus signals are live
at each boot stage, plus the per-stage timeline status.

Everything here is derived from (stage, mode, flags); it carries no
state of its own.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Tuple, Union

from .projection import SystemFlags
from .stages import STAGE_COUNT, VERIFICATION_RESULT_STAGE, Mode, coerce_mode


@dataclass(frozen=True)
class Subcomponent:
    """Internal block of a chip module, live from `active_from` onward."""
    name: str
    active_from: int


@dataclass(frozen=True)
class ChipModule:
    """An on-chip functional block."""
    id: str
    name: str
    kind: str
    description: str
    subcomponents: Tuple[Subcomponent, ...]


MODULES: Tuple[ChipModule, ...] = (
    ChipModule(
        id="pmu",
        name="Power Management Unit",
        kind="pmu",
        description="Power Management Unit",
        subcomponents=(
            Subcomponent("Voltage Regulator", 0),
            Subcomponent("Power Sequencer", 0),
            Subcomponent("Reset Controller", 0),
        ),
    ),
    ChipModule(
        id="bootrom",
        name="Boot ROM",
        kind="rom",
        description="Boot ROM with secure code",
        subcomponents=(
            Subcomponent("Instruction Fetch", 1),
            Subcomponent("Address Decoder", 1),
            Subcomponent("Boot Code", 1),
            Subcomponent("Key Storage", 2),
        ),
    ),
    ChipModule(
        id="otp",
        name="OTP/eFuse",
        kind="otp",
        description="One-Time Programmable Memory",
        subcomponents=(
            Subcomponent("eFuse Array", 2),
            Subcomponent("Key Hash", 2),
            Subcomponent("Access Control", 2),
        ),
    ),
    ChipModule(
        id="crypto",
        name="Crypto Engine",
        kind="crypto",
        description="Cryptographic accelerator",
        subcomponents=(
            Subcomponent("Hash Engine", 4),
            Subcomponent("RSA Verifier", 4),
            Subcomponent("Key Loader", 4),
            Subcomponent("Result Register", 5),
        ),
    ),
    ChipModule(
        id="flash",
        name="Flash Memory",
        kind="flash",
        description="External Flash storage",
        subcomponents=(
            Subcomponent("SPI Controller", 3),
            Subcomponent("Memory Array", 3),
            Subcomponent("Address Buffer", 3),
            Subcomponent("Data Buffer", 3),
        ),
    ),
    ChipModule(
        id="cpu",
        name="CPU Core",
        kind="cpu",
        description="Main processor",
        subcomponents=(
            Subcomponent("Instruction Cache", 6),
            Subcomponent("ALU", 6),
            Subcomponent("Register File", 6),
            Subcomponent("MMU", 6),
        ),
    ),
)


class TimelineStatus(str, Enum):
    """Position of a stage relative to the current one."""
    COMPLETED = "completed"
    CURRENT = "current"
    UPCOMING = "upcoming"


@dataclass(frozen=True)
class ModuleActivity:
    """Activity of one chip module at the current stage."""
    module: ChipModule
    active: bool
    alarm: bool
    subcomponents: Dict[str, str]  # name -> active|idle

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.module.id,
            "name": self.module.name,
            "active": self.active,
            "alarm": self.alarm,
            "subcomponents": dict(self.subcomponents),
        }


@dataclass(frozen=True)
class TimelineEntry:
    """Timeline marker for one stage."""
    stage: int
    status: TimelineStatus
    failed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"stage": self.stage, "status": self.status.value, "failed": self.failed}


def get_module_by_id(module_id: str) -> ChipModule:
    """Look up a chip module; raises KeyError for unknown ids."""
    for module in MODULES:
        if module.id == module_id:
            return module
    raise KeyError(module_id)


def _module_active(module_id: str, stage: int, flags: SystemFlags) -> bool:
    if module_id == "pmu":
        return flags.powerGood
    if module_id == "bootrom":
        return flags.romActive
    if module_id == "otp":
        return flags.keyLoaded
    if module_id == "crypto":
        return 4 <= stage <= VERIFICATION_RESULT_STAGE
    if module_id == "flash":
        return stage >= 3
    if module_id == "cpu":
        return stage >= 6
    return False


def module_activity(
    stage: int,
    mode: Union[Mode, str],
    flags: SystemFlags
) -> List[ModuleActivity]:
    """Activity of every chip module, in layout order."""
    mode = coerce_mode(mode)
    activity = []
    for module in MODULES:
        activity.append(ModuleActivity(
            module=module,
            active=_module_active(module.id, stage, flags),
            alarm=(
                module.id == "crypto"
                and mode == Mode.TAMPERED
                and stage >= VERIFICATION_RESULT_STAGE
            ),
            subcomponents={
                sub.name: "active" if stage >= sub.active_from else "idle"
                for sub in module.subcomponents
            },
        ))
    return activity


def bus_activity(stage: int, mode: Union[Mode, str]) -> Dict[str, bool]:
    """
    Live bus signals keyed by label.

    The verification result and post-boot data lines carry a
    mode-specific label.
    """
    tampered = coerce_mode(mode) == Mode.TAMPERED
    return {
        "VCC": stage >= 1,
        "KEY_REQ": 2 <= stage <= 3,
        "KEY_DATA": 2 <= stage <= 3,
        "BOOT_DATA": 3 <= stage <= 4,
        "FLASH_RD": 3 <= stage <= 4,
        "PUB_KEY": 4 <= stage <= 5,
        "SIGNATURE": 4 <= stage <= 5,
        "VERIFY_FAIL" if tampered else "VERIFY_OK": stage == VERIFICATION_RESULT_STAGE,
        "EXEC": stage >= 6,
        "SAFE_MODE" if tampered else "OS_DATA": stage >= 6,
    }


def timeline(
    stage: int,
    mode: Union[Mode, str],
    total_stages: int = STAGE_COUNT
) -> List[TimelineEntry]:
    """Per-stage status markers for the boot timeline."""
    tampered = coerce_mode(mode) == Mode.TAMPERED
    entries = []
    for stage_id in range(total_stages):
        if stage_id < stage:
            status = TimelineStatus.COMPLETED
        elif stage_id == stage:
            status = TimelineStatus.CURRENT
        else:
            status = TimelineStatus.UPCOMING
        failed = (
            tampered
            and stage_id >= VERIFICATION_RESULT_STAGE
            and status != TimelineStatus.UPCOMING
        )
        entries.append(TimelineEntry(stage=stage_id, status=status, failed=failed))
    return entries


def progress_percent(stage: int, total_stages: int = STAGE_COUNT) -> int:
    """Overall boot progress, 0 at power-on and 100 at the last stage."""
    if total_stages <= 1:
        return 100
    return round(stage / (total_stages - 1) * 100)
