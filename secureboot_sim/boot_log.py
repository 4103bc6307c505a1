"""
Boot Log

Hand-authored log batches for each boot stage, and the append-only
accumulator the engine feeds them into.

`logs_for` is a pure lookup: the same (stage, mode) pair always yields
the same messages and levels. Only ids and timestamps differ per call.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .stages import Mode, coerce_mode


class LogLevel(str, Enum):
    """Severity of a boot log line."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class LogEntry:
    """A single boot log line."""
    id: str
    timestamp: datetime
    level: LogLevel
    stage: int
    message: str

    def display_time(self) -> str:
        """HH:MM:SS.mmm for the log panel."""
        return self.timestamp.strftime("%H:%M:%S.") + f"{self.timestamp.microsecond // 1000:03d}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
            "level": self.level.value,
            "stage": self.stage,
            "message": self.message,
        }


Template = Tuple[LogLevel, str]

_INFO, _OK, _WARN, _ERR = LogLevel.INFO, LogLevel.SUCCESS, LogLevel.WARNING, LogLevel.ERROR

_COMMON: Dict[int, List[Template]] = {
    0: [
        (_INFO, "⚡ Power-On Reset initiated"),
        (_OK, "✓ VCC: 3.3V stable, VDDIO: 1.8V stable"),
        (_INFO, "Reset signal released, system clock: 24MHz"),
    ],
    1: [
        (_INFO, "🔧 ROM execution started at 0x00000000"),
        (_INFO, "Fetching boot vector from ROM"),
        (_OK, "✓ Boot ROM initialized successfully"),
    ],
    2: [
        (_INFO, "🔑 Reading OTP fuses for key material"),
        (_INFO, "Key hash retrieved: 0x12345678ABCDEF90"),
        (_OK, "✓ Public key hash loaded from eFuses"),
    ],
}

_BY_MODE: Dict[Mode, Dict[int, List[Template]]] = {
    Mode.NORMAL: {
        3: [
            (_INFO, "📥 Loading bootloader from flash at 0x00010000"),
            (_INFO, "Bootloader size: 64KB, Reading flash sectors..."),
            (_OK, "✓ Bootloader loaded into SRAM"),
        ],
        4: [
            (_INFO, "🔐 Starting signature verification (RSA-2048)"),
            (_INFO, "Computing SHA-256 hash of bootloader image..."),
            (_INFO, "Hash: 0x12345678... (verifying against signature)"),
        ],
        5: [
            (_OK, "✓ SIGNATURE VERIFICATION PASSED"),
            (_OK, "Bootloader integrity confirmed"),
            (_INFO, "Preparing to transfer execution..."),
        ],
        6: [
            (_OK, "🚀 Transferring control to bootloader"),
            (_INFO, "Jumping to address: 0x00010000"),
            (_OK, "✓ Bootloader executing successfully"),
        ],
        7: [
            (_OK, "✓ BOOT COMPLETE - System Ready"),
            (_OK, "OS/Application now running"),
            (_INFO, "Secure boot chain verified and trusted"),
        ],
    },
    Mode.TAMPERED: {
        3: [
            (_INFO, "📥 Loading bootloader from flash at 0x00010000"),
            (_INFO, "Bootloader size: 64KB, Reading flash sectors..."),
            (_WARN, "⚠ Bootloader loaded (integrity unknown)"),
        ],
        4: [
            (_INFO, "🔐 Starting signature verification (RSA-2048)"),
            (_INFO, "Computing SHA-256 hash of bootloader image..."),
            (_INFO, "Hash: 0xDEADBEEF... (verifying against signature)"),
        ],
        5: [
            (_ERR, "❌ SIGNATURE VERIFICATION FAILED!"),
            (_ERR, "Hash mismatch detected - bootloader may be tampered"),
            (_ERR, "Expected: 0x12345678... Got: 0xDEADBEEF..."),
        ],
        6: [
            (_WARN, "🚨 Entering SAFE MODE"),
            (_WARN, "Bootloader execution BLOCKED"),
            (_INFO, "System halted in secure state"),
        ],
        7: [
            (_WARN, "⚠ System running in SAFE MODE"),
            (_WARN, "Limited functionality - firmware update required"),
            (_INFO, "Waiting for recovery action..."),
        ],
    },
}


def _templates(stage: int, mode: Mode) -> List[Template]:
    if stage in _COMMON:
        return _COMMON[stage]
    return _BY_MODE[mode].get(stage, [])


def batch_size(stage: int, mode: Union[Mode, str]) -> int:
    """Number of entries `logs_for` yields for a stage."""
    return len(_templates(stage, coerce_mode(mode)))


def logs_for(
    stage: int,
    mode: Union[Mode, str],
    now: Optional[datetime] = None
) -> List[LogEntry]:
    """
    Generate the log batch for a stage.

    Args:
        stage: Stage id; unknown ids yield an empty batch
        mode: Boot scenario
        now: Timestamp for the batch (default: current UTC time)

    Returns:
        Ordered list of LogEntry
    """
    mode = coerce_mode(mode)
    now = now or datetime.now(timezone.utc)
    batch_id = f"{uuid.uuid4().hex[:12]}-{stage}"

    return [
        LogEntry(
            id=f"{batch_id}-{index}",
            timestamp=now,
            level=level,
            stage=stage,
            message=message,
        )
        for index, (level, message) in enumerate(_templates(stage, mode))
    ]


class BootLog:
    """
    Append-only accumulator of boot log batches.

    Revisiting a stage appends a fresh batch; nothing is deduplicated.
    """

    def __init__(self):
        self._entries: List[LogEntry] = []

    def record(self, stage: int, mode: Union[Mode, str]) -> List[LogEntry]:
        """Append and return the batch for a stage."""
        batch = logs_for(stage, mode)
        self._entries.extend(batch)
        return batch

    def clear(self) -> None:
        self._entries.clear()

    @property
    def entries(self) -> Tuple[LogEntry, ...]:
        return tuple(self._entries)

    def by_level(self, level: Union[LogLevel, str]) -> List[LogEntry]:
        """Entries of one severity, in append order."""
        level = LogLevel(level)
        return [e for e in self._entries if e.level == level]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(tuple(self._entries))
