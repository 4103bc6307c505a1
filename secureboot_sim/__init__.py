"""
Secure Boot Simulator

Version: 1.0.0

A replayable teaching model of a secure-boot sequence on a hypothetical
system-on-chip: power-up, ROM execution, key retrieval, bootloader load,
signature verification, then either normal execution or a safe-mode
halt when the image is tampered.

Two independent components:
- BootSequenceEngine: the stage state machine with its register,
  memory and flag projection and boot log
- AttestationDemo: a narrated hash/sign/verify pipeline using
  throwaway Ed25519 keys

Usage:
    from secureboot_sim import BootSequenceEngine, ManualScheduler, Mode

    scheduler = ManualScheduler()
    engine = BootSequenceEngine(mode=Mode.TAMPERED, scheduler=scheduler)
    engine.play()
    scheduler.advance(20000)

    engine.boot_status.text     # 'BOOT FAILED - TAMPERING DETECTED'
    engine.flags.safeMode       # True

    from secureboot_sim import run_attestation
    result = run_attestation(b"firmware-v1", chunk_delay_ms=0)
    result.verified, result.digest_hex
"""

__version__ = "1.0.0"
__license__ = "Apache-2.0"

# Stages
from .stages import (
    Mode,
    BootStage,
    build_stage_table,
    STAGE_COUNT,
)

# Projection
from .projection import (
    Registers,
    SystemFlags,
    SystemSnapshot,
    BootStatus,
    update_system_state,
    boot_status,
)

# Chip activity
from .hardware import (
    MODULES,
    ChipModule,
    ModuleActivity,
    TimelineStatus,
    TimelineEntry,
    module_activity,
    bus_activity,
    timeline,
    progress_percent,
)

# Boot log
from .boot_log import (
    LogLevel,
    LogEntry,
    BootLog,
    logs_for,
)

# Scheduling
from .scheduling import (
    Scheduler,
    TimerHandle,
    AsyncioScheduler,
    ManualScheduler,
)

# Engine
from .engine import (
    BootSequenceEngine,
    EngineState,
)

# Crypto
from .hashing import digest, digest_hex, verify_digest
from .signing import (
    CryptoProvider,
    NaClCryptoProvider,
    KeyPair,
)

# Attestation
from .attestation import (
    AttestationDemo,
    AttestationPhase,
    AttestationResult,
    AttestationSetupError,
    run_attestation,
)


__all__ = [
    # Version
    "__version__",

    # Stages
    "Mode",
    "BootStage",
    "build_stage_table",
    "STAGE_COUNT",

    # Projection
    "Registers",
    "SystemFlags",
    "SystemSnapshot",
    "BootStatus",
    "update_system_state",
    "boot_status",

    # Chip activity
    "MODULES",
    "ChipModule",
    "ModuleActivity",
    "TimelineStatus",
    "TimelineEntry",
    "module_activity",
    "bus_activity",
    "timeline",
    "progress_percent",

    # Boot log
    "LogLevel",
    "LogEntry",
    "BootLog",
    "logs_for",

    # Scheduling
    "Scheduler",
    "TimerHandle",
    "AsyncioScheduler",
    "ManualScheduler",

    # Engine
    "BootSequenceEngine",
    "EngineState",

    # Crypto
    "digest",
    "digest_hex",
    "verify_digest",
    "CryptoProvider",
    "NaClCryptoProvider",
    "KeyPair",

    # Attestation
    "AttestationDemo",
    "AttestationPhase",
    "AttestationResult",
    "AttestationSetupError",
    "run_attestation",
]
