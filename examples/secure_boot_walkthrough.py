#!/usr/bin/env python3
"""
Secure Boot Walkthrough - Complete End-to-End Flow

This example drives both scenarios through the full boot sequence on a
virtual clock, then runs the attestation demo and feeds its outcome
back into the engine the way a classroom UI would.

Run with: python examples/secure_boot_walkthrough.py
"""

import asyncio

from secureboot_sim import (
    AttestationDemo,
    BootSequenceEngine,
    ManualScheduler,
    Mode,
)
from secureboot_sim.logging_config import configure_logging, set_session_id


def print_stage(engine: BootSequenceEngine) -> None:
    stage = engine.stage_data
    regs = engine.registers.to_hex()
    print(f"\n  [{stage.id}] {stage.name} - {stage.description}")
    if stage.instruction:
        print(f"      instr: {stage.instruction}")
    print(f"      PC={regs['PC']} R0={regs['R0']} R1={regs['R1']}")
    active = [name for name, on in engine.flags.to_dict().items() if on]
    print(f"      flags: {', '.join(active)}")


def play_through(mode: Mode) -> BootSequenceEngine:
    """Auto-play one scenario to the end on a virtual clock."""
    scheduler = ManualScheduler()
    engine = BootSequenceEngine(mode=mode, animation_speed=2.0, scheduler=scheduler)

    print("\n" + "-" * 70)
    print(f"SCENARIO: {mode.value.upper()}")
    print("-" * 70)

    print_stage(engine)
    engine.play()
    while engine.is_playing and scheduler.run_next():
        if engine.is_playing:
            print_stage(engine)

    print(f"\n  Status: {engine.boot_status.text}")
    print(f"  Elapsed (virtual): {scheduler.now_ms:.0f} ms")
    return engine


def print_logs(engine: BootSequenceEngine) -> None:
    print(f"\n  Boot log ({len(engine.logs)} entries):")
    for entry in engine.logs:
        print(f"    {entry.display_time()} [{entry.level.value:<7}] S{entry.stage} {entry.message}")


def main():
    configure_logging()
    set_session_id()

    print("=" * 70)
    print("Secure Boot Simulator - Walkthrough")
    print("=" * 70)

    normal = play_through(Mode.NORMAL)
    print_logs(normal)

    tampered = play_through(Mode.TAMPERED)
    print_logs(tampered)

    # =========================================================================
    # ATTESTATION
    # =========================================================================

    print("\n" + "-" * 70)
    print("ATTESTATION")
    print("-" * 70)

    demo = AttestationDemo(chunk_delay_ms=20, on_narration=lambda line: print(f"  {line}"))
    result = asyncio.run(demo.run())

    # A host may route a failed verification into the tampered scenario
    engine = BootSequenceEngine(scheduler=ManualScheduler())
    if not result.verified:
        engine.set_mode(Mode.TAMPERED)
    engine.go_to_stage(engine.last_stage)

    print(f"\n  Verified: {result.verified}")
    print(f"  Boot outcome: {engine.boot_status.text}")

    print("\n" + "=" * 70)
    print("Example Complete")
    print("=" * 70)


if __name__ == "__main__":
    main()
