"""
Stage Table and Projection Test Suite

Covers:
- Fixed 8-stage table with mode-dependent text for stages 5-7
- Register, memory and flag projection as a pure function of (stage, mode)
- Boot status classification
"""

import unittest

from secureboot_sim import (
    BootStage,
    Mode,
    STAGE_COUNT,
    boot_status,
    build_stage_table,
    update_system_state,
)


class TestStageTable(unittest.TestCase):
    """Stage table construction."""

    def test_eight_dense_stages(self):
        """Ids are 0..7 and equal to their index."""
        for mode in Mode:
            stages = build_stage_table(mode)
            self.assertEqual(len(stages), 8)
            self.assertEqual(STAGE_COUNT, 8)
            for index, stage in enumerate(stages):
                self.assertIsInstance(stage, BootStage)
                self.assertEqual(stage.id, index)
                self.assertGreater(stage.duration, 0)

    def test_modes_differ_only_from_stage_five(self):
        """Stages 0-4 are identical across modes; 5-7 carry different text."""
        normal = build_stage_table(Mode.NORMAL)
        tampered = build_stage_table(Mode.TAMPERED)

        for stage_id in range(5):
            self.assertEqual(normal[stage_id], tampered[stage_id])

        for stage_id in (5, 6, 7):
            self.assertNotEqual(normal[stage_id].description, tampered[stage_id].description)
            self.assertNotEqual(normal[stage_id].instruction, tampered[stage_id].instruction)
            self.assertEqual(normal[stage_id].duration, tampered[stage_id].duration)

    def test_tampered_stage_names(self):
        tampered = build_stage_table("tampered")
        self.assertEqual(tampered[5].name, "Verification Complete")
        self.assertEqual(tampered[5].description, "Signature verification failed")
        self.assertEqual(tampered[6].name, "Safe Mode Entry")
        self.assertEqual(tampered[7].name, "Safe Mode Active")
        self.assertEqual(tampered[7].instruction, "WFI ; halt")

    def test_normal_stage_names(self):
        normal = build_stage_table()
        self.assertEqual(normal[6].name, "Execution Transfer")
        self.assertEqual(normal[7].name, "Boot Complete")
        self.assertEqual(normal[7].instruction, "OS_main")

    def test_unknown_mode_rejected(self):
        with self.assertRaises(ValueError):
            build_stage_table("bricked")

    def test_to_dict(self):
        d = build_stage_table()[1].to_dict()
        self.assertEqual(d["name"], "ROM Initialization")
        self.assertEqual(d["instruction"], "LDR PC, =0x00000000")
        self.assertEqual(d["duration"], 1500)


class TestProjection(unittest.TestCase):
    """Register, memory and flag derivation."""

    def test_registers(self):
        for stage in range(STAGE_COUNT):
            regs = update_system_state(stage, Mode.NORMAL).registers
            self.assertEqual(regs.PC, stage * 0x100)
            self.assertEqual(regs.R0, 0x12345678 if stage >= 2 else 0)
            self.assertEqual(regs.R1, 0x00010000 if stage >= 3 else 0)
            self.assertEqual(regs.SP, 0x20008000)
            self.assertEqual(regs.CPSR, 0x000001D3)

    def test_register_hex_rendering(self):
        regs = update_system_state(3, Mode.NORMAL).registers.to_hex()
        self.assertEqual(regs["PC"], "0x00000300")
        self.assertEqual(regs["R1"], "0x00010000")

    def test_progressive_flags(self):
        for mode in Mode:
            for stage in range(STAGE_COUNT):
                flags = update_system_state(stage, mode).flags
                self.assertTrue(flags.powerGood)
                self.assertEqual(flags.romActive, stage >= 1)
                self.assertEqual(flags.keyLoaded, stage >= 2)

    def test_mode_isolation(self):
        """Tampered never validates; normal never detects tampering."""
        for stage in range(STAGE_COUNT):
            tampered = update_system_state(stage, Mode.TAMPERED).flags
            self.assertFalse(tampered.signatureValid)
            self.assertFalse(tampered.bootComplete)

            normal = update_system_state(stage, Mode.NORMAL).flags
            self.assertFalse(normal.tamperDetected)
            self.assertFalse(normal.safeMode)

    def test_tamper_flags(self):
        self.assertFalse(update_system_state(4, Mode.TAMPERED).flags.tamperDetected)
        self.assertTrue(update_system_state(5, Mode.TAMPERED).flags.tamperDetected)
        self.assertFalse(update_system_state(5, Mode.TAMPERED).flags.safeMode)
        self.assertTrue(update_system_state(6, Mode.TAMPERED).flags.safeMode)

    def test_normal_completion_flags(self):
        self.assertFalse(update_system_state(4, Mode.NORMAL).flags.signatureValid)
        self.assertTrue(update_system_state(5, Mode.NORMAL).flags.signatureValid)
        self.assertFalse(update_system_state(6, Mode.NORMAL).flags.bootComplete)
        self.assertTrue(update_system_state(7, Mode.NORMAL).flags.bootComplete)

    def test_memory_before_load(self):
        memory = update_system_state(2, Mode.TAMPERED).memory
        self.assertEqual(memory["0x00010000"], "Tampered Bootloader")
        self.assertEqual(memory["0x20000000"], "SRAM")
        self.assertNotIn("0x30000000", memory)

    def test_memory_after_load(self):
        normal = update_system_state(3, Mode.NORMAL).memory
        self.assertEqual(normal["0x00010000"], "Valid Bootloader")
        self.assertEqual(normal["0x20000000"], "Bootloader loaded")
        self.assertEqual(normal["0x30000000"], "Not loaded")

        self.assertEqual(update_system_state(7, Mode.NORMAL).memory["0x30000000"], "OS/Application")
        tampered = update_system_state(7, Mode.TAMPERED).memory
        self.assertEqual(tampered["0x20000000"], "Tampered bootloader (blocked)")
        self.assertEqual(tampered["0x30000000"], "Safe mode handler")

    def test_memory_is_read_only(self):
        memory = update_system_state(0, Mode.NORMAL).memory
        with self.assertRaises(TypeError):
            memory["0x00000000"] = "patched"

    def test_deterministic(self):
        """Same inputs, equal snapshots."""
        for mode in Mode:
            for stage in range(STAGE_COUNT):
                a = update_system_state(stage, mode)
                b = update_system_state(stage, mode)
                self.assertEqual(a.registers, b.registers)
                self.assertEqual(a.flags, b.flags)
                self.assertEqual(dict(a.memory), dict(b.memory))
                self.assertEqual(a.to_dict(), b.to_dict())


class TestBootStatus(unittest.TestCase):
    """Status banner classification."""

    def _status(self, stage, mode):
        flags = update_system_state(stage, mode).flags
        return boot_status(flags, mode, stage)

    def test_powered_down(self):
        status = self._status(0, Mode.NORMAL)
        self.assertEqual(status.text, "System Powered Down")
        self.assertEqual(status.tone, "idle")

    def test_in_progress(self):
        self.assertEqual(self._status(3, Mode.NORMAL).text, "Boot Stage 3 - In Progress")
        self.assertEqual(self._status(4, Mode.TAMPERED).tone, "progress")

    def test_complete(self):
        status = self._status(7, Mode.NORMAL)
        self.assertEqual(status.text, "BOOT COMPLETE - SECURE")
        self.assertEqual(status.tone, "secure")

    def test_tampering_detected(self):
        for stage in (5, 6, 7):
            status = self._status(stage, Mode.TAMPERED)
            self.assertEqual(status.text, "BOOT FAILED - TAMPERING DETECTED")
            self.assertEqual(status.tone, "danger")


if __name__ == "__main__":
    unittest.main(verbosity=2)
