"""
Boot Sequence Engine

The state machine that walks the simulated SoC through its boot stages.

The engine owns a single EngineState. Every operation replaces that
state wholesale, so callers only ever see immutable snapshots.

Operation policy:
- Out-of-range seeks and invalid settings are dropped, never raised
- Every state change cancels the pending auto-advance timer first,
  then re-arms it if playback is still active
- A timer callback tagged with an older generation is ignored
- If the scheduler cannot arm a timer (no running event loop), playback
  stops with a warning instead of raising
"""

import logging
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .boot_log import BootLog, LogEntry
from .config import DEFAULT_ANIMATION_SPEED
from .hardware import (
    ModuleActivity,
    TimelineEntry,
    bus_activity,
    module_activity,
    progress_percent,
    timeline,
)
from .logging_config import event_log
from .projection import (
    BootStatus,
    Registers,
    SystemFlags,
    SystemSnapshot,
    boot_status,
    update_system_state,
)
from .scheduling import AsyncioScheduler, Scheduler, TimerHandle
from .stages import BootStage, Mode, build_stage_table, coerce_mode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineState:
    """
    Complete engine state.

    `system` is always update_system_state(current_stage, mode).
    """
    current_stage: int
    is_playing: bool
    mode: Mode
    animation_speed: float
    system: SystemSnapshot

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_stage": self.current_stage,
            "is_playing": self.is_playing,
            "mode": self.mode.value,
            "animation_speed": self.animation_speed,
            **self.system.to_dict(),
        }


def _valid_speed(speed: Any) -> bool:
    return isinstance(speed, (int, float)) and not isinstance(speed, bool) and speed > 0


class BootSequenceEngine:
    """
    Secure boot stage sequencer.

    Drives the fixed 8-stage table, keeps the register/memory/flag
    projection in step with the current stage and mode, and appends a
    log batch every time the stage or mode changes.

    Usage:
        engine = BootSequenceEngine(mode="tampered", scheduler=ManualScheduler())
        engine.go_to_stage(5)
        engine.flags.tamperDetected   # True
    """

    def __init__(
        self,
        mode: Union[Mode, str] = Mode.NORMAL,
        animation_speed: Optional[float] = None,
        scheduler: Optional[Scheduler] = None,
        boot_log: Optional[BootLog] = None
    ):
        """
        Args:
            mode: Boot scenario
            animation_speed: Multiplier applied to stage durations (> 0)
            scheduler: Timer source for auto-advance (default: asyncio loop)
            boot_log: Log accumulator to append to (default: a new BootLog)

        Raises:
            ValueError: Unknown mode or non-positive animation speed
        """
        mode = coerce_mode(mode)
        if animation_speed is None:
            animation_speed = DEFAULT_ANIMATION_SPEED
        if not _valid_speed(animation_speed):
            raise ValueError(f"animation_speed must be > 0, got {animation_speed!r}")

        self._stages: Tuple[BootStage, ...] = build_stage_table(mode)
        self._scheduler = scheduler or AsyncioScheduler()
        self._log = boot_log if boot_log is not None else BootLog()
        self._timer: Optional[TimerHandle] = None
        self._generation = 0

        self._state = EngineState(
            current_stage=0,
            is_playing=False,
            mode=mode,
            animation_speed=float(animation_speed),
            system=update_system_state(0, mode),
        )
        self._log.record(0, mode)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def current_stage(self) -> int:
        return self._state.current_stage

    @property
    def stage_data(self) -> BootStage:
        return self._stages[self._state.current_stage]

    @property
    def stages(self) -> Tuple[BootStage, ...]:
        return self._stages

    @property
    def total_stages(self) -> int:
        return len(self._stages)

    @property
    def last_stage(self) -> int:
        return len(self._stages) - 1

    @property
    def is_playing(self) -> bool:
        return self._state.is_playing

    @property
    def mode(self) -> Mode:
        return self._state.mode

    @property
    def animation_speed(self) -> float:
        return self._state.animation_speed

    @property
    def registers(self) -> Registers:
        return self._state.system.registers

    @property
    def memory(self) -> Mapping[str, str]:
        return self._state.system.memory

    @property
    def flags(self) -> SystemFlags:
        return self._state.system.flags

    @property
    def logs(self) -> Tuple[LogEntry, ...]:
        return self._log.entries

    @property
    def boot_log(self) -> BootLog:
        return self._log

    @property
    def boot_status(self) -> BootStatus:
        return boot_status(self.flags, self.mode, self.current_stage, self.total_stages)

    @property
    def modules(self) -> List[ModuleActivity]:
        return module_activity(self.current_stage, self.mode, self.flags)

    @property
    def bus_signals(self) -> Mapping[str, bool]:
        return MappingProxyType(bus_activity(self.current_stage, self.mode))

    @property
    def timeline(self) -> List[TimelineEntry]:
        return timeline(self.current_stage, self.mode, self.total_stages)

    @property
    def progress(self) -> int:
        return progress_percent(self.current_stage, self.total_stages)

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def play(self) -> None:
        """Start auto-advance. No effect if already playing."""
        if self._state.is_playing:
            return
        self._cancel_timer()
        if not self._arm_timer():
            return
        self._state = replace(self._state, is_playing=True)
        event_log.playback_changed(True, self.current_stage)

    def pause(self) -> None:
        """Stop auto-advance and cancel any pending timer."""
        self._cancel_timer()
        if not self._state.is_playing:
            return
        self._state = replace(self._state, is_playing=False)
        event_log.playback_changed(False, self.current_stage)

    def toggle_play(self) -> None:
        if self._state.is_playing:
            self.pause()
        else:
            self.play()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next_stage(self) -> None:
        """Advance one stage. At the last stage this only stops playback."""
        if self.current_stage >= self.last_stage:
            self.pause()
            return
        self._move_to(self.current_stage + 1)

    def prev_stage(self) -> None:
        """Step back one stage. No-op at stage 0."""
        if self.current_stage <= 0:
            return
        self._move_to(self.current_stage - 1)

    def go_to_stage(self, stage: int) -> None:
        """Jump to a stage. Out-of-range requests are dropped."""
        if isinstance(stage, bool) or not isinstance(stage, int) or not 0 <= stage < self.total_stages:
            logger.debug("Ignoring seek to invalid stage %r", stage)
            return
        self._move_to(stage)

    def reset(self) -> None:
        """Pause and return to stage 0."""
        self.pause()
        self._move_to(0)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_mode(self, mode: Union[Mode, str]) -> None:
        """
        Switch the boot scenario, keeping the stage position.

        Rebuilds the stage text, recomputes the projection and logs a
        fresh batch for the current stage. Unknown modes are dropped.
        """
        try:
            mode = coerce_mode(mode)
        except ValueError:
            logger.warning("Ignoring unknown mode %r", mode)
            return
        if mode == self._state.mode:
            return

        self._cancel_timer()
        previous = self._state.mode
        self._stages = build_stage_table(mode)
        self._state = replace(
            self._state,
            mode=mode,
            system=update_system_state(self.current_stage, mode),
        )
        self._log.record(self.current_stage, mode)
        event_log.mode_changed(previous.value, mode.value, self.current_stage)

        if self._state.is_playing:
            self._arm_timer()

    def set_animation_speed(self, speed: float) -> None:
        """Change playback speed. Non-positive values are dropped."""
        if not _valid_speed(speed):
            logger.warning("Ignoring invalid animation speed %r", speed)
            return
        if float(speed) == self._state.animation_speed:
            return

        self._cancel_timer()
        self._state = replace(self._state, animation_speed=float(speed))
        if self._state.is_playing:
            self._arm_timer()

    def clear_logs(self) -> None:
        """Empty the accumulated log. The stage position is unaffected."""
        self._log.clear()

    def to_dict(self) -> Dict[str, Any]:
        d = self._state.to_dict()
        d.update({
            "stage": self.stage_data.to_dict(),
            "total_stages": self.total_stages,
            "status": self.boot_status.to_dict(),
            "progress": self.progress,
        })
        return d

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _move_to(self, stage: int) -> None:
        self._cancel_timer()
        previous = self._state.current_stage
        mode = self._state.mode

        self._state = replace(
            self._state,
            current_stage=stage,
            system=update_system_state(stage, mode),
        )

        if stage != previous:
            self._log.record(stage, mode)
            event_log.stage_changed(previous, stage, mode.value)

        if self._state.is_playing:
            self._arm_timer()

    def _arm_timer(self) -> bool:
        """Schedule the next auto-advance. On scheduler failure, stop playback."""
        self._generation += 1
        generation = self._generation
        delay_ms = self.stage_data.duration / self._state.animation_speed
        try:
            self._timer = self._scheduler.call_later(delay_ms, lambda: self._on_timer(generation))
        except RuntimeError as e:
            logger.warning("Auto-advance unavailable, playback stopped: %s", e)
            self._timer = None
            if self._state.is_playing:
                self._state = replace(self._state, is_playing=False)
                event_log.playback_changed(False, self.current_stage)
            return False
        return True

    def _cancel_timer(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, generation: int) -> None:
        if generation != self._generation or not self._state.is_playing:
            logger.debug("Dropping stale auto-advance timer (generation %d)", generation)
            return
        self._timer = None

        if self.current_stage < self.last_stage:
            self._move_to(self.current_stage + 1)
        else:
            self._state = replace(self._state, is_playing=False)
            event_log.playback_changed(False, self.current_stage)
