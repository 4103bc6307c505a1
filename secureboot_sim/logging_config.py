"""
Logging configuration for the secure boot simulator.

Provides structured JSON logging so a hosting layer can collect
a replayable trace of everything the simulation did.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Optional

from . import config

# Context variable for session ID tracking
session_id_var: ContextVar[str] = ContextVar('session_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs one JSON object per record, with any simulation
    event fields merged in.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        session_id = session_id_var.get()
        if session_id:
            log_data["session_id"] = session_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class SimulationEventLogger:
    """
    Specialized logger for simulation events.

    Records stage transitions, playback changes and attestation
    outcomes as structured events.
    """

    def __init__(self, name: str = "secureboot_sim.events"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        """Internal logging method with extra fields."""
        if not self._logger.isEnabledFor(level):
            return

        extra = {
            "event_type": event_type,
            "session_id": session_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def stage_changed(self, previous: int, current: int, mode: str) -> None:
        """Log a stage transition."""
        self._log(
            logging.INFO,
            "STAGE_CHANGED",
            previous_stage=previous,
            current_stage=current,
            mode=mode,
            message=f"Stage {previous} -> {current} ({mode})"
        )

    def playback_changed(self, is_playing: bool, stage: int) -> None:
        """Log play/pause."""
        self._log(
            logging.DEBUG,
            "PLAYBACK_CHANGED",
            is_playing=is_playing,
            current_stage=stage,
            message="playing" if is_playing else "paused"
        )

    def mode_changed(self, previous: str, current: str, stage: int) -> None:
        """Log a mode switch."""
        level = logging.WARNING if current == "tampered" else logging.INFO
        self._log(
            level,
            "MODE_CHANGED",
            previous_mode=previous,
            mode=current,
            current_stage=stage,
            message=f"Mode {previous} -> {current}"
        )

    def attestation_complete(self, digest_hex: str, verified: bool) -> None:
        """Log the outcome of an attestation run."""
        level = logging.INFO if verified else logging.WARNING
        self._log(
            level,
            "ATTESTATION_COMPLETE",
            digest=digest_hex,
            verified=verified,
            message=f"Attestation {'verified' if verified else 'failed verification'}"
        )

    def attestation_setup_failed(self, step: str, error: str) -> None:
        """Log a crypto environment failure."""
        self._log(
            logging.ERROR,
            "ATTESTATION_SETUP_FAILED",
            step=step,
            error=error,
            message=f"Attestation setup failed during {step}"
        )


def configure_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL);
               defaults to SECUREBOOT_LOG_LEVEL, or DEBUG when
               SECUREBOOT_DEBUG is set
        json_format: Use JSON formatting (default: SECUREBOOT_LOG_JSON)
        log_file: Optional file path for log output
    """
    if level is None:
        level = "DEBUG" if config.is_debug() else config.LOG_LEVEL
    if json_format is None:
        json_format = config.LOG_JSON

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_session_id(session_id: Optional[str] = None) -> str:
    """
    Set the session ID for the current context.

    Args:
        session_id: Session ID to set, or None to generate one

    Returns:
        The session ID that was set
    """
    if session_id is None:
        session_id = str(uuid.uuid4())
    session_id_var.set(session_id)
    return session_id


def get_session_id() -> str:
    """Get the current session ID."""
    return session_id_var.get()


# Global event logger instance
event_log = SimulationEventLogger()
