"""
Attestation Demo

Narrated hash -> keygen -> sign -> verify pipeline over a firmware
identifier.

The pipeline runs strictly in order and suspends between steps so a
host can render progress as it happens. A failed verification is a
normal result (verified=False). A failure inside the crypto provider
is an AttestationSetupError and fails the whole run.

The chunk narration is cosmetic: the digest is always computed over the
entire input in one call, independent of the chunk count.
"""

import asyncio
import base64
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .config import ATTESTATION_CHUNKS, CHUNK_DELAY_MS, DEFAULT_FIRMWARE_ID
from .logging_config import event_log
from .signing import CryptoProvider, NaClCryptoProvider

logger = logging.getLogger(__name__)

_DIGEST_LABELS = {
    "sha256": "SHA-256",
    "sha384": "SHA-384",
    "sha512": "SHA-512",
    "sha3_256": "SHA3-256",
    "blake2b": "BLAKE2b",
    "blake2s": "BLAKE2s",
}


class AttestationPhase(str, Enum):
    """Where the pipeline currently is."""
    IDLE = "idle"
    HASHING = "hashing"
    SIGNING = "signing"
    VERIFYING = "verifying"
    DONE = "done"
    FAILED = "failed"


class AttestationSetupError(RuntimeError):
    """The crypto environment could not complete a pipeline step."""

    def __init__(self, step: str, cause: BaseException):
        self.step = step
        self.cause = cause
        super().__init__(f"Attestation setup failed during {step}: {type(cause).__name__}: {cause}")


@dataclass(frozen=True)
class AttestationResult:
    """Outcome of one attestation run."""
    digest: bytes
    verified: bool
    signature: bytes
    public_key: bytes
    log: Tuple[str, ...]
    digest_algorithm: str = "sha256"
    signature_algorithm: str = "Ed25519"

    @property
    def digest_hex(self) -> str:
        return self.digest.hex()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verified": self.verified,
            "digest_hex": self.digest_hex,
            "digest_algorithm": self.digest_algorithm,
            "signature_algorithm": self.signature_algorithm,
            "signature": base64.b64encode(self.signature).decode('utf-8'),
            "public_key": base64.b64encode(self.public_key).decode('utf-8'),
            "log": list(self.log),
        }


class AttestationDemo:
    """
    Illustrative firmware attestation.

    One run at a time: starting a second run while one is in flight
    raises RuntimeError. Runs cannot be cancelled once started.

    Usage:
        demo = AttestationDemo(on_narration=print)
        result = await demo.run(b"firmware-v1")
        result.verified, result.digest_hex
    """

    def __init__(
        self,
        provider: Optional[CryptoProvider] = None,
        chunks: int = ATTESTATION_CHUNKS,
        chunk_delay_ms: float = CHUNK_DELAY_MS,
        on_narration: Optional[Callable[[str], None]] = None,
        on_complete: Optional[Callable[[AttestationResult], None]] = None
    ):
        if chunks < 1:
            raise ValueError(f"chunks must be >= 1, got {chunks}")
        if chunk_delay_ms < 0:
            raise ValueError(f"chunk_delay_ms must be >= 0, got {chunk_delay_ms}")

        self.provider = provider or NaClCryptoProvider()
        self.chunks = chunks
        self.chunk_delay_ms = chunk_delay_ms
        self.on_narration = on_narration
        self.on_complete = on_complete

        self._running = False
        self._clear()

    @property
    def phase(self) -> AttestationPhase:
        return self._phase

    @property
    def progress(self) -> int:
        return self._progress

    @property
    def log(self) -> Tuple[str, ...]:
        """Narration so far; grows while a run is in flight."""
        return tuple(self._log)

    @property
    def digest_hex(self) -> Optional[str]:
        return self._digest_hex

    @property
    def verified(self) -> Optional[bool]:
        return self._result.verified if self._result else None

    @property
    def result(self) -> Optional[AttestationResult]:
        return self._result

    @property
    def running(self) -> bool:
        return self._running

    def reset(self) -> None:
        """Return to idle, dropping log, progress and result."""
        if self._running:
            raise RuntimeError("Cannot reset while an attestation run is in progress")
        self._clear()

    async def run(self, data: Union[bytes, str, None] = None) -> AttestationResult:
        """
        Run the full pipeline.

        Args:
            data: Firmware bytes or identifier string (UTF-8 encoded);
                  defaults to the configured demo firmware id

        Returns:
            AttestationResult; verified=False is a valid outcome

        Raises:
            AttestationSetupError: A crypto primitive failed
            RuntimeError: Another run is already in progress
        """
        if self._running:
            raise RuntimeError("An attestation run is already in progress")

        if data is None:
            data = DEFAULT_FIRMWARE_ID
        payload = data.encode('utf-8') if isinstance(data, str) else bytes(data)

        self._running = True
        try:
            return await self._pipeline(payload)
        finally:
            self._running = False

    async def _pipeline(self, payload: bytes) -> AttestationResult:
        provider = self.provider
        self._clear()

        self._phase = AttestationPhase.HASHING
        self._narrate("Starting firmware hashing...")

        chunk_size = math.ceil(len(payload) / self.chunks)
        for i in range(self.chunks):
            await asyncio.sleep(self.chunk_delay_ms / 1000.0)
            pct = math.floor((i + 1) / self.chunks * 100 + 0.5)
            self._progress = pct
            logger.debug("Chunk %d covers bytes %d..%d", i + 1, i * chunk_size,
                         min((i + 1) * chunk_size, len(payload)))
            self._narrate(f"Processed chunk {i + 1}/{self.chunks} ({pct}%)")

        label = _DIGEST_LABELS.get(provider.digest_algorithm, provider.digest_algorithm.upper())
        self._narrate(f"Computing final {label} digest...")
        digest = await self._step("hashing", provider.hash, payload)
        self._digest_hex = digest.hex()
        self._narrate(f"Digest (hex): {self._digest_hex}")

        self._phase = AttestationPhase.SIGNING
        self._narrate(f"Generating ephemeral {provider.signature_algorithm} key pair...")
        key_pair = await self._step("key generation", provider.generate_keypair)

        self._narrate("Signing digest with private key...")
        signature = await self._step("signing", provider.sign, digest, key_pair)
        self._narrate(f"Signature created ({len(signature)} bytes)")

        self._phase = AttestationPhase.VERIFYING
        self._narrate("Verifying signature with public key...")
        verified = bool(await self._step(
            "verification", provider.verify, digest, signature, key_pair.verify_key
        ))

        if verified:
            self._narrate("Signature verification: SUCCESS")
            self._phase = AttestationPhase.DONE
            self._progress = 100
        else:
            self._narrate("Signature verification: FAILED")
            self._phase = AttestationPhase.FAILED

        self._result = AttestationResult(
            digest=digest,
            verified=verified,
            signature=signature,
            public_key=key_pair.verify_key,
            log=tuple(self._log),
            digest_algorithm=provider.digest_algorithm,
            signature_algorithm=provider.signature_algorithm,
        )
        event_log.attestation_complete(self._digest_hex, verified)

        if self.on_complete:
            self.on_complete(self._result)
        return self._result

    async def _step(self, step: str, fn: Callable[..., Any], *args: Any) -> Any:
        """Suspend, then run one provider call; provider errors become setup errors."""
        await asyncio.sleep(0)
        try:
            return fn(*args)
        except Exception as exc:
            self._phase = AttestationPhase.FAILED
            self._narrate(f"Setup error during {step}: {exc}")
            event_log.attestation_setup_failed(step, f"{type(exc).__name__}: {exc}")
            raise AttestationSetupError(step, exc) from exc

    def _narrate(self, line: str) -> None:
        self._log.append(line)
        logger.debug("attestation: %s", line)
        if self.on_narration:
            self.on_narration(line)

    def _clear(self) -> None:
        self._phase = AttestationPhase.IDLE
        self._progress = 0
        self._log: List[str] = []
        self._digest_hex: Optional[str] = None
        self._result: Optional[AttestationResult] = None


def run_attestation(data: Union[bytes, str, None] = None, **kwargs: Any) -> AttestationResult:
    """Run one attestation to completion from synchronous code."""
    return asyncio.run(AttestationDemo(**kwargs).run(data))
