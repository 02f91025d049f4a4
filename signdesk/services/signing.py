from __future__ import annotations

import base64
import binascii
import re
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Sequence
from uuid import uuid4

from signdesk.core.errors import IdentityFormatInvalid, InvalidSessionState, NotFound, ValidationFailed
from signdesk.core.logging_setup import logger
from signdesk.models.document import (
    TYPED_SIGNATURE_STYLES,
    AadhaarSignature,
    Document,
    DocumentStatus,
    DrawnSignature,
    DscSignature,
    SignMethod,
    Signature,
    TypedSignature,
)
from signdesk.models.user import Principal
from signdesk.services.document_store import DocumentStore

IDENTITY_METHODS = {SignMethod.AADHAAR, SignMethod.DSC}
_DATA_URL_RE = re.compile(r"^data:image/[\w.+-]+;base64,(?P<payload>.+)$", re.DOTALL)


class SessionState(str, Enum):
    METHOD_SELECTION = "method_selection"
    CAPTURING = "capturing"
    AWAITING_CHALLENGE = "awaiting_challenge"
    COMMITTED = "committed"


Point = tuple[float, float]


@dataclass
class CaptureSurface:
    width: int = 500
    height: int = 200
    strokes: list[list[Point]] = field(default_factory=list)
    image: str | None = None

    def add_stroke(self, points: Iterable[Sequence[float]]) -> None:
        stroke = [(float(x), float(y)) for x, y in points]
        # Touch events that never produced a point do not mark the pad.
        if stroke:
            self.strokes.append(stroke)

    def set_image(self, data_url: str) -> None:
        match = _DATA_URL_RE.match(data_url.strip())
        if not match:
            raise ValidationFailed("Signature image must be an image data URL")
        try:
            content = base64.b64decode(match.group("payload"), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationFailed("Signature image is not valid base64") from exc
        if not content:
            raise ValidationFailed("Signature image is empty")
        self.image = data_url.strip()

    def clear(self) -> None:
        self.strokes.clear()
        self.image = None

    def is_empty(self) -> bool:
        return self.image is None and not self.strokes

    def to_data_url(self) -> str:
        if self.image is not None:
            return self.image
        paths = []
        for stroke in self.strokes:
            if len(stroke) == 1:
                x, y = stroke[0]
                paths.append(f'<circle cx="{x:g}" cy="{y:g}" r="1.5" fill="black"/>')
            else:
                coords = " ".join(f"{x:g},{y:g}" for x, y in stroke)
                paths.append(
                    f'<polyline points="{coords}" fill="none" stroke="black" '
                    f'stroke-width="2" stroke-linecap="round" stroke-linejoin="round"/>'
                )
        svg = (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{self.width}" height="{self.height}" '
            f'viewBox="0 0 {self.width} {self.height}">{"".join(paths)}</svg>'
        )
        return "data:image/svg+xml;base64," + base64.b64encode(svg.encode("utf-8")).decode("ascii")


class SigningSession:
    """
    One principal signing one document.

    method_selection -> capturing -> (awaiting_challenge) -> committed

    The store is written exactly once, on entering ``committed``. The identity
    challenge is simulated: the code is format-checked and never verified.
    Every transition runs under the session lock, so concurrent requests on one
    session are applied one at a time.
    """

    def __init__(
        self,
        document_id: str,
        principal: Principal,
        store: DocumentStore,
        reference_length: int = 12,
        challenge_length: int = 6,
        session_id: str | None = None,
    ) -> None:
        self.id = session_id or uuid4().hex
        self.document_id = document_id
        self.principal = principal
        self.store = store
        self.reference_length = reference_length
        self.challenge_length = challenge_length

        self.state = SessionState.METHOD_SELECTION
        self.method: SignMethod | None = None
        self.surface = CaptureSurface()
        self.typed_name = ""
        self.typed_style = TYPED_SIGNATURE_STYLES[0]
        self.reference_number = ""
        self.signature: Signature | None = None
        self.touched_at = 0.0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self.state == SessionState.COMMITTED:
            raise InvalidSessionState("Signing session already committed")

    def _ensure_capturing(self, *methods: SignMethod) -> None:
        self._ensure_open()
        if self.state != SessionState.CAPTURING or self.method not in methods:
            allowed = ", ".join(method.value for method in methods)
            raise InvalidSessionState(f"Operation requires method {allowed} while capturing")

    # ------------------------------------------------------------------
    # Method selection
    # ------------------------------------------------------------------

    def select_method(self, method: SignMethod | str) -> None:
        with self._lock:
            self._ensure_open()
            method = SignMethod(method)
            if self.state == SessionState.AWAITING_CHALLENGE:
                logger.info("Signing session %s: pending challenge abandoned", self.id)
            self.method = method
            self.state = SessionState.CAPTURING

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def add_stroke(self, points: Iterable[Sequence[float]]) -> None:
        with self._lock:
            self._ensure_capturing(SignMethod.DRAW)
            self.surface.add_stroke(points)

    def set_image(self, data_url: str) -> None:
        with self._lock:
            self._ensure_capturing(SignMethod.DRAW)
            self.surface.set_image(data_url)

    def clear(self) -> None:
        with self._lock:
            self._ensure_capturing(SignMethod.DRAW)
            self.surface.clear()

    def set_typed(self, name: str, style: str | None = None) -> None:
        with self._lock:
            self._ensure_capturing(SignMethod.TYPE)
            if style is not None and style not in TYPED_SIGNATURE_STYLES:
                raise ValidationFailed(f"Unknown signature style {style!r}")
            self.typed_name = name
            if style is not None:
                self.typed_style = style

    def set_reference(self, number: str) -> None:
        with self._lock:
            self._ensure_capturing(*IDENTITY_METHODS)
            self.reference_number = (number or "").strip()

    # ------------------------------------------------------------------
    # Identity challenge
    # ------------------------------------------------------------------

    def _reference_is_valid(self) -> bool:
        return bool(re.fullmatch(rf"\d{{{self.reference_length}}}", self.reference_number))

    def request_challenge(self) -> None:
        with self._lock:
            self._ensure_capturing(*IDENTITY_METHODS)
            if not self._reference_is_valid():
                raise IdentityFormatInvalid(
                    f"Please enter a valid {self.reference_length}-digit {self.method.value} number"
                )
            logger.info(
                "Signing session %s: simulated %s OTP requested for reference ****%s",
                self.id,
                self.method.value,
                self.reference_number[-4:],
            )
            self.state = SessionState.AWAITING_CHALLENGE

    def submit_challenge(self, code: str) -> Document:
        with self._lock:
            self._ensure_open()
            if self.state != SessionState.AWAITING_CHALLENGE:
                raise InvalidSessionState("No challenge pending for this session")
            if not re.fullmatch(rf"\d{{{self.challenge_length}}}", (code or "").strip()):
                raise ValidationFailed(f"Please enter the {self.challenge_length}-digit code")
            signature: Signature = AadhaarSignature() if self.method == SignMethod.AADHAAR else DscSignature()
            return self._commit(signature)

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def build_signature(self) -> Signature:
        if self.method == SignMethod.DRAW:
            if self.surface.is_empty():
                raise ValidationFailed("Please draw your signature before completing")
            return DrawnSignature(image=self.surface.to_data_url())
        if self.method == SignMethod.TYPE:
            if not self.typed_name.strip():
                raise ValidationFailed("Please enter your name before completing")
            return TypedSignature(name=self.typed_name.strip(), style=self.typed_style)
        raise InvalidSessionState("Identity-bound methods complete through the challenge step")

    def commit(self) -> Document:
        with self._lock:
            self._ensure_capturing(SignMethod.DRAW, SignMethod.TYPE)
            return self._commit(self.build_signature())

    def _commit(self, signature: Signature) -> Document:
        self.signature = signature
        self.state = SessionState.COMMITTED
        document = self.store.update_status(self.document_id, DocumentStatus.SIGNED, signature, self.principal)
        if document is None:
            raise NotFound(f"Document {self.document_id} not found")
        logger.info(
            "Signing session %s committed %s signature on document %s for %s",
            self.id,
            signature.kind,
            self.document_id,
            self.principal.email,
        )
        return document


class SigningSessionRegistry:
    """
    Process-local map of open signing sessions.

    ``start`` drops committed sessions, sessions whose document is gone,
    sessions idle for longer than ``idle_timeout`` seconds and the caller's
    previous session on the same document. ``get`` refuses an
    idle session; a committed one stays reachable until the next ``start``.
    """

    def __init__(
        self,
        store: DocumentStore,
        reference_length: int = 12,
        challenge_length: int = 6,
        idle_timeout: float = 1800,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.reference_length = reference_length
        self.challenge_length = challenge_length
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._sessions: dict[str, SigningSession] = {}
        self._lock = threading.Lock()

    @property
    def open_sessions(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _is_stale(self, session: SigningSession, now: float) -> bool:
        return (
            session.state == SessionState.COMMITTED
            or now - session.touched_at > self.idle_timeout
            or self.store.get(session.document_id) is None
        )

    def prune(self) -> int:
        now = self._clock()
        with self._lock:
            stale = [key for key, session in self._sessions.items() if self._is_stale(session, now)]
            for key in stale:
                del self._sessions[key]
        if stale:
            logger.info("Dropped %s stale signing session(s)", len(stale))
        return len(stale)

    def start(self, document_id: str, principal: Principal) -> SigningSession:
        if self.store.get(document_id) is None:
            raise NotFound(f"Document {document_id} not found")
        self.prune()
        session = SigningSession(
            document_id,
            principal,
            self.store,
            reference_length=self.reference_length,
            challenge_length=self.challenge_length,
        )
        session.touched_at = self._clock()
        with self._lock:
            # One open session per principal and document; a restart replaces it.
            superseded = [
                key
                for key, existing in self._sessions.items()
                if existing.document_id == document_id and existing.principal.email == principal.email
            ]
            for key in superseded:
                del self._sessions[key]
            self._sessions[session.id] = session
        return session

    def get(self, session_id: str, principal: Principal) -> SigningSession:
        now = self._clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None and now - session.touched_at > self.idle_timeout:
                del self._sessions[session_id]
                session = None
        if session is None or session.principal.email != principal.email:
            raise NotFound(f"Signing session {session_id} not found")
        session.touched_at = now
        return session
