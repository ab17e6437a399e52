"""Browser-session state sent as cookies to the relayer and gamma endpoints."""

from __future__ import annotations

import base64
import json
import random
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote

AMP_COOKIE_NAME = "AMP_4572e28e5c"
NONCE_COOKIE_NAME = "polymarketnonce"
SESSION_COOKIE_NAME = "polymarketsession"
AUTH_TYPE_COOKIE_NAME = "polymarketauthtype"
AUTH_TYPE = "metamask"


@dataclass
class AmpCookie:
    """Analytics cookie state; ticked before every request that carries it."""

    device_id: str
    session_id: int
    last_event_time: int
    last_event_id: int
    user_id: Optional[str] = None
    opt_out: bool = False

    @classmethod
    def new(cls) -> AmpCookie:
        session_id = int(time.time() * 1000)
        return cls(
            device_id=str(uuid.uuid4()),
            session_id=session_id,
            last_event_time=session_id + random.randint(50, 1000),
            last_event_id=random.randint(5, 40),
        )

    def tick(self) -> None:
        """Advance the event counters as if the page emitted another event."""
        self.last_event_id = random.randint(5, 40)
        self.last_event_time += random.randint(500, 3000)

    def to_json(self) -> str:
        return json.dumps(
            {
                "deviceId": self.device_id,
                "userId": self.user_id,
                "sessionId": self.session_id,
                "optOut": self.opt_out,
                "lastEventTime": self.last_event_time,
                "lastEventId": self.last_event_id,
            },
            separators=(",", ":"),
        )

    def to_base64_url_encoded(self) -> str:
        """Cookie value: standard base64 of the percent-encoded JSON."""
        return base64.b64encode(quote(self.to_json(), safe="").encode("ascii")).decode("ascii")


@dataclass
class PolySession:
    """Cookies of one logged-in account.  Owned by that account's task only."""

    amp_cookie: AmpCookie = field(default_factory=AmpCookie.new)
    polymarket_nonce: str = ""
    polymarket_session: str = ""


def build_cookie_header(cookies: list[tuple[str, str]]) -> str:
    return "; ".join(f"{name}={value}" for name, value in cookies)


def build_poly_headers(session: PolySession) -> dict[str, str]:
    """Tick the AMP cookie and return the ``Cookie`` header for *session*."""
    session.amp_cookie.tick()
    return {
        "Cookie": build_cookie_header([
            (NONCE_COOKIE_NAME, session.polymarket_nonce),
            (AMP_COOKIE_NAME, session.amp_cookie.to_base64_url_encoded()),
            (SESSION_COOKIE_NAME, session.polymarket_session),
            (AUTH_TYPE_COOKIE_NAME, AUTH_TYPE),
        ]),
    }
