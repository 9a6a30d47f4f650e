from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# Must be set before importing config, which validates the environment at import time.
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
for name in ("PUBLIC_HOST", "TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER"):
    os.environ.pop(name, None)


@pytest.fixture()
def registry():
    from registry import SessionRegistry

    reg = SessionRegistry()
    yield reg
    reg.shutdown()


@pytest.fixture()
def links():
    from fakes import FakeLink

    return FakeLink(), FakeLink()


@pytest.fixture()
def session(registry, links):
    from bridge_session import BridgingSession

    telephony, ai = links
    return BridgingSession(telephony, ai, registry=registry, eviction_delay=0.05)
