"""
Root conftest.py for shared test fixtures and configuration.
This file provides common fixtures used across the test suite.
"""

import shutil
import tempfile
from datetime import date
from pathlib import Path

import pytest

from date_gutter.Buffer.memory_buffer import InMemoryBuffer
from date_gutter.Buffer.text_types import DocumentIdentity
from date_gutter.Prefix.annotations import RecordingAnnotationSink
from date_gutter.Prefix.document_session import MemoryClipboard, PrefixSyncEngine
from date_gutter.Utils.clock import VirtualClock
from date_gutter.config import GutterSettings, SettingsProvider

# Every date written by the engine in tests is this one.
TODAY = date(2024, 5, 17)
TODAY_FIELD = "240517"


# ========== Path and File System Fixtures ==========

@pytest.fixture
def isolated_temp_dir():
    """Create an isolated temporary directory that's always cleaned up."""
    temp_dir = tempfile.mkdtemp(prefix="date_gutter_test_")
    temp_path = Path(temp_dir)
    yield temp_path
    if temp_path.exists():
        shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def temp_file(isolated_temp_dir):
    """Create a temporary file within an isolated directory."""
    def _create_temp_file(name="member", suffix=".rpgle", content=""):
        file_path = isolated_temp_dir / f"{name}{suffix}"
        file_path.write_text(content, encoding="utf-8", newline="")
        return file_path
    return _create_temp_file


# ========== Engine Fixtures ==========

@pytest.fixture
def virtual_clock():
    return VirtualClock()


@pytest.fixture
def settings_provider():
    return SettingsProvider(GutterSettings())


@pytest.fixture
def annotation_sink():
    return RecordingAnnotationSink()


@pytest.fixture
def clipboard():
    return MemoryClipboard()


@pytest.fixture
def engine(settings_provider, annotation_sink, clipboard, virtual_clock):
    """Engine on a virtual clock whose 'today' is fixed to TODAY."""
    engine = PrefixSyncEngine(
        settings_provider,
        annotation_sink=annotation_sink,
        clipboard=clipboard,
        clock=virtual_clock,
        today_provider=lambda: TODAY,
    )
    yield engine
    engine.shutdown()


@pytest.fixture
def make_buffer():
    """Build an InMemoryBuffer for a file-backed member; the extension decides eligibility."""
    def _make(text="", name="member.rpgle"):
        return InMemoryBuffer(DocumentIdentity.for_file(f"/home/dev/src/{name}"), text)
    return _make


@pytest.fixture
def settle(virtual_clock):
    """Let the coalescing window elapse and wait for the resulting commit."""
    async def _settle(session, seconds=1.0):
        virtual_clock.advance(seconds)
        await session.scheduler.wait_until_settled()
    return _settle


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def today_field():
    return TODAY_FIELD
