# test_app.py
# Description: Tests for the editor application and the headless resync command
#
# Imports
#
# 3rd-Party Imports
import pytest
from loguru import logger
#
# Local Imports
from date_gutter.app import DateGutterApp, main_cli_runner, resync_file
from date_gutter.Buffer.text_types import Selection
from date_gutter.Widgets.date_gutter_column import DateGutterColumn
from date_gutter.config import GutterSettings, SettingsProvider
#
########################################################################################################################
#
# Headless resync:

class TestResyncFile:

    @pytest.mark.asyncio
    async def test_fixes_and_saves(self, temp_file):
        path = temp_file(content="000001231123 ok\r\nno prefix\r\n000003231332 bad\r\n")
        message = await resync_file(path, SettingsProvider(GutterSettings()))
        assert message == "Resynchronized 2 lines"
        with open(path, "r", encoding="utf-8", newline="") as f:
            lines = f.read().split("\r\n")
        assert lines[0] == "000001231123 ok"
        assert lines[1].startswith("000002") and lines[1].endswith("no prefix")
        assert lines[2].startswith("000003") and not lines[2].startswith("000003231332")
        assert lines[3] == ""

    @pytest.mark.asyncio
    async def test_clean_file_is_not_rewritten(self, temp_file):
        path = temp_file(content="000001231123 ok\n")
        before = path.stat().st_mtime_ns
        message = await resync_file(path, SettingsProvider(GutterSettings()))
        assert message == "All lines already carry a valid prefix"
        assert path.stat().st_mtime_ns == before

    @pytest.mark.asyncio
    async def test_legacy_encoding_is_written_back(self, isolated_temp_dir):
        path = isolated_temp_dir / "legacy.rpgle"
        path.write_bytes(b"000001231123 \xc9TAT\nno prefix \xa3\n")
        message = await resync_file(path, SettingsProvider(GutterSettings()))
        assert message == "Resynchronized 1 line"
        first, second, last = path.read_bytes().split(b"\n")
        assert first == b"000001231123 \xc9TAT"
        assert second[:12].isdigit() and second[12:] == b"no prefix \xa3"
        assert last == b""

    @pytest.mark.asyncio
    async def test_ineligible_file(self, temp_file):
        path = temp_file(name="notes", suffix=".txt", content="no prefix\n")
        assert await resync_file(path, SettingsProvider(GutterSettings())) is None
        assert path.read_text() == "no prefix\n"


class TestMainCliRunner:

    @pytest.fixture(autouse=True)
    def isolated_log_dir(self, isolated_temp_dir, monkeypatch):
        monkeypatch.setattr("date_gutter.config.BASE_DATA_DIR", isolated_temp_dir / "data")
        yield
        logger.remove()

    def test_resync_from_command_line(self, temp_file, isolated_temp_dir):
        path = temp_file(content="no prefix\n")
        config_path = isolated_temp_dir / "config.toml"
        config_path.write_text(
            '[date_gutter]\nnew_prefix_date = "zero"\n\n[logging]\nlog_filename = "test.log"\n',
            encoding="utf-8",
        )
        assert main_cli_runner(["--resync", "--config", str(config_path), str(path)]) == 0
        assert path.read_text() == "000001000000no prefix\n"

    def test_resync_needs_a_file(self, isolated_temp_dir):
        config_path = isolated_temp_dir / "config.toml"
        assert main_cli_runner(["--resync", "--config", str(config_path),
                                str(isolated_temp_dir / "missing.rpgle")]) == 2

#
########################################################################################################################
#
# Editor application:

class TestDateGutterApp:

    @pytest.mark.asyncio
    async def test_resync_and_save_bindings(self, temp_file):
        path = temp_file(content="000001231123 A\nB\n")
        app = DateGutterApp(path, settings_provider=SettingsProvider(GutterSettings()))
        async with app.run_test(size=(100, 20)) as pilot:
            await pilot.pause()
            assert app.query_one(DateGutterColumn).labels == {0: "231123"}

            await pilot.press("f6")
            await pilot.pause()
            assert app.buffer.line_text(1).startswith("000002")
            assert app.buffer.line_text(1).endswith("B")

            await pilot.press("ctrl+s")
            await pilot.pause()

        saved = path.read_text().split("\n")
        assert saved[0] == "000001231123 A"
        assert saved[1].startswith("000002") and saved[1].endswith("B")

    @pytest.mark.asyncio
    async def test_multi_line_selection_skips_prefix(self, temp_file):
        path = temp_file(content="000001231123Hello\n000002231124World")
        app = DateGutterApp(path, settings_provider=SettingsProvider(GutterSettings()))
        async with app.run_test() as pilot:
            app.buffer.selections = [Selection.from_coords(0, 0, 1, 5)]
            await pilot.pause()
            assert app.buffer.selections == [Selection.from_coords(0, 12, 1, 5)]

    @pytest.mark.asyncio
    async def test_ineligible_file_is_not_touched(self, temp_file):
        path = temp_file(name="notes", suffix=".txt", content="plain\n")
        app = DateGutterApp(path, settings_provider=SettingsProvider(GutterSettings()))
        async with app.run_test() as pilot:
            assert not app.session.eligible
            await pilot.press("f6")
            await pilot.pause()
            assert app.buffer.text == "plain\n"

#
# End of test_app.py
########################################################################################################################
