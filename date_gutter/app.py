# date_gutter/app.py
# Description: Textual editor for prefixed source members, plus the headless resync command
#
# Imports
import argparse
import asyncio
import sys
from functools import partial
from pathlib import Path
from typing import Optional
#
# 3rd-party Libraries
from loguru import logger
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.command import DiscoveryHit, Hit, Hits, Provider
from textual.containers import Horizontal
from textual.widgets import Footer, Header, TextArea
#
# Local Imports
from . import __version__
from .Buffer.memory_buffer import InMemoryBuffer
from .Buffer.text_types import DocumentIdentity
from .Prefix.commands import (
    COPY_WITHOUT_PREFIX, DELETE_SELECTED_LINES, FORCE_INSERT_PREFIX, RESYNC_DOCUMENT, SET_DATE_TO_ZERO,
    adjust_selections, available_code_actions,
)
from .Prefix.document_session import PrefixSyncEngine
from .Utils.clock import AsyncioClock
from .Utils.source_files import atomic_write_text, read_source_text
from .Widgets.date_gutter_column import DateGutterColumn
from .Widgets.prefixed_text_area import PrefixedTextArea, TextAreaBuffer
from .config import (
    DEFAULT_CONFIG_PATH, SettingsProvider, load_cli_config_and_ensure_existence,
    save_setting_to_cli_config,
)
from .logging_config import configure_logging
#
########################################################################################################################
#
# Classes:

# Command id -> (palette title, app action, help text)
PALETTE_COMMANDS = {
    COPY_WITHOUT_PREFIX: ("Prefix: Copy without prefix", "copy_without_prefix",
                          "Copy the selected text with the 12-digit prefixes removed"),
    DELETE_SELECTED_LINES: ("Prefix: Delete selected lines", "delete_lines",
                            "Delete every line touched by the selection"),
    FORCE_INSERT_PREFIX: ("Prefix: Force insert prefix", "force_prefix",
                          "Add a sequence number and 000000 date to selected lines without a prefix"),
    SET_DATE_TO_ZERO: ("Prefix: Set date to 000000", "zero_date",
                       "Reset the date field of selected prefixed lines"),
    RESYNC_DOCUMENT: ("Prefix: Resynchronize document", "resync",
                      "Give every non-blank line a valid prefix"),
}


class PrefixCommandProvider(Provider):
    """Command palette entries for the prefix commands; copy and delete only when they apply."""

    def _offered(self):
        app = self.app
        if not isinstance(app, DateGutterApp) or app.buffer is None:
            return []
        selection = app.buffer.selections[0]
        contextual = set(available_code_actions(app.buffer, selection.as_range()))
        return [
            (command_id, entry) for command_id, entry in PALETTE_COMMANDS.items()
            if command_id not in (COPY_WITHOUT_PREFIX, DELETE_SELECTED_LINES) or command_id in contextual
        ]

    async def discover(self) -> Hits:
        for _, (title, action, help_text) in self._offered():
            yield DiscoveryHit(title, partial(self.app.run_action, action), help=help_text)

    async def search(self, query: str) -> Hits:
        matcher = self.matcher(query)
        for _, (title, action, help_text) in self._offered():
            score = matcher.match(title)
            if score > 0:
                yield Hit(score, matcher.highlight(title), partial(self.app.run_action, action), help=help_text)


class AppClipboard:
    """Clipboard backed by the terminal (OSC 52) through the running app."""

    def __init__(self, app: App):
        self.app = app

    def write_text(self, text: str) -> None:
        self.app.copy_to_clipboard(text)


class DateGutterApp(App[None]):
    """Single-document editor with a date gutter beside the text."""

    TITLE = "date-gutter"
    COMMANDS = App.COMMANDS | {PrefixCommandProvider}

    CSS = """
    #editor-row {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("ctrl+s", "save", "Save"),
        Binding("f2", "copy_without_prefix", "Copy w/o prefix"),
        Binding("f3", "delete_lines", "Delete lines"),
        Binding("f4", "force_prefix", "Force prefix"),
        Binding("f5", "zero_date", "Date 000000"),
        Binding("f6", "resync", "Resync"),
        Binding("f7", "toggle_enabled", "Toggle prefixes", show=False),
        Binding("ctrl+r", "reload_config", "Reload config", show=False),
    ]

    def __init__(self, file_path: Optional[Path] = None,
                 settings_provider: Optional[SettingsProvider] = None,
                 config_path: Optional[Path] = None):
        super().__init__()
        self.file_path = Path(file_path) if file_path is not None else None
        self.config_path = config_path
        self.settings_provider = settings_provider or SettingsProvider.from_config_file(config_path)
        if self.file_path is not None:
            self.identity = DocumentIdentity.for_file(self.file_path)
            if self.file_path.exists():
                self._initial_text, self.source_encoding = read_source_text(self.file_path)
            else:
                self._initial_text, self.source_encoding = "", "utf-8"
        else:
            self.identity = DocumentIdentity.untitled("Untitled-1")
            self._initial_text, self.source_encoding = "", "utf-8"
        self.engine: Optional[PrefixSyncEngine] = None
        self.buffer: Optional[TextAreaBuffer] = None
        self.session = None
        self._first_visible_line = -1

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="editor-row"):
            yield DateGutterColumn(self.identity, id="date-gutter")
            yield PrefixedTextArea(self._initial_text, identity=self.identity, id="editor")
        yield Footer()

    async def on_mount(self) -> None:
        text_area = self.query_one("#editor", PrefixedTextArea)
        gutter = self.query_one("#date-gutter", DateGutterColumn)
        self.sub_title = self.identity.file_name
        self.buffer = TextAreaBuffer(text_area)
        self.engine = PrefixSyncEngine(
            self.settings_provider,
            annotation_sink=gutter,
            clipboard=AppClipboard(self),
            clock=AsyncioClock(),
        )
        self.session = self.engine.open_document(self.buffer)
        if not self.session.eligible:
            self.notify(f"{self.identity.file_name} is not a prefixed member type; prefixes are off",
                        severity="warning")
        self.set_interval(0.1, self._sync_viewport)
        text_area.focus()
        await self.session.refresh_annotations()

    def on_unmount(self) -> None:
        if self.engine is not None:
            self.engine.shutdown()

    async def _sync_viewport(self) -> None:
        if self.buffer is None or self.session is None:
            return
        ranges = self.buffer.visible_ranges
        first = ranges[0].start.line if ranges else 0
        if first == self._first_visible_line:
            return
        self._first_visible_line = first
        self.query_one("#date-gutter", DateGutterColumn).scroll_to_line(first)
        await self.session.refresh_annotations()

    def on_text_area_selection_changed(self, event: TextArea.SelectionChanged) -> None:
        if self.buffer is None or self.session is None or not self.session.eligible:
            return
        adjusted = adjust_selections(self.buffer, self.buffer.selections)
        if adjusted is not None:
            self.buffer.selections = adjusted

    # --- Actions ---

    async def _report(self, message: Optional[str]) -> None:
        if message:
            self.notify(message)

    async def action_copy_without_prefix(self) -> None:
        await self._report(await self.engine.copy_without_prefix(self.identity))

    async def action_delete_lines(self) -> None:
        await self._report(await self.engine.delete_selected_lines(self.identity))

    async def action_force_prefix(self) -> None:
        await self._report(await self.engine.force_insert_prefix(self.identity))

    async def action_zero_date(self) -> None:
        await self._report(await self.engine.set_date_to_zero(self.identity))

    async def action_resync(self) -> None:
        await self._report(await self.engine.resync(self.identity))

    async def action_save(self) -> None:
        if self.file_path is None:
            self.notify("Untitled documents cannot be saved; open a file path instead", severity="warning")
            return
        if self.session is not None:
            await self.session.scheduler.wait_until_settled()
        try:
            atomic_write_text(self.file_path, self.buffer.text, encoding=self.source_encoding)
        except (OSError, UnicodeEncodeError) as e:
            logger.error(f"Save failed for {self.file_path}: {e}")
            self.notify(f"Save failed: {e}", severity="error")
            return
        self.notify(f"Saved {self.file_path.name}")

    def action_reload_config(self) -> None:
        self.settings_provider.invalidate()
        self.notify("Configuration reloaded")

    def action_toggle_enabled(self) -> None:
        enabled = not self.settings_provider.settings.enabled
        if save_setting_to_cli_config("date_gutter", "enabled", enabled, config_path=self.config_path):
            self.settings_provider.invalidate()
            self.notify(f"Prefix maintenance {'enabled' if enabled else 'disabled'}")
        else:
            self.notify("Could not save the setting; see the log for details", severity="error")

#
########################################################################################################################
#
# Functions:

async def resync_file(file_path: Path, settings_provider: SettingsProvider) -> Optional[str]:
    """
    Give every non-blank line of a file on disk a valid prefix and save it.

    Returns the completion message, or None when the file type is not eligible.
    """
    identity = DocumentIdentity.for_file(file_path)
    text, encoding = read_source_text(file_path)
    buffer = InMemoryBuffer(identity, text)
    engine = PrefixSyncEngine(settings_provider, clock=AsyncioClock())
    try:
        engine.open_document(buffer)
        message = await engine.resync(identity)
    finally:
        engine.shutdown()
    if message is not None and buffer.version > 0:
        atomic_write_text(file_path, buffer.text, encoding=encoding)
    return message


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="date-gutter",
        description="Edit fixed-format source members whose lines carry a sequence/date prefix.",
    )
    parser.add_argument("path", nargs="?", type=Path, help="Source member to open")
    parser.add_argument("--resync", action="store_true",
                        help="Fix up every line's prefix in PATH and save, without opening the editor")
    parser.add_argument("--config", type=Path, default=None,
                        help=f"Configuration file (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main_cli_runner(argv=None) -> int:
    """Entry point for the date-gutter command."""
    args = build_arg_parser().parse_args(argv)
    config = load_cli_config_and_ensure_existence(config_path=args.config)
    configure_logging(config, console=args.resync)
    settings_provider = SettingsProvider.from_config_file(args.config)

    if args.resync:
        if args.path is None or not args.path.is_file():
            logger.error("--resync needs the path of an existing file")
            return 2
        message = asyncio.run(resync_file(args.path, settings_provider))
        if message is None:
            logger.warning(f"{args.path.name} is not an eligible file type "
                           f"(enabled: {', '.join(settings_provider.settings.enabled_file_types)})")
            return 1
        logger.info(message)
        return 0

    DateGutterApp(args.path, settings_provider=settings_provider, config_path=args.config).run()
    return 0


if __name__ == "__main__":
    sys.exit(main_cli_runner())

#
# End of app.py
########################################################################################################################
