import sys
from functools import cached_property
from pathlib import Path

import click

from .config import AppConfig
from .editing import EditFlow
from .exceptions import ChurchHymnError, ConfigError, HymnImportError, InvalidFormat
from .exporter import default_export_filename
from .formats.json_format import encode_json, encode_json_array
from .formats.plaintext import decode_plain_text, encode_plain_text
from .importer import apply_import
from .logging_config import setup_logging
from .models import DuplicateResolution, ExportMode, Hymn
from .operations import HymnOperations
from .presenter import PresentationController
from .registry import FORMAT_KINDS
from .store import HymnStore

FORMAT_HELP = """\
Importing hymns

Hymns can be imported from JSON or plain-text files.

JSON - single hymn

  {
    "title": "Amazing Grace",
    "songNumber": 123,
    "lyrics": "Amazing grace, how sweet the sound...",
    "musicalKey": "C",
    "author": "John Newton",
    "copyright": "Public Domain",
    "tags": ["grace", "salvation"],
    "notes": "Traditional hymn"
  }

JSON - batch import

  [
    { "title": "Hymn 1", "lyrics": "..." },
    { "title": "Hymn 2", "lyrics": "..." }
  ]

Plain text

  Amazing Grace
  #Number: 123
  #Key: C
  #Author: John Newton
  #Copyright: Public Domain
  #Tags: grace, salvation
  #Notes: Traditional hymn

  Amazing grace, how sweet the sound
  That saved a wretch like me

  CHORUS
  Praise God, praise God, praise God

Put the word CHORUS on a line by itself at the start of the chorus block.
Blocks are separated by a blank line.
"""

NEW_HYMN_TEMPLATE = """\

#Number:
#Key:
#Author:
#Copyright:
#Tags:
#Notes:

"""

# Terminal escape sequences → presenter key names.
_KEY_NAMES = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\xe0H": "up",
    "\xe0P": "down",
    "\xe0M": "right",
    "\xe0K": "left",
}

_QUIT_KEYS = {"q", "Q", "\x1b", "\x03"}


class _App:
    """Objects shared by the sub-commands of one invocation."""

    def __init__(self, config: AppConfig):
        self.config = config

    @cached_property
    def store(self) -> HymnStore:
        store = HymnStore(self.config.db_path)
        store.initialize_schema()
        return store

    @cached_property
    def operations(self) -> HymnOperations:
        return HymnOperations(self.store, self.config)

    def find(self, title: str) -> Hymn:
        hymn = self.store.find_by_title(title)
        if hymn is None:
            _fail(f"No hymn titled '{title}'")
        return hymn

    def close(self) -> None:
        if "store" in self.__dict__:
            self.store.close()


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _report_error(exc: ChurchHymnError) -> None:
    click.echo(f"Error: {exc}", err=True)
    if isinstance(exc, HymnImportError):
        click.echo(exc.recovery_suggestion, err=True)


@click.group()
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              metavar="PATH", help="Config file (default: ~/.config/churchhymn/config.toml)")
@click.option("--db", "db_path", type=click.Path(path_type=Path), default=None,
              metavar="PATH", help="Hymn database file.")
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, db_path: Path | None) -> None:
    """Manage, import, export and present hymn lyrics."""
    try:
        config = AppConfig.load(config_path) if config_path else AppConfig.load_or_default()
    except (FileNotFoundError, ConfigError) as exc:
        _fail(str(exc))
    if db_path is not None:
        config.db_path = db_path

    setup_logging(config.log_dir, config.log_level)
    app = _App(config)
    ctx.obj = app
    ctx.call_on_close(app.close)


# ---------------------------------------------------------------------------
# Browsing
# ---------------------------------------------------------------------------


@main.command("list")
@click.pass_obj
def list_hymns(app: _App) -> None:
    """List hymns sorted by title."""
    hymns = app.store.all()
    if not hymns:
        click.echo("No hymns.")
        return
    for hymn in hymns:
        number = f"{hymn.song_number:>4}" if hymn.song_number is not None else "    "
        click.echo(f"{number}  {hymn.title}")


@main.command()
@click.argument("title")
@click.pass_obj
def show(app: _App, title: str) -> None:
    """Print a hymn in the plain-text format."""
    click.echo(encode_plain_text(app.find(title)), nl=False)


@main.command("help-format")
def help_format() -> None:
    """Describe the import file formats."""
    click.echo(FORMAT_HELP, nl=False)


# ---------------------------------------------------------------------------
# Import / export
# ---------------------------------------------------------------------------


@main.command("import")
@click.argument("files", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--format", "kind", type=click.Choice(FORMAT_KINDS), default="auto", show_default=True,
              help="File format; auto picks by file extension.")
@click.option("--on-duplicate", "resolution",
              type=click.Choice([r.value for r in DuplicateResolution]), default="skip",
              show_default=True, help="What to do with hymns whose title already exists.")
@click.option("--dry-run", is_flag=True, default=False,
              help="Show the import preview without changing anything.")
@click.option("--stream", is_flag=True, default=False,
              help="Process a large JSON array in chunks.")
@click.pass_obj
def import_hymns(app: _App, files: tuple[Path, ...], kind: str, resolution: str,
                 dry_run: bool, stream: bool) -> None:
    """Import hymns from plain-text or JSON files."""
    failed = False
    for path in files:
        try:
            if stream:
                preview = app.operations.import_large_json(path)
            else:
                preview = app.operations.import_file(path, kind)
        except ChurchHymnError as exc:
            click.echo(f"{path}:", err=True)
            _report_error(exc)
            failed = True
            continue

        click.echo(
            f"{preview.file_name}: Total {preview.total_hymns}, New {preview.valid_count}, "
            f"Duplicates {preview.duplicate_count}, Errors {preview.error_count}"
        )
        for message in preview.errors:
            click.echo(f"  ! {message}")
        for entry in preview.duplicates:
            click.echo(f"  = {entry.title} (already exists)")

        if dry_run:
            continue

        try:
            result = apply_import(preview, app.store, DuplicateResolution(resolution))
        except ChurchHymnError as exc:
            _report_error(exc)
            failed = True
            continue
        click.echo(
            f"  Imported {result.inserted}, updated {result.updated}, skipped {result.skipped}"
        )

    if failed:
        sys.exit(1)


@main.command("export")
@click.argument("titles", nargs=-1)
@click.option("--all", "export_all", is_flag=True, default=False, help="Export every hymn.")
@click.option("--format", "fmt", type=click.Choice(["text", "json"]), default="json",
              show_default=True, help="Output format (text works for a single hymn only).")
@click.option("-o", "--output", "output_path", default=None, type=click.Path(path_type=Path),
              metavar="PATH", help="Output file or directory (default: derived from the title).")
@click.option("--stdout", is_flag=True, default=False,
              help="Print to stdout instead of writing a file.")
@click.option("--stream", is_flag=True, default=False,
              help="Write a JSON array one hymn at a time.")
@click.pass_obj
def export_hymns(app: _App, titles: tuple[str, ...], export_all: bool, fmt: str,
                 output_path: Path | None, stdout: bool, stream: bool) -> None:
    """Export hymns to plain text or JSON."""
    if export_all:
        hymns = app.store.all()
        mode = ExportMode.ALL_JSON
    elif len(titles) == 1:
        hymns = [app.find(titles[0])]
        mode = ExportMode.SINGLE_PLAIN_TEXT if fmt == "text" else ExportMode.SINGLE_JSON
    elif titles:
        hymns = [app.find(title) for title in titles]
        mode = ExportMode.SELECTED_JSON
    else:
        _fail("Give at least one title or --all")

    if fmt == "text" and mode is not ExportMode.SINGLE_PLAIN_TEXT:
        _fail("Plain text export holds a single hymn; use --format json")
    if not hymns:
        _fail("No hymns to export")

    if stdout:
        if mode is ExportMode.SINGLE_PLAIN_TEXT:
            click.echo(encode_plain_text(hymns[0]), nl=False)
        elif mode is ExportMode.SINGLE_JSON:
            click.echo(encode_json(hymns[0]), nl=False)
        else:
            click.echo(encode_json_array(hymns), nl=False)
        return

    dest = output_path or Path(default_export_filename(mode, hymns[0]))
    try:
        if stream and mode in (ExportMode.ALL_JSON, ExportMode.SELECTED_JSON):
            if dest.is_dir():
                dest = dest / default_export_filename(mode)
            written = app.operations.export_large_json(hymns, dest)
        else:
            written = app.operations.export(hymns, mode, dest)
    except ChurchHymnError as exc:
        _report_error(exc)
        sys.exit(1)
    click.echo(f"Written {len(hymns)} hymn(s) to {written}")


# ---------------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------------


def _edited_fields(text: str) -> dict | None:
    """Hymn fields from edited plain text, or None if no title was written."""
    try:
        hymn = decode_plain_text(text)
    except InvalidFormat:
        return None
    return {
        "title": hymn.title,
        "lyrics": hymn.lyrics,
        "musical_key": hymn.musical_key,
        "copyright": hymn.copyright,
        "author": hymn.author,
        "tags": hymn.tags,
        "notes": hymn.notes,
        "song_number": hymn.song_number,
    }


@main.command()
@click.pass_obj
def new(app: _App) -> None:
    """Write a new hymn in your editor."""
    flow = EditFlow(app.store)
    draft = flow.begin_new()
    try:
        edited = click.edit(NEW_HYMN_TEMPLATE, extension=".txt")
        fields = _edited_fields(edited) if edited is not None else None
        if fields is not None:
            flow.apply(draft, **fields)
    finally:
        discarded = flow.finish(draft)

    if discarded:
        click.echo("No title given; hymn discarded.")
    else:
        click.echo(f"Created '{draft.title}'")


def _first_lyric_line(lyrics: str | None) -> str:
    for line in (lyrics or "").splitlines():
        if line.strip():
            return line.strip()
    return ""


@main.command()
@click.argument("title")
@click.pass_obj
def edit(app: _App, title: str) -> None:
    """Edit a hymn in your editor."""
    hymn = app.find(title)
    original = encode_plain_text(hymn)
    edited = click.edit(original, extension=".txt")
    if edited is None or edited == original:
        click.echo("No changes.")
        return
    fields = _edited_fields(edited)
    if fields is None:
        _fail("A hymn needs a title; nothing was saved")

    # The editor shows only the first line of the notes.
    if hymn.notes and fields["notes"] == hymn.notes.splitlines()[0].strip():
        fields["notes"] = hymn.notes
    first_line = _first_lyric_line(hymn.lyrics)
    if first_line.startswith("#") and _first_lyric_line(fields["lyrics"]) != first_line:
        click.confirm(
            f"The lyric line '{first_line}' starts with '#' and was read as a header, "
            "so it will be dropped. Save anyway?",
            abort=True,
        )
    try:
        EditFlow(app.store).apply(hymn, **fields)
    except ChurchHymnError as exc:
        _report_error(exc)
        sys.exit(1)
    click.echo(f"Saved '{hymn.title}'")


@main.command()
@click.argument("title")
@click.option("--yes", is_flag=True, default=False, help="Do not ask for confirmation.")
@click.pass_obj
def delete(app: _App, title: str, yes: bool) -> None:
    """Delete a hymn."""
    hymn = app.find(title)
    if not yes:
        click.confirm(f"Delete '{hymn.title}'?", abort=True)
    app.store.delete(hymn)
    click.echo(f"Deleted '{hymn.title}'")


# ---------------------------------------------------------------------------
# Presenter
# ---------------------------------------------------------------------------


def _read_key() -> str:
    key = click.getchar()
    return _KEY_NAMES.get(key, key)


def _draw(session) -> None:
    slide = session.render()
    click.clear()
    click.secho(slide.title, bold=True)
    click.echo()
    click.echo(slide.text)
    click.echo()
    if slide.label:
        click.secho(slide.label, dim=True)


@main.command()
@click.argument("title")
@click.option("--clamp", is_flag=True, default=False,
              help="Stop at the first/last block instead of wrapping around.")
@click.pass_obj
def present(app: _App, title: str, clamp: bool) -> None:
    """Show a hymn block by block.

    \b
    Keys:
      space, enter, right, down   next block
      left, up                    previous block
      1-9                         jump to verse
      c                           jump to chorus
      q, esc                      quit
    """
    hymn = app.find(title)
    controller = PresentationController(
        cyclic=app.config.cyclic and not clamp,
        chorus_only_fallback=app.config.chorus_only_fallback,
    )
    session = controller.present(hymn)
    try:
        if session.sequencer.is_empty:
            click.echo(f"'{hymn.title}' has no lyrics to present.")
            return
        while True:
            _draw(session)
            key = _read_key()
            if key in _QUIT_KEYS:
                break
            session.feed(key)
    finally:
        controller.close()
