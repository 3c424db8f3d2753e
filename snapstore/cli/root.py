from pathlib import Path
from typing import List, Optional

import rich
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typing_extensions import Annotated

from snapstore._src.constants import OperateOn, Realise
from snapstore._src.exceptions import SnapstoreError, UsageError
from snapstore._src.installables import parse_installables
from snapstore._src.logging_config import setup_logging
from snapstore._src.profiles import update_profile
from snapstore._src.settings import Settings
from snapstore.cli.profile import profile_command
from snapstore.cli.state import CliState, get_state, recursive_option

err_console = Console(stderr=True)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(
    profile_command,
    name="profile",
    help="manage profiles and their generations",
    rich_help_panel="Profile",
)


@app.callback()
def callback(
    ctx: typer.Context,
    store: str = typer.Option(
        None,
        help="URI of the store to use, e.g. 'local?root=/tmp/s' or 'dummy://'"
    ),
    catalog: str = typer.Option(
        None,
        help="path to a package catalog used to resolve names"
    ),
    log_level: str = typer.Option(
        None,
        help="logging level (debug, info, warning, error)"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="shorthand for --log-level info"
    ),
):
    """Resolve installables and publish them to profiles"""
    overrides = {}
    if store is not None:
        overrides["store"] = store
    if catalog is not None:
        overrides["catalog"] = catalog
    settings = Settings(**overrides)

    level = log_level or ("info" if verbose else settings.log_level)
    setup_logging(level)
    ctx.obj = CliState(settings)


@app.command()
def path_info(
    ctx: typer.Context,
    installables: List[str] = typer.Argument(
        None,
        help="store paths, links into the store, derivation outputs or package names"
    ),
    all: bool = typer.Option(
        False, "--all",
        help="apply operation to the entire store"
    ),
    recursive: bool = recursive_option(False),
    derivation: bool = typer.Option(
        False, "--derivation",
        help="operate on the derivations instead of their outputs"
    ),
):
    """Print the store paths of the given installables"""
    state = get_state(ctx)
    store = state.get_store()
    resolver = state.get_resolver()

    operate_on = OperateOn.DERIVATION if derivation else OperateOn.OUTPUT
    paths = resolver.select_store_paths(
        parse_installables(store, installables or []),
        all_paths=all,
        recursive=recursive,
        operate_on=operate_on,
    )
    for path in paths:
        print(store.print_store_path(path))


@app.command()
def verify(
    ctx: typer.Context,
    installables: List[str] = typer.Argument(
        None,
        help="store paths, links into the store, derivation outputs or package names"
    ),
    all: bool = typer.Option(
        False, "--all",
        help="apply operation to the entire store"
    ),
    recursive: bool = recursive_option(True),
):
    """Check that the contents of store paths are present"""
    state = get_state(ctx)
    store = state.get_store()
    resolver = state.get_resolver()

    paths = resolver.select_store_paths(
        parse_installables(store, installables or []),
        all_paths=all,
        recursive=recursive,
    )
    missing = [path for path in paths if not store.check_path_contents(path)]
    for path in missing:
        rich.print(f"[red]path '{escape(store.print_store_path(path))}' has no contents[/red]")

    print(f"checked {len(paths)} path(s), {len(missing)} missing")
    if missing:
        raise typer.Exit(code=1)


@app.command()
def show(
    ctx: typer.Context,
    installables: List[str] = typer.Argument(
        ...,
        help="an installable resolving to exactly one store path"
    ),
):
    """Show the metadata of a single store path"""
    state = get_state(ctx)
    store = state.get_store()
    resolver = state.get_resolver()

    path = resolver.resolve_to_paths(
        parse_installables(store, installables), Realise.NOTHING, exactly_one=True
    )[0]
    info = store.query_path_info(path)

    table = Table(title=store.print_store_path(path), show_header=False)
    table.add_column("field", justify="left", no_wrap=True)
    table.add_column("value", justify="left")
    table.add_row("deriver", store.print_store_path(info.deriver) if info.deriver else "")
    table.add_row("registered", info.registration_time)
    table.add_row("references", "\n".join(store.print_store_path(r) for r in info.references))
    for name, output in sorted(info.outputs.items()):
        table.add_row(f"output {name}", store.print_store_path(output))

    rich.print(table)


@app.command()
def build(
    ctx: typer.Context,
    installables: List[str] = typer.Argument(
        ...,
        help="installables to realise"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run",
        help="only show what would have to be realised"
    ),
    profile: str = typer.Option(
        None,
        help="profile to update with the result"
    ),
):
    """Realise installables and print their output paths"""
    state = get_state(ctx)
    store = state.get_store()
    resolver = state.get_resolver()

    mode = Realise.DRY_RUN if dry_run else Realise.FULL
    buildables = resolver.resolve_to_buildables(parse_installables(store, installables), mode)
    for buildable in buildables:
        for name, path in buildable.outputs.items():
            valid = "" if store.is_valid_path(path) else " (not realised)"
            print(f"{name}: {store.print_store_path(path)}{valid}")

    if profile is not None and not dry_run:
        profile_path = state.profile_path(profile)
        generation = update_profile(
            store, profile_path, buildables, lock=state.settings.lock_profiles
        )
        print(f"'{profile_path}' is now at generation {generation.number}")


@app.command()
def add_file(
    ctx: typer.Context,
    file: Annotated[
        Path,
        typer.Argument(
            exists=True, dir_okay=False,
            help="file to add to the store"
        ),
    ],
    name: Optional[str] = typer.Option(
        None,
        help="name of the store path, defaults to the file name"
    ),
):
    """Add the contents of a file to the store"""
    store = get_state(ctx).get_store()
    path = store.add_to_store(name or file.name, file.read_bytes())
    print(store.print_store_path(path))


def main():
    try:
        app()
    except SnapstoreError as e:
        err_console.print(f"[bold red]error:[/bold red] {escape(str(e))}")
        raise SystemExit(2 if isinstance(e, UsageError) else 1)
