from typing import List

import rich
import typer
from rich.table import Table

from snapstore._src.constants import Realise
from snapstore._src.installables import parse_installables
from snapstore._src.profiles import (
    current_generation,
    list_generations,
    rollback as rollback_profile,
    update_profile,
)
from snapstore.cli.state import get_state


profile_command = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


@profile_command.command()
def set(
    ctx: typer.Context,
    installables: List[str] = typer.Argument(
        ...,
        help="installables that must produce a single store path"
    ),
    profile: str = typer.Option(
        None,
        help="profile to update, defaults to the default profile"
    ),
):
    """Make a store path the current generation of a profile"""
    state = get_state(ctx)
    store = state.get_local_store()
    resolver = state.get_resolver()
    profile_path = state.profile_path(profile)

    buildables = resolver.resolve_to_buildables(
        parse_installables(store, installables), Realise.FULL
    )
    generation = update_profile(
        store, profile_path, buildables, lock=state.settings.lock_profiles
    )
    print(f"'{profile_path}' is now at generation {generation.number}")


@profile_command.command()
def current(
    ctx: typer.Context,
    profile: str = typer.Option(
        None,
        help="profile to show"
    ),
):
    """Print the store path a profile currently points at"""
    state = get_state(ctx)
    store = state.get_local_store()
    profile_path = state.profile_path(profile)

    generation = current_generation(profile_path)
    if generation is None:
        print(f"'{profile_path}' has no generations")
        raise typer.Exit(code=1)
    print(store.print_store_path(generation.target))


@profile_command.command()
def history(
    ctx: typer.Context,
    profile: str = typer.Option(
        None,
        help="profile to list"
    ),
):
    """List all generations of a profile"""
    state = get_state(ctx)
    store = state.get_local_store()
    profile_path = state.profile_path(profile)

    current = current_generation(profile_path)
    generations = list_generations(profile_path)
    generations.sort(key=lambda g: g.number, reverse=True)

    table = Table(title="Generations")
    table.add_column("generation", justify="right", no_wrap=True)
    table.add_column("target", justify="left", no_wrap=True)
    table.add_column("created", justify="left", no_wrap=True)
    table.add_column("current", justify="left", no_wrap=True)

    for generation in generations:
        is_current = current is not None and current.number == generation.number
        table.add_row(
            str(generation.number),
            store.print_store_path(generation.target),
            generation.created,
            "*" if is_current else "",
        )

    rich.print(table)


@profile_command.command()
def rollback(
    ctx: typer.Context,
    to: int = typer.Option(
        None,
        help="generation to switch to, defaults to the previous one"
    ),
    profile: str = typer.Option(
        None,
        help="profile to roll back"
    ),
):
    """Switch a profile back to an earlier generation"""
    state = get_state(ctx)
    state.get_local_store()
    profile_path = state.profile_path(profile)

    generation = rollback_profile(profile_path, to=to)
    print(f"'{profile_path}' is now at generation {generation.number}")
