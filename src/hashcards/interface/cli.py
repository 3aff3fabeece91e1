"""hashcards CLI: check, drill, export, orphans and config commands."""

import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Annotated, Any

import typer

from hashcards.application.config import AppConfig, resolve_config
from hashcards.domain.errors import HashcardsError, ParserError

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="hashcards: plain-text spaced repetition.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Subgroups
# ---------------------------------------------------------------------------

orphans_app = typer.Typer(help="Performance records with no matching card.", no_args_is_help=True)
app.add_typer(orphans_app, name="orphans")

config_app = typer.Typer(help="Manage hashcards configuration.", no_args_is_help=True)
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for hashcards."""
    if verbose >= 2:
        logging.getLogger().setLevel(logging.DEBUG)


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    return resolve_config(overrides)


def _fail(error: HashcardsError) -> None:
    typer.secho(f"Error: {error}", fg="red", err=True)
    raise typer.Exit(1)


CollectionArg = Annotated[
    Path | None,
    typer.Argument(help="Directory of Markdown decks. Defaults to 'collection_dir' in config, or CWD."),
]


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def check(
    directory: CollectionArg = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Parse every deck and report the card count or the first error."""
    from hashcards.application.collection import load_collection

    config = _resolve_with_overrides(collection_dir=directory)
    try:
        collection = load_collection(config.collection_dir)
    except ParserError as e:
        if json_output:
            typer.echo(
                json.dumps(
                    {
                        "ok": False,
                        "error": {
                            "message": e.message,
                            "file": e.source_path,
                            "line": e.line,
                        },
                    },
                    indent=2,
                )
            )
            return
        _fail(e)
        return

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "ok": True,
                    "cards": len(collection.cards),
                    "decks": collection.deck_names,
                },
                indent=2,
            )
        )
    else:
        typer.secho(
            f"OK: {len(collection.cards)} cards in {len(collection.deck_names)} decks.",
            fg="green",
        )


@app.command()
def drill(
    directory: CollectionArg = None,
    card_limit: Annotated[
        int | None, typer.Option(min=0, help="Maximum number of cards in the session.")
    ] = None,
    new_card_limit: Annotated[
        int | None, typer.Option(min=0, help="Maximum number of new cards in the session.")
    ] = None,
    from_deck: Annotated[str | None, typer.Option(help="Only drill cards from this deck.")] = None,
    host: Annotated[str | None, typer.Option(help="Address to bind the drill server to.")] = None,
    port: Annotated[int | None, typer.Option(help="Port for the drill server.")] = None,
    shuffle: Annotated[
        bool | None, typer.Option("--shuffle/--no-shuffle", help="Shuffle the queue.")
    ] = None,
    bury_siblings: Annotated[
        bool | None,
        typer.Option(
            "--bury-siblings/--no-bury-siblings",
            help="Show only one card per cloze sentence.",
        ),
    ] = None,
    answer_controls: Annotated[
        str | None,
        typer.Option(help="Grade buttons: full (Forgot/Hard/Good/Easy) or binary (Forgot/Good)."),
    ] = None,
):
    """[bold green]Drill[/bold green] the cards due today in a local web session."""
    from hashcards.application.collection import load_collection, register_new_cards
    from hashcards.application.queue_builder import build_queue, due_hashes
    from hashcards.application.session import DrillSession
    from hashcards.infrastructure.store import JsonPerformanceStore

    if answer_controls is not None and answer_controls not in ("full", "binary"):
        raise typer.BadParameter("must be 'full' or 'binary'", param_hint="--answer-controls")

    config = _resolve_with_overrides(
        collection_dir=directory,
        card_limit=card_limit,
        new_card_limit=new_card_limit,
        deck_filter=from_deck,
        host=host,
        port=port,
        shuffle=shuffle,
        bury_siblings=bury_siblings,
        answer_controls=answer_controls,
    )

    try:
        collection = load_collection(config.collection_dir)
        store = JsonPerformanceStore(config.db_path)
        register_new_cards(collection, store)
        due = due_hashes(collection.cards, store, date.today())
        queue = build_queue(
            collection.cards,
            due,
            store,
            deck_filter=config.deck_filter,
            card_limit=config.card_limit,
            new_card_limit=config.new_card_limit,
            bury_siblings=config.bury_siblings,
            shuffle=config.shuffle,
        )
    except HashcardsError as e:
        _fail(e)
        return

    if not queue:
        typer.echo("No cards due today.")
        return

    import uvicorn

    from hashcards.server import create_app

    session = DrillSession(queue, store)
    server_app = create_app(session, answer_controls=config.answer_controls)
    typer.echo(f"Drilling {len(queue)} cards at http://{config.host}:{config.port}/session")
    uvicorn.run(server_app, host=config.host, port=config.port)


@app.command()
def export(
    directory: CollectionArg = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write to this file instead of stdout.")
    ] = None,
):
    """Export every card with its performance as JSON."""
    from hashcards.application.collection import load_collection
    from hashcards.application.export import export_collection
    from hashcards.infrastructure.store import JsonPerformanceStore

    config = _resolve_with_overrides(collection_dir=directory)
    try:
        collection = load_collection(config.collection_dir)
        store = JsonPerformanceStore(config.db_path)
    except HashcardsError as e:
        _fail(e)
        return

    text = json.dumps(export_collection(collection, store), indent=2, ensure_ascii=False)
    if output is None:
        typer.echo(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")
        typer.secho(f"Exported {len(collection.cards)} cards to {output}", fg="green")


@app.command()
def stats(
    directory: CollectionArg = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Print collection statistics: card, deck, new and due counts."""
    from hashcards.application.collection import load_collection
    from hashcards.application.stats import collection_stats
    from hashcards.infrastructure.store import JsonPerformanceStore

    config = _resolve_with_overrides(collection_dir=directory)
    try:
        collection = load_collection(config.collection_dir)
        store = JsonPerformanceStore(config.db_path)
    except HashcardsError as e:
        _fail(e)
        return

    result = collection_stats(collection, store, date.today())
    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    typer.secho(f"Collection: {config.collection_dir}", bold=True)
    typer.echo(f"  Cards:    {result.cards} in {len(result.decks)} decks")
    typer.echo(f"  New:      {result.new}")
    typer.echo(f"  Reviewed: {result.reviewed} ({result.reviews} reviews)")
    typer.echo(f"  Due:      {result.due}")
    if result.mean_retrievability is not None:
        typer.echo(f"  Recall:   {result.mean_retrievability:.1%}")
    for deck in result.decks:
        typer.echo(f"  - {deck.deck_name}: {deck.cards} cards, {deck.new} new, {deck.due} due")


# ---------------------------------------------------------------------------
# Orphans subgroup
# ---------------------------------------------------------------------------


def _load_orphans(directory: Path | None):
    from hashcards.application.collection import find_orphans, load_collection
    from hashcards.infrastructure.store import JsonPerformanceStore

    config = _resolve_with_overrides(collection_dir=directory)
    try:
        collection = load_collection(config.collection_dir)
        store = JsonPerformanceStore(config.db_path)
    except HashcardsError as e:
        _fail(e)
    return store, find_orphans(collection, store)


@orphans_app.command("list")
def orphans_list(directory: CollectionArg = None):
    """List hashes in the store that no card in the collection has."""
    _, orphans = _load_orphans(directory)
    for card_hash in orphans:
        typer.echo(card_hash.to_hex())


@orphans_app.command("delete")
def orphans_delete(directory: CollectionArg = None):
    """Remove hashes in the store that no card in the collection has."""
    store, orphans = _load_orphans(directory)
    try:
        for card_hash in orphans:
            store.delete(card_hash)
            typer.echo(card_hash.to_hex())
    except HashcardsError as e:
        _fail(e)
    logger.info(f"Deleted {len(orphans)} orphaned records")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
