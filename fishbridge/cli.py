import click


@click.group()
def main() -> None:
    """fishbridge - keeps fish-lsp's workspace folders in sync with an editor."""


@main.command()
@click.option("--folder", "folders", multiple=True, help="Workspace folder open in the editor (repeatable).")
@click.option("--document", default=None, help="Document open in the editor at startup.")
def run(folders: tuple[str, ...], document: str | None) -> None:
    """Start fish-lsp and consume host events (JSON lines) from stdin."""
    import anyio

    from fishbridge.client.environment import StartupValidationError
    from fishbridge.client.log import setup_logging
    from fishbridge.client.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level, settings.trace)

    try:
        anyio.run(_run, settings, folders, document)
    except StartupValidationError as exc:
        raise click.ClickException(str(exc)) from exc


async def _run(settings, folders: tuple[str, ...], document: str | None) -> None:
    import anyio

    from fishbridge.client.host import serve, stdin_lines
    from fishbridge.client.models import OpenDocument, folder_from_path
    from fishbridge.client.session import BridgeSession

    opened = None
    if document:
        text = await anyio.Path(document).read_text() if await anyio.Path(document).is_file() else ""
        opened = OpenDocument(uri=document, language_id=settings.language_id, text=text)

    session = BridgeSession(settings)
    await session.start(
        document=opened,
        folders=[folder_from_path(f) for f in folders],
    )
    try:
        await serve(session, stdin_lines())
    finally:
        await session.stop()


# ---------------------------------------------------------------------------
# Offline inspection
# ---------------------------------------------------------------------------


def _classifier():
    from fishbridge.client.log import setup_logging
    from fishbridge.client.settings import get_settings
    from fishbridge.client.workspace import PathClassifier

    settings = get_settings()
    setup_logging(settings.log_level, settings.trace)
    return PathClassifier(scratch_dirs=settings.scratch_dirs, fallback=settings.fallback)


@main.command()
@click.argument("paths", nargs=-1, required=True)
def classify(paths: tuple[str, ...]) -> None:
    """Print the workspace root of each PATH ('-' if it has none)."""
    classifier = _classifier()
    for path in paths:
        root = classifier.resolve(path)
        click.echo(f"{path}\t{root or '-'}")


@main.command()
@click.argument("paths", nargs=-1, required=True)
def roots(paths: tuple[str, ...]) -> None:
    """Print the distinct workspaces of PATHS as JSON lines."""
    from fishbridge.client.workspace import WorkspaceCollection

    collection = WorkspaceCollection(_classifier())
    collection.add(*paths)
    for record in collection:
        click.echo(record.model_dump_json())


if __name__ == "__main__":
    main()
