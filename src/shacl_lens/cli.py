from __future__ import annotations

from pathlib import Path
import logging

import typer

from shacl_lens.cli_helpers import format_report, resolve_settings, resolve_shapes_location
from shacl_lens.locations import DocumentLocation
from shacl_lens.logging import configure_logging
from shacl_lens.rdf.documents import DocumentRegistry, RdfDocument
from shacl_lens.sessions import ValidationSession, write_json
from shacl_lens.sessions.store import render_json
from shacl_lens.shacl.overview import shape_overview
from shacl_lens.shacl.targets import extract_targets, find_focus_nodes, node_shapes
from shacl_lens.shacl.validator import run_validation
from shacl_lens.workbench import (
    Command,
    CommandKind,
    CreateSession,
    JumpToLocation,
    Outcome,
    RenameSession,
    ReplaceGraph,
    SessionRef,
    Workbench,
)

app = typer.Typer(help="SHACL Lens CLI (validate RDF graphs and navigate the results)")
session_app = typer.Typer(help="Manage saved validation sessions")
app.add_typer(session_app, name="session")
logger = logging.getLogger("shacl_lens.cli")

DEBUG_OPTION = typer.Option(False, "--debug", help="Enable debug logging")
SETTINGS_OPTION = typer.Option(
    None,
    "--settings",
    help="Settings YAML path (overrides SHACL_LENS_SETTINGS)",
)
STORE_OPTION = typer.Option(
    None,
    "--store",
    help="Session store JSON path (overrides settings/SHACL_LENS_SESSIONS)",
)
JSON_OPTION = typer.Option(False, "--json", help="Print JSON instead of text")

EXIT_NOT_CONFORMING = 2


@app.callback()
def _main(debug: bool = DEBUG_OPTION) -> None:
    configure_logging(debug)


def _open(documents: DocumentRegistry, path: Path, rdf_format: str | None = None) -> RdfDocument:
    location = DocumentLocation.from_path(path)
    try:
        return documents.open(location, rdf_format)
    except (OSError, UnicodeDecodeError) as exc:
        raise SystemExit(f"Could not read {path}: {exc}") from exc


def _workbench(
    settings_path: Path | None, store: Path | None, *, need_sessions: bool = True
) -> Workbench:
    settings = resolve_settings(settings_path=settings_path, store=store)
    workbench = Workbench.from_settings(settings)
    if need_sessions and workbench.sessions.load_error is not None:
        raise SystemExit(workbench.sessions.load_error)
    return workbench


def _emit(outcome: Outcome, as_json: bool) -> None:
    if as_json:
        typer.echo(render_json(outcome.to_dict()))
    elif outcome.report is not None:
        typer.echo(format_report(outcome.report))
    elif outcome.text is not None:
        typer.echo(outcome.text)
    else:
        typer.echo(outcome.message)
    if not outcome.ok:
        raise typer.Exit(code=1)


def _describe(session: ValidationSession) -> str:
    if session.last_report is None:
        status = "not validated"
    else:
        status = "conforms" if session.last_report.conforms else "does not conform"
    return (
        f"{session.id}  {session.name}  "
        f"[{session.data_graph_file_name} vs {session.shapes_graph_file_name}]  {status}"
    )


@app.command()
def validate(
    data: Path = typer.Argument(..., help="Data graph to validate"),
    shapes: Path | None = typer.Option(
        None,
        "--shapes",
        "-s",
        help="Shapes graph (defaults to a '# shapes: <path>' comment in the data graph)",
    ),
    data_format: str | None = typer.Option(
        None,
        "--format",
        "-f",
        help="RDF format of the data graph (turtle, trig, n3, nt, nquads, json-ld, xml)",
        case_sensitive=False,
    ),
    inference: str | None = typer.Option(
        None,
        help="Inference before validation: none, rdfs, owlrl, both (overrides settings)",
    ),
    out: Path | None = typer.Option(None, "--out", "-o", help="Write the report JSON here"),
    raw_report: Path | None = typer.Option(
        None,
        help="Optional path to write the raw SHACL report (TTL)",
    ),
    as_json: bool = JSON_OPTION,
    settings_path: Path | None = SETTINGS_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    configure_logging(debug)
    logger.debug("Starting validate: data=%s shapes=%s inference=%s", data, shapes, inference)
    settings = resolve_settings(settings_path=settings_path, store=None, inference=inference)
    shapes_location = resolve_shapes_location(data, shapes, settings)
    documents = DocumentRegistry(settings.graph_store)
    data_document = _open(documents, data, data_format)
    shapes_path = shapes_location.path
    if shapes_path is None:
        raise SystemExit(f"Unsupported shapes location: {shapes_location}")
    shapes_document = _open(documents, shapes_path)
    report = run_validation(data_document, shapes_document, settings)
    if out is not None:
        write_json(report.to_dict(), out)
        logger.debug("Wrote report JSON: %s", out)
    if raw_report is not None and report.raw_report is not None:
        raw_report.parent.mkdir(parents=True, exist_ok=True)
        raw_report.write_text(report.raw_report, encoding="utf-8")
    typer.echo(render_json(report.to_dict()) if as_json else format_report(report))
    if not report.conforms:
        raise typer.Exit(code=EXIT_NOT_CONFORMING)


@app.command()
def shapes(
    shapes_path: Path = typer.Argument(..., help="Shapes graph to summarize"),
    data: Path | None = typer.Option(None, "--data", "-d", help="Data graph for focus nodes"),
    as_json: bool = JSON_OPTION,
    settings_path: Path | None = SETTINGS_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    configure_logging(debug)
    settings = resolve_settings(settings_path=settings_path, store=None)
    documents = DocumentRegistry(settings.graph_store)
    shapes_document = _open(documents, shapes_path)
    if not shapes_document.is_valid:
        for diagnostic in shapes_document.parser_errors:
            typer.echo(f"line {diagnostic.line or '?'}: {diagnostic.message}", err=True)
        raise SystemExit(f"Could not parse shapes graph {shapes_path}")
    data_document = _open(documents, data) if data is not None else None
    lenses = shape_overview(shapes_document, data_document, settings.lookahead_lines)
    if as_json:
        typer.echo(render_json([lens.to_dict() for lens in lenses]))
        return
    for lens in lenses:
        line = f"{lens.range.start.line + 1}" if lens.range is not None else "?"
        typer.echo(f"{shapes_path.name}:{line}  {lens.shape.render()}  {lens.title}")


@app.command("focus-nodes")
def focus_nodes(
    shapes_path: Path = typer.Argument(..., help="Shapes graph"),
    data: Path = typer.Argument(..., help="Data graph"),
    shape: str | None = typer.Option(None, "--shape", help="Only this shape IRI"),
    as_json: bool = JSON_OPTION,
    settings_path: Path | None = SETTINGS_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    configure_logging(debug)
    settings = resolve_settings(settings_path=settings_path, store=None)
    documents = DocumentRegistry(settings.graph_store)
    shapes_document = _open(documents, shapes_path)
    data_document = _open(documents, data)
    for document in (shapes_document, data_document):
        if not document.is_valid:
            raise SystemExit(f"Could not parse {document.location.name}")
    selected = [s for s in node_shapes(shapes_document.graph) if shape is None or str(s) == shape]
    if shape is not None and not selected:
        raise SystemExit(f"No node shape {shape} in {shapes_path}")
    resolved = {
        str(node_shape): sorted(
            find_focus_nodes(
                data_document.graph, extract_targets(shapes_document.graph, node_shape)
            )
        )
        for node_shape in selected
    }
    if as_json:
        typer.echo(render_json(resolved))
        return
    for node_shape, nodes in resolved.items():
        typer.echo(f"{node_shape}: {len(nodes)} focus node(s)")
        for node in nodes:
            typer.echo(f"  {node}")


@app.command()
def locate(
    document: Path = typer.Argument(..., help="Document to search"),
    term: str = typer.Argument(..., help="Term to find (IRI, _:label or literal)"),
    kind: str | None = typer.Option(
        None,
        "--kind",
        help="Term kind: iri, bnode, literal (guessed when omitted)",
    ),
    as_json: bool = JSON_OPTION,
    settings_path: Path | None = SETTINGS_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    configure_logging(debug)
    workbench = _workbench(settings_path, None, need_sessions=False)
    outcome = workbench.dispatch(
        Command(
            CommandKind.JUMP_TO_LOCATION,
            JumpToLocation(DocumentLocation.from_path(document), term, kind),
        )
    )
    if outcome.ok and not as_json:
        found = outcome.ranges[0]
        typer.echo(f"{document}:{found.start.line + 1}:{found.start.character + 1}  {outcome.message}")
        return
    _emit(outcome, as_json)


@session_app.command("create")
def session_create(
    data: Path = typer.Argument(..., help="Data graph"),
    shapes_path: Path | None = typer.Option(None, "--shapes", "-s", help="Shapes graph"),
    name: str | None = typer.Option(None, "--name", help="Session name"),
    as_json: bool = JSON_OPTION,
    settings_path: Path | None = SETTINGS_OPTION,
    store: Path | None = STORE_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    configure_logging(debug)
    workbench = _workbench(settings_path, store)
    shapes_location = resolve_shapes_location(data, shapes_path, workbench.settings)
    outcome = workbench.dispatch(
        Command(
            CommandKind.CREATE_SESSION,
            CreateSession(DocumentLocation.from_path(data), shapes_location, name),
        )
    )
    if outcome.session is not None and not as_json:
        typer.echo(_describe(outcome.session))
        return
    _emit(outcome, as_json)


@session_app.command("list")
def session_list(
    as_json: bool = JSON_OPTION,
    settings_path: Path | None = SETTINGS_OPTION,
    store: Path | None = STORE_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    configure_logging(debug)
    workbench = _workbench(settings_path, store)
    sessions = workbench.sessions.all()
    if as_json:
        typer.echo(render_json([session.to_dict() for session in sessions]))
        return
    if not sessions:
        typer.echo("No sessions.")
    for session in sessions:
        typer.echo(_describe(session))


@session_app.command("show")
def session_show(
    session_id: str = typer.Argument(..., help="Session id"),
    as_json: bool = JSON_OPTION,
    settings_path: Path | None = SETTINGS_OPTION,
    store: Path | None = STORE_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    configure_logging(debug)
    workbench = _workbench(settings_path, store)
    session = workbench.sessions.get(session_id)
    if session is None:
        raise SystemExit(f"Session not found: {session_id}")
    if as_json:
        typer.echo(render_json(session.to_dict()))
        return
    typer.echo(_describe(session))
    typer.echo(f"data:   {session.data_graph}")
    typer.echo(f"shapes: {session.shapes_graph}")
    if session.last_report is not None:
        typer.echo(format_report(session.last_report))


@session_app.command("run")
def session_run(
    session_id: str = typer.Argument(..., help="Session id"),
    as_json: bool = JSON_OPTION,
    settings_path: Path | None = SETTINGS_OPTION,
    store: Path | None = STORE_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    configure_logging(debug)
    workbench = _workbench(settings_path, store)
    outcome = workbench.dispatch(Command(CommandKind.RUN_VALIDATION, SessionRef(session_id)))
    _emit(outcome, as_json)
    if outcome.report is not None and not outcome.report.conforms:
        raise typer.Exit(code=EXIT_NOT_CONFORMING)


@session_app.command("rename")
def session_rename(
    session_id: str = typer.Argument(..., help="Session id"),
    name: str = typer.Argument(..., help="New name"),
    settings_path: Path | None = SETTINGS_OPTION,
    store: Path | None = STORE_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    configure_logging(debug)
    workbench = _workbench(settings_path, store)
    _emit(workbench.dispatch(Command(CommandKind.RENAME_SESSION, RenameSession(session_id, name))), False)


@session_app.command("delete")
def session_delete(
    session_id: str = typer.Argument(..., help="Session id"),
    settings_path: Path | None = SETTINGS_OPTION,
    store: Path | None = STORE_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    configure_logging(debug)
    workbench = _workbench(settings_path, store)
    _emit(workbench.dispatch(Command(CommandKind.DELETE_SESSION, SessionRef(session_id))), False)


def _replace(kind: CommandKind, session_id: str, path: Path, settings_path: Path | None, store: Path | None) -> None:
    workbench = _workbench(settings_path, store)
    location = DocumentLocation.from_path(path)
    _emit(workbench.dispatch(Command(kind, ReplaceGraph(session_id, location))), False)


@session_app.command("set-data")
def session_set_data(
    session_id: str = typer.Argument(..., help="Session id"),
    data: Path = typer.Argument(..., help="New data graph"),
    settings_path: Path | None = SETTINGS_OPTION,
    store: Path | None = STORE_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    configure_logging(debug)
    _replace(CommandKind.REPLACE_DATA_GRAPH, session_id, data, settings_path, store)


@session_app.command("set-shapes")
def session_set_shapes(
    session_id: str = typer.Argument(..., help="Session id"),
    shapes_path: Path = typer.Argument(..., help="New shapes graph"),
    settings_path: Path | None = SETTINGS_OPTION,
    store: Path | None = STORE_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    configure_logging(debug)
    _replace(CommandKind.REPLACE_SHAPES_GRAPH, session_id, shapes_path, settings_path, store)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
