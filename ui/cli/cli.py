"""CLI entrypoint for hypermem."""

from __future__ import annotations

import typer

from memory.types import EntityKind
from ui.cli import commands, formatting

app = typer.Typer(help="Knowledge-graph memory store", no_args_is_help=True)
link_app = typer.Typer(help="Create typed edges", no_args_is_help=True)
object_app = typer.Typer(help="Object commands", no_args_is_help=True)
context_app = typer.Typer(help="Context commands", no_args_is_help=True)
agent_app = typer.Typer(help="Agent commands", no_args_is_help=True)
trace_app = typer.Typer(help="Trace commands", no_args_is_help=True)
ref_app = typer.Typer(help="Reference commands", no_args_is_help=True)
config_app = typer.Typer(help="Configuration commands", no_args_is_help=True)

JSON_OPT = typer.Option(False, "--json", help="Emit structured JSON")
LIMIT_OPT = typer.Option(None, "--limit", "-n", min=1, help="Defaults to retrieval.default_limit")


@app.command("add")
def add_cmd(
    statement: str = typer.Argument(..., help="Memory statement"),
    memory_type: str | None = typer.Option(None, "--type", "-t", help="Memory type; classified when omitted"),
    state: str | None = typer.Option(None, "--state", help="fact or assumption"),
    confidence: str | None = typer.Option(None, "--confidence", help="low, med or high (assumptions only)"),
    title: str | None = typer.Option(None, "--title"),
    tag: list[str] | None = typer.Option(None, "--tag", help="Repeatable"),
    notes: str | None = typer.Option(None, "--notes"),
    contributor: list[str] | None = typer.Option(None, "--contributor", help="human or agent; repeatable"),
    valid_from: str | None = typer.Option(None, "--valid-from", help="ISO-8601 timestamp"),
    valid_to: str | None = typer.Option(None, "--valid-to", help="ISO-8601 timestamp"),
    obj: list[str] | None = typer.Option(None, "--object", help="Object name to link (About)"),
    context: list[str] | None = typer.Option(None, "--context", help="Context name to link (InContext)"),
    agent: str | None = typer.Option(None, "--agent", help="Agent name to link (ProposedBy)"),
    as_json: bool = JSON_OPT,
) -> None:
    """Classify, validate, embed and store a memory."""
    commands.emit(
        lambda: commands.add_memory(
            statement,
            memory_type=memory_type,
            state=state,
            confidence=confidence,
            title=title,
            tags=tag,
            notes=notes,
            contributors=contributor,
            valid_from=valid_from,
            valid_to=valid_to,
            objects=obj,
            contexts=context,
            agent=agent,
        ),
        as_json,
        formatting.render_write,
    )


@app.command("list")
def list_cmd(
    memory_type: str | None = typer.Option(None, "--type", "-t"),
    status: str | None = typer.Option(None, "--status", "-s"),
    include_all: bool = typer.Option(False, "--all", "-a", help="Include dimmed memories"),
    as_json: bool = JSON_OPT,
) -> None:
    """List memories in store order."""
    commands.emit(
        lambda: commands.list_memories(memory_type=memory_type, status=status, include_all=include_all),
        as_json,
        formatting.render_memories,
    )


def _register_alias(name: str, memory_type: str) -> None:
    def alias_cmd(as_json: bool = JSON_OPT) -> None:
        commands.emit(
            lambda: commands.list_memories(memory_type=memory_type, status="active"),
            as_json,
            formatting.render_memories,
        )

    alias_cmd.__doc__ = f"List active {name.replace('-', ' ')}."
    app.command(name)(alias_cmd)


for _alias, _type in commands.LIST_ALIASES.items():
    _register_alias(_alias, _type.value)


@app.command("search")
def search_cmd(
    query: str = typer.Argument(...),
    limit: int | None = LIMIT_OPT,
    status: str | None = typer.Option(None, "--status", "-s"),
    include_dimmed: bool = typer.Option(False, "--include-dimmed"),
    as_json: bool = JSON_OPT,
) -> None:
    """Semantic search over memories."""
    commands.emit(
        lambda: commands.search(query, limit=limit, status=status, include_dimmed=include_dimmed),
        as_json,
        formatting.render_search,
    )


@app.command("text-search")
def text_search_cmd(
    text: str = typer.Argument(...),
    limit: int | None = LIMIT_OPT,
    status: str | None = typer.Option(None, "--status", "-s"),
    include_dimmed: bool = typer.Option(False, "--include-dimmed"),
    as_json: bool = JSON_OPT,
) -> None:
    """Substring search over statement, title, notes and tags."""
    commands.emit(
        lambda: commands.text_search(text, limit=limit, status=status, include_dimmed=include_dimmed),
        as_json,
        formatting.render_memories,
    )


@app.command("show")
def show_cmd(
    memory_id: str = typer.Argument(...),
    graph: bool = typer.Option(False, "--graph", "-g", help="Include one-hop relations"),
    as_json: bool = JSON_OPT,
) -> None:
    """Show one memory, dimmed or not."""
    commands.emit(lambda: commands.show_memory(memory_id, with_graph=graph), as_json, formatting.render_show)


def _register_transition(action: str, help_text: str) -> None:
    def transition_cmd(memory_id: str = typer.Argument(...), as_json: bool = JSON_OPT) -> None:
        commands.emit(lambda: commands.transition(memory_id, action), as_json, formatting.render_change)

    transition_cmd.__doc__ = help_text
    app.command(action)(transition_cmd)


_register_transition("dim", "Hide a memory from default views.")
_register_transition("undim", "Return a dimmed memory to active.")
_register_transition("archive", "Archive a memory.")
_register_transition("validate", "Stamp a memory as validated now.")


@app.command("set-status")
def set_status_cmd(
    memory_id: str = typer.Argument(...),
    status: str = typer.Argument(..., help="active, superseded, contested, dimmed or archived"),
    as_json: bool = JSON_OPT,
) -> None:
    """Move a memory to any status."""
    commands.emit(lambda: commands.transition(memory_id, "set", status), as_json, formatting.render_change)


@app.command("forget")
def forget_cmd(memory_id: str = typer.Argument(...), as_json: bool = JSON_OPT) -> None:
    """Delete a memory permanently."""
    commands.emit(lambda: commands.forget(memory_id), as_json)


@app.command("reality-check")
def reality_check_cmd(as_json: bool = JSON_OPT) -> None:
    """Print active rules as reminders."""
    commands.emit(commands.reality_check, as_json, formatting.render_reality_check)


def _register_link(name: str, help_text: str, attr: str | None = None) -> None:
    if attr is None:

        def link_cmd(
            memory_id: str = typer.Argument(...),
            target: str = typer.Argument(..., help="Target id, or name for named kinds"),
            as_json: bool = JSON_OPT,
        ) -> None:
            commands.emit(lambda: commands.link(name, memory_id, target), as_json, formatting.render_edge)

    else:

        def link_cmd(
            memory_id: str = typer.Argument(...),
            target: str = typer.Argument(...),
            description: str = typer.Option(..., "--description", "-d"),
            as_json: bool = JSON_OPT,
        ) -> None:
            commands.emit(
                lambda: commands.link(name, memory_id, target, description=description),
                as_json,
                formatting.render_edge,
            )

    link_cmd.__doc__ = help_text
    link_app.command(name)(link_cmd)


_register_link("about", "Memory is about an object.")
_register_link("aboutref", "Memory is about a reference.")
_register_link("context", "Memory applies in a context.")
_register_link("proposedby", "Memory was proposed by an agent.")
_register_link("versionof", "Version memory of an object.")
_register_link("trace", "Trace is evidence for a memory.")
_register_link("evidence", "Reference is evidence for a memory.")
_register_link("depends", "Memory depends on another.")
_register_link("causal", "Causal link between memories.", attr="description")
_register_link("cause", "Second memory is a cause of the first.")
_register_link("effect", "Second memory is an effect of the first.")
_register_link("related", "Memories are related.")


@link_app.command("supersedes")
def link_supersedes_cmd(
    new_id: str = typer.Argument(...),
    old_id: str = typer.Argument(...),
    reason: str = typer.Option(..., "--reason", "-r"),
    as_json: bool = JSON_OPT,
) -> None:
    """NEW supersedes OLD; OLD is marked superseded."""
    commands.emit(lambda: commands.supersede(new_id, old_id, reason), as_json, formatting.render_change)


@link_app.command("contradicts")
def link_contradicts_cmd(
    first_id: str = typer.Argument(...),
    second_id: str = typer.Argument(..., help="Marked contested"),
    as_json: bool = JSON_OPT,
) -> None:
    """FIRST contradicts SECOND; SECOND is marked contested."""
    commands.emit(lambda: commands.contradict(first_id, second_id), as_json, formatting.render_change)


@link_app.command("partof")
def link_partof_cmd(
    obj: str = typer.Argument(..., help="Object id or name"),
    context: str = typer.Argument(..., help="Context id or name"),
    as_json: bool = JSON_OPT,
) -> None:
    """Object is part of a context."""
    commands.emit(lambda: commands.link_part_of(obj, context), as_json, formatting.render_edge)


@object_app.command("add")
def object_add_cmd(
    name: str = typer.Argument(...),
    object_type: str = typer.Option(..., "--type", "-t"),
    reference: str | None = typer.Option(None, "--reference"),
    description: str | None = typer.Option(None, "--description"),
    as_json: bool = JSON_OPT,
) -> None:
    """Add an object."""
    fields = {"name": name, "type": object_type, "reference": reference, "description": description}
    commands.emit(lambda: commands.catalog_add(EntityKind.OBJECT, fields), as_json)


@context_app.command("add")
def context_add_cmd(
    name: str = typer.Argument(...),
    context_type: str = typer.Option(..., "--type", "-t"),
    description: str | None = typer.Option(None, "--description"),
    as_json: bool = JSON_OPT,
) -> None:
    """Add a context."""
    fields = {"name": name, "type": context_type, "description": description}
    commands.emit(lambda: commands.catalog_add(EntityKind.CONTEXT, fields), as_json)


@agent_app.command("add")
def agent_add_cmd(
    name: str = typer.Argument(...),
    model: str = typer.Option(..., "--model"),
    function: str | None = typer.Option(None, "--function"),
    as_json: bool = JSON_OPT,
) -> None:
    """Add an agent."""
    fields = {"name": name, "model": model, "function": function}
    commands.emit(lambda: commands.catalog_add(EntityKind.AGENT, fields), as_json)


@trace_app.command("add")
def trace_add_cmd(
    summary: str = typer.Argument(...),
    trace_type: str = typer.Option(..., "--type", "-t"),
    payload: str | None = typer.Option(None, "--payload"),
    timestamp: str | None = typer.Option(None, "--timestamp", help="ISO-8601; defaults to now"),
    as_json: bool = JSON_OPT,
) -> None:
    """Add a trace."""
    fields = {"summary": summary, "type": trace_type, "payload": payload, "timestamp": timestamp}
    commands.emit(lambda: commands.catalog_add(EntityKind.TRACE, fields), as_json)


@ref_app.command("add")
def ref_add_cmd(
    title: str = typer.Argument(...),
    ref_type: str = typer.Option(..., "--type", "-t"),
    uri: str | None = typer.Option(None, "--uri"),
    snippet: str | None = typer.Option(None, "--snippet"),
    full_text: str | None = typer.Option(None, "--full-text"),
    as_json: bool = JSON_OPT,
) -> None:
    """Add a reference."""
    fields = {"title": title, "type": ref_type, "uri": uri, "snippet": snippet, "full_text": full_text}
    commands.emit(lambda: commands.catalog_add(EntityKind.REFERENCE, fields), as_json)


def _register_catalog(sub_app: typer.Typer, kind: EntityKind, typed: bool = True) -> None:
    if typed:

        def list_cmd_(
            entity_type: str | None = typer.Option(None, "--type", "-t"),
            as_json: bool = JSON_OPT,
        ) -> None:
            commands.emit(lambda: commands.catalog_list(kind, entity_type), as_json, formatting.render_entities)

    else:

        def list_cmd_(as_json: bool = JSON_OPT) -> None:
            commands.emit(lambda: commands.catalog_list(kind), as_json, formatting.render_entities)

    def show_cmd_(key: str = typer.Argument(..., help="Id, or name for named kinds"), as_json: bool = JSON_OPT) -> None:
        commands.emit(lambda: commands.catalog_show(kind, key), as_json, formatting.render_show)

    def delete_cmd_(key: str = typer.Argument(...), as_json: bool = JSON_OPT) -> None:
        commands.emit(lambda: commands.catalog_delete(kind, key), as_json)

    list_cmd_.__doc__ = f"List {kind.value}s."
    show_cmd_.__doc__ = f"Show one {kind.value}."
    delete_cmd_.__doc__ = f"Delete a {kind.value}; edges to it are left dangling."
    sub_app.command("list")(list_cmd_)
    sub_app.command("show")(show_cmd_)
    sub_app.command("delete")(delete_cmd_)

    if kind in (EntityKind.TRACE, EntityKind.REFERENCE):

        def search_cmd_(
            query: str = typer.Argument(...),
            limit: int | None = LIMIT_OPT,
            as_json: bool = JSON_OPT,
        ) -> None:
            commands.emit(lambda: commands.catalog_search(kind, query, limit), as_json, formatting.render_search)

        search_cmd_.__doc__ = f"Semantic search over {kind.value} chunks."
        sub_app.command("search")(search_cmd_)


_register_catalog(object_app, EntityKind.OBJECT)
_register_catalog(context_app, EntityKind.CONTEXT)
_register_catalog(agent_app, EntityKind.AGENT, typed=False)
_register_catalog(trace_app, EntityKind.TRACE)
_register_catalog(ref_app, EntityKind.REFERENCE)


@config_app.command("show")
def config_show_cmd() -> None:
    """Show effective configuration."""
    commands.emit(commands.config_show, as_json=True)


app.add_typer(link_app, name="link")
app.add_typer(object_app, name="object")
app.add_typer(context_app, name="context")
app.add_typer(agent_app, name="agent")
app.add_typer(trace_app, name="trace")
app.add_typer(ref_app, name="ref")
app.add_typer(config_app, name="config")


def main() -> None:
    """Console script entrypoint."""
    app()


if __name__ == "__main__":
    main()
