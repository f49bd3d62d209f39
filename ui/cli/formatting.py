"""Human-readable rendering of handler results."""

from __future__ import annotations

from typing import Any


def _memory_line(memory: dict[str, Any]) -> str:
    head = f"[{memory['id']}] {memory['type']}/{memory['state']}"
    if memory.get("confidence"):
        head += f" ({memory['confidence']})"
    if memory.get("status") and memory["status"] != "active":
        head += f" <{memory['status']}>"
    line = f"{head}: {memory.get('title') or memory['statement']}"
    if memory.get("tags"):
        line += f"  #{' #'.join(memory['tags'])}"
    return line


def _entity_line(entity: dict[str, Any]) -> str:
    if "statement" in entity:
        return _memory_line(entity)
    label = entity.get("name") or entity.get("title") or entity.get("summary") or ""
    kind = entity.get("type") or entity.get("model") or ""
    return f"[{entity['id']}] {kind}: {label}" if kind else f"[{entity['id']}] {label}"


def render_memories(memories: list[dict[str, Any]]) -> str:
    if not memories:
        return "No memories found."
    return "\n".join(_memory_line(m) for m in memories)


def render_search(results: list[dict[str, Any]]) -> str:
    if not results:
        return "No results."
    lines = []
    for result in results:
        entity = result.get("memory") or result.get("entity") or {}
        line = f"{result['score']:.3f}  {_entity_line(entity)}"
        if result.get("chunk_text"):
            line += f"\n       ...{result['chunk_text'][:120]}"
        lines.append(line)
    return "\n".join(lines)


def render_write(result: dict[str, Any]) -> str:
    if result["skipped"]:
        return f"Skipped: {result['reason']}"
    lines = [f"Added {_memory_line(result['memory'])}"]
    for link in result["links"]:
        lines.append(f"  linked {link['edge']} -> {link['name']} [{link['target_id']}]")
    for link in result["unresolved"]:
        lines.append(f"  unresolved {link['edge']}: {link['name']}")
    return "\n".join(lines)


def render_change(change: dict[str, Any]) -> str:
    memory = change["memory"]
    if not change["changed"]:
        return f"Unchanged: {_memory_line(memory)}"
    lines = [f"{change['previous_status']} -> {memory['status']}: {_memory_line(memory)}"]
    if not change["id_preserved"]:
        lines.append(f"  id changed from {change['previous_id']} (edges to the old id are dangling)")
    for edge in change["relinked_edges"]:
        lines.append(f"  relinked {edge['kind']} {edge['from_id']} -> {edge['to_id']}")
    return "\n".join(lines)


def render_edge(edge: dict[str, Any]) -> str:
    return f"Linked {edge['from_id']} -{edge['kind']}-> {edge['to_id']}"


def render_show(payload: dict[str, Any]) -> str:
    main = payload.get("memory") or payload.get("entity") or {}
    lines = [_entity_line(main)]
    for key in ("statement", "notes", "description", "reference", "uri", "snippet", "payload"):
        if main.get(key) and main.get(key) != main.get("title"):
            lines.append(f"  {key}: {main[key]}")
    sections = dict(payload.get("graph", {}))
    sections.update({k: v for k, v in payload.items() if k not in {"memory", "entity", "graph"}})
    for name, entities in sections.items():
        if entities:
            lines.append(f"  {name}:")
            lines.extend(f"    {_entity_line(e)}" for e in entities)
    return "\n".join(lines)


def render_entities(entities: list[dict[str, Any]]) -> str:
    if not entities:
        return "Nothing found."
    return "\n".join(_entity_line(e) for e in entities)


def render_reality_check(payload: dict[str, Any]) -> str:
    lines = [f"Reality check ({payload['as_of']})"]
    lines.extend(f"- {m['statement']}" for m in payload["rules"])
    if not payload["rules"]:
        lines.append("No active rules.")
    return "\n".join(lines)


def render_value(value: Any) -> str:
    """Fallback rendering for mappings and lists."""
    if isinstance(value, list):
        return render_entities(value)
    if isinstance(value, dict):
        if "forgotten" in value or "deleted" in value:
            verb = "Forgot" if "forgotten" in value else "Deleted"
            return f"{verb} {_entity_line(next(iter(value.values())))}"
        if "entity" in value or "memory" in value:
            return render_show(value)
        return "\n".join(f"{key}: {val}" for key, val in value.items())
    return str(value)
