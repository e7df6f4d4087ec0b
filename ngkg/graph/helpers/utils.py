def generate_entity_id(*, entity_type: str, relative_path: str, name: str) -> str:
    """
    Generate the identifier of an entity.

    The id depends only on (file path, name, type), so re-parsing an
    unchanged tree yields the same id. Paths are normalised to forward
    slashes so ids do not differ between platforms.
    """
    if not name:
        raise ValueError("name must be provided")
    normalized = relative_path.replace("\\", "/")
    return f"{entity_type}:{normalized}:{name}"


def generate_relationship_id(
    *, source_id: str, relation_type: str, target: str, qualifier: str | None = None
) -> str:
    """
    Generate the identifier of a relationship from its raw, unclassified parts.

    Classification rewrites a relationship's target but never its id, so the
    id stays stable whatever the resolver decides. ``qualifier`` (the decorator
    property the edge came from) keeps edges to the same target from
    different properties apart, e.g. ``providers`` and ``viewProviders``.
    """
    base = f"{source_id}:{relation_type}:{target}"
    return f"{base}@{qualifier}" if qualifier else base
