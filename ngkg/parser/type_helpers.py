"""Helpers that reduce TypeScript type text to the name an injector would see."""

import re

_GENERIC_ARGS = re.compile(r"<.*>$", re.DOTALL)
_ARRAY_WRAPPERS = ("Array<", "ReadonlyArray<")

PRIMITIVE_TYPES = frozenset({
    "string",
    "number",
    "boolean",
    "any",
    "unknown",
    "void",
    "never",
    "object",
    "bigint",
    "symbol",
    "null",
    "undefined",
    "Function",
    "Object",
})


def normalize_type_name(type_text: str | None) -> str:
    """Strip array, readonly and generic decoration from a single type.

    ``Foo[]`` -> ``Foo``, ``Array<Foo>`` -> ``Foo``, ``Store<AppState>`` -> ``Store``.
    """
    if not type_text:
        return ""
    text = type_text.strip()
    if text.startswith("readonly "):
        text = text[len("readonly "):].strip()
    while text.endswith("[]"):
        text = text[:-2].strip()
    for wrapper in _ARRAY_WRAPPERS:
        if text.startswith(wrapper) and text.endswith(">"):
            return normalize_type_name(text[len(wrapper):-1])
    return _GENERIC_ARGS.sub("", text).strip()


def primary_type_name(type_text: str | None) -> str:
    """Return the first meaningful member of a (possibly union) type.

    ``UserService | null`` -> ``UserService``. Falls back to the normalised
    text of the first member when every member is null/undefined.
    """
    if not type_text:
        return ""
    members = [part.strip() for part in _split_top_level(type_text, "|") if part.strip()]
    for member in members:
        name = normalize_type_name(member)
        if name and name not in ("null", "undefined"):
            return name
    return normalize_type_name(members[0]) if members else ""


def is_primitive_type(name: str) -> bool:
    return name in PRIMITIVE_TYPES or name.startswith(("'", '"', "{", "("))


def _split_top_level(text: str, separator: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    previous = ""
    for char in text:
        if char in "<([{":
            depth += 1
        elif char in ">)]}" and not (char == ">" and previous == "="):
            depth -= 1
        if char == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
        previous = char
    parts.append("".join(current))
    return parts
