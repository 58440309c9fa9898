"""Preset merger — fold one preset's output into the composition document.

A composition document is a dict:

  childrenData: list of root nodes (see tree.py)
  config:       {duration, width, height, fps, ...}
  style:        mapping

A preset output is {output: partial document, options: {...}}. How it
lands in the document depends on the preset type. Rules are checked
top to bottom; the first that applies wins:

  empty base, full        adopt the preset's children, merge config/style
  empty base, other type  no-op (nothing to attach to)
  full                    replace children, merge config/style
  children                append the preset's children under the
                          attachment target (options.attachedToId,
                          default "BaseScene", else the first root)
  data/context/effects    patch the node whose id matches the preset's
                          first child (else the first root):
                            data     lists concatenate, mappings merge,
                                     scalars overwrite
                            context  shallow merge
                            effects  replace

Config and style merges are shallow and the preset wins on conflicts.
Patched nodes are rebuilt and written back with replace_by_id, never
edited through a shared reference.
"""

import logging

from .tree import find_by_id, replace_by_id

logger = logging.getLogger(__name__)


PRESET_TYPES = {"full", "children", "data", "context", "effects"}

DEFAULT_ATTACHMENT_ID = "BaseScene"


def insert_preset(document: dict, preset_output: dict, preset_type: str) -> dict:
    """Merge preset_output into document according to preset_type.

    Args:
        document: Composition being built. Mutated in place.
        preset_output: Normalized {output, options} mapping.
        preset_type: One of PRESET_TYPES.

    Returns:
        The same document object, updated.

    Raises:
        ValueError: Unknown preset_type.
    """
    if preset_type not in PRESET_TYPES:
        raise ValueError(
            f"Unknown preset type '{preset_type}'. Valid: {sorted(PRESET_TYPES)}"
        )

    output = preset_output.get("output") or {}
    options = preset_output.get("options") or {}

    if not document.get("childrenData"):
        if preset_type == "full":
            return _adopt(document, output)
        logger.debug("Skipping %s preset: base composition has no children", preset_type)
        return document

    if preset_type == "full":
        return _adopt(document, output)
    if preset_type == "children":
        return _attach_children(document, output, options)
    return _patch_node(document, output, preset_type)


# ── Policies ──────────────────────────────────────────────────────


def _adopt(document: dict, output: dict) -> dict:
    """Take the preset's children wholesale and merge config/style.

    Every section is built before any is assigned, so a malformed
    section leaves the document untouched.
    """
    updates = {"childrenData": list(output.get("childrenData") or [])}
    for section in ("config", "style"):
        if output.get(section):
            updates[section] = {**(document.get(section) or {}), **output[section]}
    document.update(updates)
    return document


def _attach_children(document: dict, output: dict, options: dict) -> dict:
    """Append the preset's children under the attachment target."""
    new_children = output.get("childrenData") or []
    if not new_children:
        return document

    roots = document["childrenData"]
    target_id = options.get("attachedToId") or DEFAULT_ATTACHMENT_ID
    matches = find_by_id(roots, {target_id})
    if matches:
        target = matches[0]
    else:
        logger.info(
            "Attachment target '%s' not found, attaching to first root '%s'",
            target_id, roots[0].get("id"),
        )
        target = roots[0]

    updated = {
        **target,
        "childrenData": [*(target.get("childrenData") or []), *new_children],
    }
    _write_back(document, target, updated)
    return document


def _patch_node(document: dict, output: dict, preset_type: str) -> dict:
    """Apply a data/context/effects patch taken from the preset's first child."""
    template_nodes = output.get("childrenData") or []
    if not template_nodes:
        return document
    template = template_nodes[0]

    roots = document["childrenData"]
    matches = find_by_id(roots, {template.get("id")})
    target = matches[0] if matches else roots[0]

    updated = dict(target)
    if preset_type == "data":
        if template.get("data"):
            updated["data"] = merge_data(target.get("data") or {}, template["data"])
    elif preset_type == "context":
        if template.get("context"):
            updated["context"] = {**(target.get("context") or {}), **template["context"]}
    elif preset_type == "effects":
        effects = template.get("effects")
        if effects is not None:
            updated["effects"] = list(effects) if isinstance(effects, list) else [effects]

    _write_back(document, target, updated)
    return document


def merge_data(existing: dict, incoming: dict) -> dict:
    """Merge a node's data props.

    Per key: lists concatenate onto an existing list, mappings merge
    shallowly onto an existing mapping, anything else overwrites.
    """
    merged = dict(existing)
    for key, value in incoming.items():
        current = merged.get(key)
        if isinstance(value, list) and isinstance(current, list):
            merged[key] = [*current, *value]
        elif isinstance(value, dict) and isinstance(current, dict):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def _write_back(document: dict, target: dict, updated: dict) -> None:
    """Swap target for updated in the document tree."""
    target_id = target.get("id")
    if target_id is not None:
        document["childrenData"] = replace_by_id(
            document["childrenData"], {target_id}, updated,
        )
        return
    # Id-less fallback root: swap by position.
    document["childrenData"] = [
        updated if node is target else node for node in document["childrenData"]
    ]
