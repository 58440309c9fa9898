"""Composition tree matching and structural replacement.

A composition is a forest: the document's top-level childrenData list,
each node owning its own childrenData. Nodes are plain dicts:

  id:           str, intended unique within one document
  componentId:  renderer name
  type:         "atom" | "layout" | "scene"
  data:         arbitrary props
  context:      {timing: {...}, boundaries: {...}}
  effects:      list of {id, componentId, data}
  childrenData: list of nodes

Traversal is depth-first pre-order over every node, including the
children of nodes that matched.
"""

from .common import deep_copy


def _walk(children):
    """Yield every node of the forest in depth-first pre-order."""
    for node in children or []:
        yield node
        yield from _walk(node.get("childrenData"))


def find_by_id(children: list[dict], target_ids) -> list[dict]:
    """Collect every node whose id is in target_ids, in visitation order.

    Args:
        children: Root list of the forest to search.
        target_ids: Any container of ids (set, list, tuple).

    Returns:
        Matching nodes (the live objects, not copies).
    """
    targets = set(target_ids)
    return [node for node in _walk(children) if node.get("id") in targets]


def find_by_query(
    children: list[dict],
    type: str | None = None,
    component_id: str | None = None,
) -> list[dict]:
    """Collect nodes matching a {type, componentId} query.

    A single criterion matches on its own. When both are supplied the
    node must satisfy both. With neither supplied nothing matches.
    """
    matches = []
    for node in _walk(children):
        if type and component_id:
            matched = node.get("type") == type and node.get("componentId") == component_id
        else:
            matched = (bool(type) and node.get("type") == type) or (
                bool(component_id) and node.get("componentId") == component_id
            )
        if matched:
            matches.append(node)
    return matches


def replace_by_id(children: list[dict], target_ids, replacement: dict) -> list[dict]:
    """Return a new forest with every node whose id is in target_ids replaced.

    The first matched site receives `replacement` itself; every later
    site receives a deep copy, so no two positions share one object.
    The replacement's own children are inserted as-is (not searched).
    Nodes on the path to a match are shallow-copied; the input forest
    is left untouched.
    """
    targets = set(target_ids)
    used = [False]

    def _place():
        if used[0]:
            return deep_copy(replacement)
        used[0] = True
        return replacement

    def _rewrite(nodes):
        result = []
        for node in nodes:
            if node.get("id") in targets:
                result.append(_place())
                continue
            kids = node.get("childrenData")
            if kids:
                node = {**node, "childrenData": _rewrite(kids)}
            result.append(node)
        return result

    return _rewrite(children or [])
