"""Shared test fixtures for presetcompose tests."""

import pytest


def node(id, componentId="Box", type="layout", children=None, **fields):
    """Build a composition node dict with sensible defaults."""
    n = {
        "id": id,
        "componentId": componentId,
        "type": type,
        "data": {},
        "context": {},
        "effects": [],
        "childrenData": children or [],
    }
    n.update(fields)
    return n


@pytest.fixture
def sample_tree():
    """Scene with a nested layout and a few atoms.

    BaseScene
      ├── title (TextAtom atom)
      └── stack (layout)
            ├── caption (TextAtom atom)
            └── badge (ImageAtom atom)
    outro (TextAtom layout)
    """
    return [
        node("BaseScene", componentId="BaseLayout", type="scene", children=[
            node("title", componentId="TextAtom", type="atom"),
            node("stack", children=[
                node("caption", componentId="TextAtom", type="atom"),
                node("badge", componentId="ImageAtom", type="atom"),
            ]),
        ]),
        node("outro", componentId="TextAtom", type="layout"),
    ]
