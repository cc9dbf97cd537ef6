"""Enumerate identifier references in document order."""
from typing import Iterator

import tree_sitter


# Node kinds that can spell a global's name
REFERENCE_KINDS = {'identifier', 'property_identifier', 'shorthand_property_identifier'}

JSX_ELEMENT_KINDS = {'jsx_opening_element', 'jsx_closing_element', 'jsx_self_closing_element'}


def iter_references(root_node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Yield every identifier-like node below root_node, pre-order.

    JSX tag and attribute names are markup, and the foreign side of an
    aliased import/export specifier is a module member name; neither is
    ever yielded.
    """
    stack = [root_node]

    while stack:
        node = stack.pop()

        if node.type in REFERENCE_KINDS and not _is_name_only(node):
            yield node

        # Reverse so children pop in source order
        stack.extend(reversed(node.named_children))


def _is_name_only(node: tree_sitter.Node) -> bool:
    """Check whether node merely spells a name without reading a variable."""
    parent = node.parent
    if parent is None:
        return False

    if parent.type == 'jsx_attribute':
        return node.type == 'property_identifier'
    if parent.type == 'jsx_namespace_name':
        return True
    if parent.type == 'import_specifier':
        # import { location as loc } from 'mod'
        return (parent.child_by_field_name('alias') is not None
                and same_node(parent.child_by_field_name('name'), node))
    if parent.type == 'export_specifier':
        # export { loc as location }
        return same_node(parent.child_by_field_name('alias'), node)

    # Climb out of <Foo.Bar.Baz> member chains
    current = node
    while parent is not None and parent.type in ('member_expression', 'nested_identifier'):
        current = parent
        parent = parent.parent

    if parent is not None and parent.type in JSX_ELEMENT_KINDS:
        return same_node(parent.child_by_field_name('name'), current)
    return False


def same_node(a: tree_sitter.Node | None, b: tree_sitter.Node | None) -> bool:
    """Compare two possibly missing nodes by identity in the tree."""
    return a is not None and b is not None and a == b
