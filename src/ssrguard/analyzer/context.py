"""Safe-context analysis for browser-only global references.

Given an identifier that names a restricted global, walk from the
identifier up to the program root and decide whether it sits somewhere a
server-side render never executes:

    const obj = { location: 'x' };           // property key
    const host = obj.location;               // member property
    let loc: typeof location;                // type position
    useEffect(() => location.host, []);      // allowed hook
    setTimeout(() => location.reload());     // allowed function
    <button onClick={() => location.reload()} />   // event handler
    import(`./pages/${location.pathname}`);  // dynamic import
    if (window !== undefined) { ... }        // window guard
    // @client                               // annotation comment
    const host = location.host;

Each ancestor kind is handled by one arm of a dispatch table returning a
Verdict. Comment annotations are checked at every level before the arm.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterator

import tree_sitter

from .options import RuleOptions
from .references import same_node
from .scope import node_text


CLIENT_ANNOTATION = '@client'

# Static type positions: annotations, type literals, type references, aliases
TYPE_KINDS = {
    'type_annotation', 'opting_type_annotation', 'omitting_type_annotation',
    'adding_type_annotation', 'asserts_annotation', 'type_predicate_annotation',
    'object_type', 'generic_type', 'nested_type_identifier',
    'type_alias_declaration', 'interface_declaration',
}

# Containers whose non-computed key/name field is never a global access
KEYED_MEMBER_FIELDS = {
    'pair': 'key',
    'pair_pattern': 'key',
    'method_definition': 'name',
    'field_definition': 'property',
    'public_field_definition': 'name',
    'property_signature': 'name',
    'method_signature': 'name',
    'abstract_method_signature': 'name',
    'enum_assignment': 'name',
}


class MalformedTreeError(ValueError):
    """Raised when a non-root node has no parent."""


class Verdict(Enum):
    """Outcome of inspecting one ancestor."""
    SAFE = 'safe'
    UNSAFE = 'unsafe'
    CONTINUE = 'continue'


@dataclass(frozen=True)
class AnalysisContext:
    """Request-scoped, read-only state for one analysis run."""
    restricted: frozenset[str]
    options: RuleOptions


class ContextAnalyzer:
    """Decides whether a restricted-global reference is in a safe context."""

    def __init__(self):
        self._arms: Dict[str, Callable[[tree_sitter.Node, tree_sitter.Node, AnalysisContext], Verdict]] = {
            'program': self._visit_program,
            'member_expression': self._visit_member_expression,
            'call_expression': self._visit_call_expression,
            'jsx_attribute': self._visit_jsx_attribute,
            'if_statement': self._visit_if_statement,
            'enum_body': self._visit_enum_body,
        }
        for kind in KEYED_MEMBER_FIELDS:
            self._arms[kind] = self._visit_keyed_member
        for kind in TYPE_KINDS:
            self._arms[kind] = self._visit_type

    def is_safe(self, reference: tree_sitter.Node, context: AnalysisContext) -> bool:
        """Walk the ancestors of reference and return True if any accepts it.

        Args:
            reference: Identifier node naming a restricted global
            context: Options and restricted names for this run

        Returns:
            True for a safe use, False if a finding should be reported

        Raises:
            MalformedTreeError: If the walk ends on a node that is not the root
        """
        if reference.parent is None:
            raise MalformedTreeError(f"Reference '{node_text(reference)}' has no parent")

        current = reference
        while True:
            if self._has_client_annotation(current):
                return True

            arm = self._arms.get(current.type)
            verdict = arm(current, reference, context) if arm else Verdict.CONTINUE

            if verdict is Verdict.SAFE:
                return True
            if verdict is Verdict.UNSAFE:
                return False

            if current.parent is None:
                raise MalformedTreeError(
                    f"Node '{current.type}' at line {current.start_point[0] + 1} has no parent"
                )
            current = current.parent

    # ------------------------------------------------------------------
    # Dispatch arms
    # ------------------------------------------------------------------

    def _visit_program(self, node, reference, context) -> Verdict:
        # Reached the root without any safe context
        return Verdict.UNSAFE

    def _visit_keyed_member(self, node, reference, context) -> Verdict:
        field = KEYED_MEMBER_FIELDS[node.type]
        if same_node(node.child_by_field_name(field), reference):
            return Verdict.SAFE
        return Verdict.CONTINUE

    def _visit_enum_body(self, node, reference, context) -> Verdict:
        # enum Keys { location, history }
        if same_node(reference.parent, node):
            return Verdict.SAFE
        return Verdict.CONTINUE

    def _visit_member_expression(self, node, reference, context) -> Verdict:
        # obj.location: only the object side can be the global itself
        if same_node(node.child_by_field_name('property'), reference):
            return Verdict.SAFE
        return Verdict.CONTINUE

    def _visit_type(self, node, reference, context) -> Verdict:
        return Verdict.SAFE

    def _visit_call_expression(self, node, reference, context) -> Verdict:
        callee = node.child_by_field_name('function')
        if callee is None:
            return Verdict.CONTINUE

        # import('./module'): evaluation is deferred
        if callee.type == 'import':
            return Verdict.SAFE

        if callee.type == 'identifier':
            name = node_text(callee)
            if name in context.options.allowed_hooks:
                return Verdict.SAFE
            if name in context.options.allowed_functions:
                return Verdict.SAFE
        return Verdict.CONTINUE

    def _visit_jsx_attribute(self, node, reference, context) -> Verdict:
        name_node = node.named_children[0] if node.named_child_count else None
        if name_node is None or name_node.type != 'property_identifier':
            return Verdict.CONTINUE

        # onClick -> handler, onclick -> plain attribute
        if is_event_handler_name(node_text(name_node)):
            return Verdict.SAFE
        return Verdict.CONTINUE

    def _visit_if_statement(self, node, reference, context) -> Verdict:
        if not context.options.condition_check:
            return Verdict.CONTINUE

        condition = unwrap_parentheses(node.child_by_field_name('condition'))

        if condition is not None and is_window_guard(condition):
            return Verdict.SAFE
        return Verdict.CONTINUE

    # ------------------------------------------------------------------
    # Comment annotations
    # ------------------------------------------------------------------

    def _has_client_annotation(self, node: tree_sitter.Node) -> bool:
        """Check for a `@client` comment ending on the line just above node."""
        start_line = node.start_point[0]
        for comment in preceding_comments(node):
            if start_line - comment.end_point[0] == 1 and comment_body(comment) == CLIENT_ANNOTATION:
                return True
        return False


def is_event_handler_name(name: str) -> bool:
    """True for the `on` + uppercase letter convention (onClick, onChange)."""
    return len(name) > 2 and name.startswith('on') and name[2].isupper()


def is_window_guard(condition: tree_sitter.Node) -> bool:
    """Match exactly `window !== undefined`.

    Equivalent spellings such as `typeof window !== 'undefined'` are not
    recognised.
    """
    if condition.type != 'binary_expression':
        return False

    operator = condition.child_by_field_name('operator')
    left = unwrap_parentheses(condition.child_by_field_name('left'))
    right = unwrap_parentheses(condition.child_by_field_name('right'))
    if operator is None or left is None or right is None:
        return False

    return (
        operator.type == '!=='
        and left.type == 'identifier' and node_text(left) == 'window'
        and right.type in ('undefined', 'identifier') and node_text(right) == 'undefined'
    )


def unwrap_parentheses(node: tree_sitter.Node | None) -> tree_sitter.Node | None:
    """Strip any number of enclosing parentheses: ((window)) -> window."""
    while node is not None and node.type == 'parenthesized_expression':
        node = node.named_children[0] if node.named_child_count else None
    return node


def preceding_comments(node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Yield the comments directly before node, nearest first."""
    sibling = node.prev_sibling
    while sibling is not None and sibling.type == 'comment':
        yield sibling
        sibling = sibling.prev_sibling


def comment_body(comment: tree_sitter.Node) -> str:
    """Strip comment delimiters and surrounding whitespace."""
    text = node_text(comment)
    if text.startswith('//'):
        text = text[2:]
    elif text.startswith('/*'):
        text = text[2:-2] if text.endswith('*/') else text[2:]
    return text.strip()
