"""Lexical scope lookup for JavaScript/TypeScript tree-sitter trees.

A reference to a global name is only a real global access when no
enclosing scope declares the same name. Bindings are derived on demand
from the scope node itself; nothing is cached between references.
"""
from typing import Iterator, Set

import tree_sitter


# Function-like nodes: own a parameter list and hoist `var` declarations
FUNCTION_SCOPES = {
    'function_declaration', 'function_expression', 'function',
    'generator_function_declaration', 'generator_function',
    'arrow_function', 'method_definition',
}

# Nodes whose direct statements may declare block-scoped names
BLOCK_SCOPES = {'program', 'statement_block', 'switch_body'}

DECLARATION_NAMES = {
    'function_declaration', 'generator_function_declaration',
    'class_declaration', 'abstract_class_declaration', 'enum_declaration',
}

VARIABLE_DECLARATIONS = {'lexical_declaration', 'variable_declaration'}

# namespace N { } and module N { }
MODULE_DECLARATIONS = {'internal_module', 'module'}


def node_text(node: tree_sitter.Node) -> str:
    return node.text.decode('utf-8')


class ScopeResolver:
    """Answers "is this name declared in an enclosing scope of this node?"."""

    def is_shadowed(self, reference: tree_sitter.Node, name: str) -> bool:
        """Check whether any enclosing scope of reference declares name.

        Args:
            reference: Identifier node being resolved
            name: Identifier text

        Returns:
            True if a local binding hides the global
        """
        scope = reference.parent
        while scope is not None:
            if name in self.declared_names(scope):
                return True
            scope = scope.parent
        return False

    def declared_names(self, scope: tree_sitter.Node) -> Set[str]:
        """Collect the names a single scope node declares.

        Nodes that do not open a scope declare nothing.
        """
        names: Set[str] = set()
        kind = scope.type

        if kind in BLOCK_SCOPES:
            names.update(self._block_names(scope))
            if kind == 'program':
                names.update(self._hoisted_vars(scope))
        elif kind in FUNCTION_SCOPES:
            names.update(self._parameter_names(scope))
            if kind in ('function_expression', 'function', 'generator_function'):
                # A named function expression binds its own name inside itself
                name_node = scope.child_by_field_name('name')
                if name_node is not None:
                    names.add(node_text(name_node))
            body = scope.child_by_field_name('body')
            if body is not None:
                names.update(self._hoisted_vars(body))
        elif kind == 'class':
            name_node = scope.child_by_field_name('name')
            if name_node is not None:
                names.add(node_text(name_node))
        elif kind == 'catch_clause':
            parameter = scope.child_by_field_name('parameter')
            if parameter is not None:
                names.update(pattern_names(parameter))
        elif kind == 'for_statement':
            for child in scope.named_children:
                if child.type in VARIABLE_DECLARATIONS:
                    names.update(declarator_names(child))
        elif kind == 'for_in_statement':
            if any(child.type in ('let', 'const', 'var') for child in scope.children):
                left = scope.child_by_field_name('left')
                if left is not None:
                    names.update(pattern_names(left))

        return names

    def _block_names(self, block: tree_sitter.Node) -> Iterator[str]:
        """Names declared by the statements directly inside a block."""
        for statement in block.named_children:
            if statement.type in ('switch_case', 'switch_default'):
                # case bodies share the switch block's scope
                yield from self._block_names(statement)
            else:
                yield from statement_names(statement)

    def _parameter_names(self, function: tree_sitter.Node) -> Iterator[str]:
        single = function.child_by_field_name('parameter')
        if single is not None:
            # x => ...
            yield from pattern_names(single)
        parameters = function.child_by_field_name('parameters')
        if parameters is not None:
            for parameter in parameters.named_children:
                yield from pattern_names(parameter)

    def _hoisted_vars(self, root: tree_sitter.Node) -> Iterator[str]:
        """Names of `var` declarations anywhere below root, outside nested functions."""
        stack = list(root.named_children)
        while stack:
            node = stack.pop()
            if node.type in FUNCTION_SCOPES or node.type == 'class':
                continue
            if node.type == 'variable_declaration':
                yield from declarator_names(node)
            stack.extend(node.named_children)


def statement_names(statement: tree_sitter.Node) -> Iterator[str]:
    """Names a single statement declares in its enclosing block."""
    kind = statement.type

    if kind in VARIABLE_DECLARATIONS:
        yield from declarator_names(statement)
    elif kind in DECLARATION_NAMES:
        name_node = statement.child_by_field_name('name')
        if name_node is not None:
            yield node_text(name_node)
    elif kind in MODULE_DECLARATIONS:
        name_node = module_root_name(statement.child_by_field_name('name'))
        if name_node is not None:
            yield node_text(name_node)
    elif kind == 'expression_statement':
        # tree-sitter may wrap a namespace declaration as an expression
        for child in statement.named_children:
            if child.type in MODULE_DECLARATIONS:
                yield from statement_names(child)
    elif kind == 'import_statement':
        yield from import_names(statement)
    elif kind == 'import_alias':
        # import x = Foo.bar;
        alias = statement.named_children[0] if statement.named_child_count else None
        if alias is not None and alias.type == 'identifier':
            yield node_text(alias)
    elif kind in ('export_statement', 'ambient_declaration'):
        # export const x = ...; declare const x: T;
        declaration = statement.child_by_field_name('declaration')
        if declaration is not None:
            yield from statement_names(declaration)
        else:
            for child in statement.named_children:
                yield from statement_names(child)


def module_root_name(name_node: tree_sitter.Node | None) -> tree_sitter.Node | None:
    """Leftmost identifier of a namespace name; string module names bind nothing."""
    while name_node is not None and name_node.type == 'nested_identifier':
        name_node = name_node.named_children[0] if name_node.named_child_count else None
    if name_node is not None and name_node.type == 'identifier':
        return name_node
    return None


def declarator_names(declaration: tree_sitter.Node) -> Iterator[str]:
    """Handle const x = 1, { a, b } = obj, [c] = arr."""
    for declarator in declaration.named_children:
        if declarator.type == 'variable_declarator':
            name_node = declarator.child_by_field_name('name')
            if name_node is not None:
                yield from pattern_names(name_node)


def pattern_names(pattern: tree_sitter.Node) -> Iterator[str]:
    """Recursively collect identifiers bound by a (destructuring) pattern.

    Default values and type annotations are skipped: they reference names,
    they do not bind them.
    """
    kind = pattern.type

    if kind in ('identifier', 'shorthand_property_identifier_pattern'):
        yield node_text(pattern)
    elif kind in ('required_parameter', 'optional_parameter'):
        inner = pattern.child_by_field_name('pattern')
        if inner is not None:
            yield from pattern_names(inner)
    elif kind in ('assignment_pattern', 'object_assignment_pattern'):
        left = pattern.child_by_field_name('left')
        if left is not None:
            yield from pattern_names(left)
    elif kind == 'pair_pattern':
        value = pattern.child_by_field_name('value')
        if value is not None:
            yield from pattern_names(value)
    elif kind in ('object_pattern', 'array_pattern', 'rest_pattern'):
        for child in pattern.named_children:
            yield from pattern_names(child)


def import_names(statement: tree_sitter.Node) -> Iterator[str]:
    """Local names introduced by an ESM import statement."""
    for clause in statement.named_children:
        if clause.type == 'import_require_clause':
            # import x = require('mod')
            for child in clause.named_children:
                if child.type == 'identifier':
                    yield node_text(child)
                    break
            continue
        if clause.type != 'import_clause':
            continue
        for child in clause.named_children:
            if child.type == 'identifier':
                # import x from 'mod'
                yield node_text(child)
            elif child.type == 'namespace_import':
                # import * as ns from 'mod'
                for ns_child in child.named_children:
                    if ns_child.type == 'identifier':
                        yield node_text(ns_child)
            elif child.type == 'named_imports':
                # import { x, y as z } from 'mod'
                for specifier in child.named_children:
                    if specifier.type != 'import_specifier':
                        continue
                    local = specifier.child_by_field_name('alias')
                    if local is None:
                        local = specifier.child_by_field_name('name')
                    if local is not None:
                        yield node_text(local)
