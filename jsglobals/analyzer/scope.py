"""Lexical scopes and the binding rules that populate them.

A Scope is created when the traversal enters a scope-opening node and is
filled with every name that node binds *before* any of its children are
visited, so hoisted ``var`` and function declarations are visible to
references that appear earlier in the source.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional

from .syntax import SyntaxNode, iter_child_nodes

FUNCTION_TYPES = frozenset({'FunctionDeclaration', 'FunctionExpression', 'ArrowFunctionExpression'})
CLASS_TYPES = frozenset({'ClassDeclaration', 'ClassExpression'})
LOOP_TYPES = frozenset({'ForStatement', 'ForInStatement', 'ForOfStatement'})
EXPORT_TYPES = frozenset({'ExportNamedDeclaration', 'ExportDefaultDeclaration'})
IMPORT_SPECIFIER_TYPES = frozenset({'ImportSpecifier', 'ImportDefaultSpecifier', 'ImportNamespaceSpecifier'})

# var-scan stops here: nested functions and class bodies own their declarations
VAR_SCAN_BOUNDARIES = FUNCTION_TYPES | CLASS_TYPES | {'StaticBlock'}


class ScopeKind(str, Enum):
    GLOBAL = 'global'
    FUNCTION = 'function'
    BLOCK = 'block'
    CATCH = 'catch'
    CLASS = 'class'


@dataclass
class Binding:
    """A name declared in a scope."""
    name: str
    kind: str  # 'var', 'let', 'const', 'function', 'class', 'param', 'catch', 'import', 'implicit'
    node: Optional[SyntaxNode] = None


class Scope:
    """One lexical environment.

    Attributes:
        kind: What kind of construct opened the scope
        node: The syntax node that opened it
        parent: Enclosing scope, None only for the global scope
        bindings: name -> Binding for every name declared here
        children: Scopes opened directly inside this one
    """

    def __init__(self, kind: ScopeKind, node: Optional[SyntaxNode], parent: Optional['Scope'] = None):
        self.kind = kind
        self.node = node
        self.parent = parent
        self.bindings: Dict[str, Binding] = {}
        self.children: List['Scope'] = []
        if parent is not None:
            parent.children.append(self)

    @property
    def is_var_scope(self) -> bool:
        return self.kind in (ScopeKind.GLOBAL, ScopeKind.FUNCTION)

    def declare(self, name: str, kind: str, node: Optional[SyntaxNode] = None) -> Binding:
        """Bind ``name`` here; the first declaration of a name wins."""
        return self.bindings.setdefault(name, Binding(name, kind, node))

    def declares(self, name: str) -> bool:
        return name in self.bindings

    def lookup(self, name: str) -> Optional['Scope']:
        """Return the nearest scope on the enclosing chain that binds ``name``."""
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope.bindings:
                return scope
            scope = scope.parent
        return None

    def __repr__(self) -> str:
        return f"<Scope {self.kind.value} {sorted(self.bindings)}>"


def pattern_names(pattern: Optional[SyntaxNode]) -> Iterator[SyntaxNode]:
    """Yield the Identifier nodes bound by a declaration pattern."""
    if pattern is None:
        return
    if pattern.type == 'Identifier':
        yield pattern
    elif pattern.type == 'ObjectPattern':
        for prop in pattern.properties:
            if prop.type == 'Property':
                yield from pattern_names(prop.value)
            else:
                yield from pattern_names(prop)
    elif pattern.type == 'ArrayPattern':
        for element in pattern.elements:
            yield from pattern_names(element)
    elif pattern.type == 'RestElement':
        yield from pattern_names(pattern.argument)
    elif pattern.type == 'AssignmentPattern':
        yield from pattern_names(pattern.left)


class ScopeBuilder:
    """Creates and populates scopes as a traversal enters scope-opening nodes.

    The builder keeps the node -> Scope association for the whole run; one
    builder serves exactly one traversal.
    """

    def __init__(self, report_arrow_arguments: bool = True):
        self.report_arrow_arguments = report_arrow_arguments
        self.scopes: Dict[SyntaxNode, Scope] = {}
        self.global_scope: Optional[Scope] = None

    def opens_scope(self, node: SyntaxNode, field: Optional[str], parent: Optional[SyntaxNode]) -> bool:
        if node.type == 'BlockStatement':
            # a function body shares its function's scope
            return not (parent is not None and parent.type in FUNCTION_TYPES and field == 'body')
        return (node.type in FUNCTION_TYPES or node.type in CLASS_TYPES or node.type in LOOP_TYPES
                or node.type in ('Program', 'CatchClause', 'SwitchStatement', 'StaticBlock'))

    def enter(self, node: SyntaxNode, parent_scope: Optional[Scope]) -> Scope:
        """Create the scope for ``node`` and declare everything it binds."""
        if node.type == 'Program':
            scope = Scope(ScopeKind.GLOBAL, node, parent_scope)
            self.global_scope = self.global_scope or scope
            self._declare_body(scope, node.body)
        elif node.type in FUNCTION_TYPES:
            scope = Scope(ScopeKind.FUNCTION, node, parent_scope)
            self._declare_function(scope, node)
        elif node.type == 'StaticBlock':
            scope = Scope(ScopeKind.FUNCTION, node, parent_scope)
            self._declare_body(scope, node.body)
        elif node.type in CLASS_TYPES:
            scope = Scope(ScopeKind.CLASS, node, parent_scope)
            if node.id is not None:
                scope.declare(node.id.name, 'class', node.id)
        elif node.type == 'CatchClause':
            scope = Scope(ScopeKind.CATCH, node, parent_scope)
            for identifier in pattern_names(node.param):
                scope.declare(identifier.name, 'catch', identifier)
        else:
            scope = Scope(ScopeKind.BLOCK, node, parent_scope)
            self._declare_block(scope, node)
        self.scopes[node] = scope
        return scope

    def _declare_function(self, scope: Scope, node: SyntaxNode):
        if node.type == 'FunctionExpression' and node.id is not None:
            scope.declare(node.id.name, 'function', node.id)
        if node.type != 'ArrowFunctionExpression' or not self.report_arrow_arguments:
            scope.declare('arguments', 'implicit')
        for param in node.params:
            for identifier in pattern_names(param):
                scope.declare(identifier.name, 'param', identifier)
        if node.body.type == 'BlockStatement':
            self._declare_body(scope, node.body.body)

    def _declare_body(self, scope: Scope, statements: List[SyntaxNode]):
        """Declare the hoisted and the top-level lexical names of a var scope."""
        for statement in statements:
            self._declare_hoisted(scope, statement)
        self._declare_lexical(scope, statements)

    def _declare_hoisted(self, scope: Scope, node: SyntaxNode):
        """Bind var and function declarations anywhere below ``node``.

        Descends through blocks, loops, branches and labels but never into a
        nested function or class.
        """
        stack = [node]
        while stack:
            current = stack.pop()
            if current.type == 'FunctionDeclaration':
                if current.id is not None:
                    scope.declare(current.id.name, 'function', current.id)
                continue
            if current.type in VAR_SCAN_BOUNDARIES:
                continue
            if current.type == 'VariableDeclaration' and current.kind == 'var':
                self._declare_declarators(scope, current)
            stack.extend(child for _, child in iter_child_nodes(current))

    def _declare_lexical(self, scope: Scope, statements: Iterable[SyntaxNode]):
        """Bind let/const/class/import declarations that sit directly in ``statements``."""
        for statement in statements:
            if statement.type in EXPORT_TYPES and statement.declaration is not None:
                statement = statement.declaration
            if statement.type == 'VariableDeclaration' and statement.kind != 'var':
                self._declare_declarators(scope, statement)
            elif statement.type == 'ClassDeclaration' and statement.id is not None:
                scope.declare(statement.id.name, 'class', statement.id)
            elif statement.type == 'ImportDeclaration':
                for specifier in statement.specifiers:
                    if specifier.type in IMPORT_SPECIFIER_TYPES:
                        scope.declare(specifier.local.name, 'import', specifier.local)

    def _declare_block(self, scope: Scope, node: SyntaxNode):
        if node.type == 'BlockStatement':
            self._declare_lexical(scope, node.body)
        elif node.type == 'SwitchStatement':
            for case in node.cases:
                self._declare_lexical(scope, case.consequent)
        elif node.type == 'ForStatement':
            if node.init is not None:
                self._declare_lexical(scope, [node.init])
        elif node.type in ('ForInStatement', 'ForOfStatement'):
            self._declare_lexical(scope, [node.left])

    @staticmethod
    def _declare_declarators(scope: Scope, declaration: SyntaxNode):
        for declarator in declaration.declarations:
            for identifier in pattern_names(declarator.id):
                scope.declare(identifier.name, declaration.kind, identifier)
