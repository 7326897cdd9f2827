"""Find identifier references that no enclosing scope binds.

A single traversal walks the ESTree Program with an explicit scope stack.
Entering a scope-opening node creates and fully populates its Scope first
(see ``ScopeBuilder``), then the children are visited; every identifier in a
reference position is looked up along the enclosing-scope chain and, if
nothing binds it, recorded as an Occurrence of a GlobalReference.

Example:
    >>> refs = detect_globals("function f(a) { return a + b.c; }")
    >>> [(ref.name, ref.qualified_names) for ref in refs]
    [('b', ['b.c'])]
"""
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Union

from .estree import parse_javascript
from .scope import CLASS_TYPES, FUNCTION_TYPES, Scope, ScopeBuilder
from .syntax import SyntaxNode, iter_child_nodes

# (parent type, field) positions where an Identifier names something instead of reading it
NON_REFERENCE_FIELDS = frozenset({
    ('LabeledStatement', 'label'),
    ('BreakStatement', 'label'),
    ('ContinueStatement', 'label'),
    ('MetaProperty', 'meta'),
    ('MetaProperty', 'property'),
    ('FunctionDeclaration', 'id'),
    ('FunctionExpression', 'id'),
    ('ClassDeclaration', 'id'),
    ('ClassExpression', 'id'),
    ('VariableDeclarator', 'id'),
    ('ExportSpecifier', 'exported'),
    ('ExportAllDeclaration', 'exported'),
})

# the same positions, but only when the key is not computed
STATIC_KEY_FIELDS = frozenset({
    ('MemberExpression', 'property'),
    ('Property', 'key'),
    ('MethodDefinition', 'key'),
    ('PropertyDefinition', 'key'),
})

SKIPPED_TYPES = frozenset({
    'Super', 'PrivateIdentifier', 'Literal', 'TemplateElement', 'MetaProperty',
    'ImportDeclaration', 'ExportAllDeclaration', 'EmptyStatement', 'DebuggerStatement',
})

PATTERN_TYPES = frozenset({'Identifier', 'ObjectPattern', 'ArrayPattern', 'RestElement', 'AssignmentPattern'})

# left-nested chain node type -> field holding its operand
CHAIN_OPERAND_FIELDS = {
    'MemberExpression': 'object',
    'CallExpression': 'callee',
    'TaggedTemplateExpression': 'tag',
    'BinaryExpression': 'left',
    'LogicalExpression': 'left',
}


@dataclass
class Occurrence:
    """One unresolved reference.

    ``ancestors`` is the slice of enclosing nodes, innermost first, that the
    qualified path was built from (the MemberExpression chain above the
    reference).
    """
    node: SyntaxNode
    ancestors: List[SyntaxNode] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return build_qualified_name(self.node, self.ancestors)

    @property
    def line(self) -> int:
        return self.node.line

    @property
    def column(self) -> int:
        return self.node.column


@dataclass
class GlobalReference:
    """Every unresolved occurrence of one root name, in document order."""
    name: str
    nodes: List[Occurrence] = field(default_factory=list)

    @property
    def qualified_names(self) -> List[str]:
        return [occurrence.qualified_name for occurrence in self.nodes]


def number_to_key(value: Union[int, float], bigint: bool = False) -> str:
    """Render a numeric literal the way JavaScript converts it to a property key.

    Integers beyond 2**53 lose precision like JavaScript numbers do, and
    exponents follow Number.prototype.toString: ``1e+21``, ``1e-7``.
    """
    if bigint:
        return str(value)
    try:
        number = float(value)
    except OverflowError:
        return 'Infinity'
    if math.isnan(number):
        return 'NaN'
    if math.isinf(number):
        return 'Infinity' if number > 0 else '-Infinity'
    if number == 0:
        return '0'
    sign = '-' if number < 0 else ''
    _, digit_tuple, exponent = Decimal(repr(abs(number))).normalize().as_tuple()
    digits = ''.join(str(digit) for digit in digit_tuple)
    k = len(digits)
    n = exponent + k
    if k <= n <= 21:
        return sign + digits + '0' * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + '.' + digits[n:]
    if -6 < n <= 0:
        return sign + '0.' + '0' * -n + digits
    mantissa = digits[0] + ('.' + digits[1:] if k > 1 else '')
    power = n - 1
    return f"{sign}{mantissa}e{'+' if power > 0 else '-'}{abs(power)}"


def _static_key(member: SyntaxNode) -> Optional[str]:
    """Return the property name a MemberExpression reads, or None if dynamic."""
    prop = member.property
    if not member.computed:
        return prop.name if prop.type in ('Identifier', 'PrivateIdentifier') else None
    if prop.type != 'Literal' or isinstance(prop.value, bool):
        return None
    if isinstance(prop.value, str):
        return prop.value
    if isinstance(prop.value, (int, float)):
        return number_to_key(prop.value, bigint=prop.raw.endswith('n'))
    return None


def _segment(node: SyntaxNode) -> Optional[str]:
    if node.type == 'Identifier':
        return node.name
    if node.type == 'ThisExpression':
        return 'this'
    if node.type == 'MemberExpression':
        return _static_key(node)
    return None


def qualified_path(node: SyntaxNode, ancestors: Sequence[SyntaxNode]) -> List[SyntaxNode]:
    """Return the prefix of ``ancestors`` (innermost first) that extends the path of ``node``."""
    consumed = []
    for ancestor in ancestors:
        if _segment(ancestor) is None:
            break
        consumed.append(ancestor)
    return consumed


def build_qualified_name(node: SyntaxNode, ancestors: Sequence[SyntaxNode]) -> str:
    """Build a dotted access path such as ``a.b.c`` from a reference and its ancestors."""
    segments = []
    for part in [node, *ancestors]:
        segment = _segment(part)
        if segment is None:
            break
        segments.append(segment)
    return '.'.join(segments)


class ReferenceResolver:
    """Resolves every reference of one tree against its scopes.

    An instance handles a single run: after ``resolve`` returns, ``scopes``
    maps each scope-opening node to its Scope and ``global_scope`` is the
    root of the scope tree.
    """

    def __init__(self, report_arrow_arguments: bool = True):
        self.builder = ScopeBuilder(report_arrow_arguments=report_arrow_arguments)
        self._ancestors: List[SyntaxNode] = []
        self._found: Dict[str, GlobalReference] = {}

    @property
    def scopes(self) -> Dict[SyntaxNode, Scope]:
        return self.builder.scopes

    @property
    def global_scope(self) -> Optional[Scope]:
        return self.builder.global_scope

    def resolve(self, tree: SyntaxNode) -> List[GlobalReference]:
        if self._found or self.builder.scopes:
            raise RuntimeError("ReferenceResolver instances are single-use")
        self._visit(tree, None, None, None)
        return list(self._found.values())

    # -- traversal ----------------------------------------------------------

    def _visit(self, node: SyntaxNode, field: Optional[str], parent: Optional[SyntaxNode],
               scope: Optional[Scope]):
        kind = node.type
        if kind == 'Identifier':
            if self._is_reference(field, parent):
                self._lookup(node.name, node, scope)
            return
        if kind == 'ThisExpression':
            # nothing ever binds `this`
            self._record('this', node)
            return
        if kind in SKIPPED_TYPES:
            return
        if kind in FUNCTION_TYPES:
            self._visit_function(node, scope)
            return
        if kind in CLASS_TYPES:
            self._visit_class(node, scope)
            return
        if kind in CHAIN_OPERAND_FIELDS:
            self._visit_chain(node, scope)
            return
        if kind == 'ExportNamedDeclaration' and node.source is not None:
            # re-exports read from another module, not from this scope
            return

        self._ancestors.append(node)
        if kind == 'SwitchStatement':
            self._visit(node.discriminant, 'discriminant', node, scope)
        if self.builder.opens_scope(node, field, parent):
            scope = self.builder.enter(node, scope)

        if kind == 'VariableDeclaration':
            for declarator in node.declarations:
                self._ancestors.append(declarator)
                self._visit_binding(declarator.id, 'id', declarator, scope)
                if declarator.init is not None:
                    self._visit(declarator.init, 'init', declarator, scope)
                self._ancestors.pop()
        elif kind == 'CatchClause':
            if node.param is not None:
                self._visit_binding(node.param, 'param', node, scope)
            self._visit(node.body, 'body', node, scope)
        else:
            for child_field, child in iter_child_nodes(node):
                if kind == 'SwitchStatement' and child_field == 'discriminant':
                    continue
                self._visit(child, child_field, node, scope)
        self._ancestors.pop()

    def _visit_chain(self, node: SyntaxNode, scope: Optional[Scope]):
        """Visit a left-nested chain (a.b.c(), x + y + z) without recursing down its spine.

        Children are still visited in field order: the innermost operand
        first, then each link's remaining fields from the inside out.
        """
        spine = [node]
        operand = getattr(node, CHAIN_OPERAND_FIELDS[node.type])
        while operand.type in CHAIN_OPERAND_FIELDS:
            spine.append(operand)
            operand = getattr(operand, CHAIN_OPERAND_FIELDS[operand.type])
        self._ancestors.extend(spine)
        innermost = spine[-1]
        self._visit(operand, CHAIN_OPERAND_FIELDS[innermost.type], innermost, scope)
        for link in reversed(spine):
            operand_field = CHAIN_OPERAND_FIELDS[link.type]
            for child_field, child in iter_child_nodes(link):
                if child_field != operand_field:
                    self._visit(child, child_field, link, scope)
            self._ancestors.pop()

    def _visit_function(self, node: SyntaxNode, scope: Optional[Scope]):
        function_scope = self.builder.enter(node, scope)
        self._ancestors.append(node)
        for param in node.params:
            self._visit_binding(param, 'params', node, function_scope)
        body = node.body
        if body.type == 'BlockStatement':
            self._ancestors.append(body)
            for statement in body.body:
                self._visit(statement, 'body', body, function_scope)
            self._ancestors.pop()
        else:
            self._visit(body, 'body', node, function_scope)
        self._ancestors.pop()

    def _visit_class(self, node: SyntaxNode, scope: Optional[Scope]):
        self._ancestors.append(node)
        for decorator in node.decorators:
            self._visit(decorator, 'decorators', node, scope)
        # the heritage expression is evaluated outside the class body
        if node.superClass is not None:
            self._visit(node.superClass, 'superClass', node, scope)
        class_scope = self.builder.enter(node, scope)
        self._visit(node.body, 'body', node, class_scope)
        self._ancestors.pop()

    def _visit_binding(self, pattern: SyntaxNode, field: str, parent: SyntaxNode, scope: Scope):
        """Walk a declaration pattern: names are bindings, defaults and computed keys are reads."""
        kind = pattern.type
        if kind == 'Identifier':
            return
        if kind not in PATTERN_TYPES:
            self._visit(pattern, field, parent, scope)
            return
        self._ancestors.append(pattern)
        if kind == 'ObjectPattern':
            for prop in pattern.properties:
                if prop.type == 'Property':
                    self._ancestors.append(prop)
                    if prop.computed:
                        self._visit(prop.key, 'key', prop, scope)
                    self._visit_binding(prop.value, 'value', prop, scope)
                    self._ancestors.pop()
                else:
                    self._visit_binding(prop, 'properties', pattern, scope)
        elif kind == 'ArrayPattern':
            for element in pattern.elements:
                if element is not None:
                    self._visit_binding(element, 'elements', pattern, scope)
        elif kind == 'RestElement':
            self._visit_binding(pattern.argument, 'argument', pattern, scope)
        else:
            self._visit_binding(pattern.left, 'left', pattern, scope)
            self._visit(pattern.right, 'right', pattern, scope)
        self._ancestors.pop()

    # -- classification and recording ---------------------------------------

    @staticmethod
    def _is_reference(field: Optional[str], parent: Optional[SyntaxNode]) -> bool:
        if parent is None:
            return True
        position = (parent.type, field)
        if position in NON_REFERENCE_FIELDS:
            return False
        if position in STATIC_KEY_FIELDS:
            return bool(getattr(parent, 'computed', False))
        return True

    def _lookup(self, name: str, node: SyntaxNode, scope: Optional[Scope]):
        if scope is not None and scope.lookup(name) is not None:
            return
        self._record(name, node)

    def _record(self, name: str, node: SyntaxNode):
        reference = self._found.get(name)
        if reference is None:
            reference = self._found[name] = GlobalReference(name)
        enclosing = list(reversed(self._ancestors))
        reference.nodes.append(Occurrence(node, qualified_path(node, enclosing)))


def detect_unresolved_references(tree: SyntaxNode, *, report_arrow_arguments: bool = True) -> List[GlobalReference]:
    """Return every unresolved reference in ``tree``, grouped by root name.

    Names appear in first-seen order; occurrences of a name in document order.

    Args:
        tree: An ESTree Program
        report_arrow_arguments: Report ``arguments`` inside arrow functions that
            have no ordinary enclosing function (False treats arrows as binding it)
    """
    return ReferenceResolver(report_arrow_arguments=report_arrow_arguments).resolve(tree)


def detect_globals(source_code: Union[str, bytes], *, report_arrow_arguments: bool = True) -> List[GlobalReference]:
    """Parse JavaScript source and detect its unresolved references.

    Raises:
        ParseError: If the source does not parse cleanly
    """
    return detect_unresolved_references(parse_javascript(source_code),
                                        report_arrow_arguments=report_arrow_arguments)


def sort_references(references: Sequence[GlobalReference]) -> List[GlobalReference]:
    """Order references by name; occurrences keep document order."""
    return sorted(references, key=lambda reference: reference.name)
