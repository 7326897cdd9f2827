"""Convert tree-sitter-javascript trees into ESTree-shaped SyntaxNodes.

The scope engine only understands the ESTree vocabulary (Identifier,
MemberExpression, VariableDeclarator, ...). Tree-sitter produces a concrete
syntax tree with its own node names, so this module maps one onto the other:

    member_expression      -> MemberExpression(computed=False)
    subscript_expression   -> MemberExpression(computed=True)
    lexical_declaration    -> VariableDeclaration(kind='let' | 'const')
    pair_pattern           -> Property inside an ObjectPattern
    parenthesized_expression -> its inner expression

Node types the converter does not know (JSX, future grammar additions) become
opaque nodes: ``SyntaxNode(<tree-sitter type>, children=[...])``.
"""
import re
from typing import Callable, Dict, List, Optional, Union

from tree_sitter import Node, Tree

from .parser import LanguageParser
from .syntax import SyntaxNode, link_parents

EXTRA_TYPES = frozenset({'comment', 'html_comment', 'hash_bang_line'})

# JSX tag names are element names, not variable reads
JSX_TAGGED_TYPES = frozenset({'jsx_opening_element', 'jsx_closing_element', 'jsx_self_closing_element'})

LOGICAL_OPERATORS = frozenset({'&&', '||', '??'})

# chain link type -> field holding its left-nested operand
CHAIN_OPERAND_FIELDS = {
    'member_expression': 'object',
    'subscript_expression': 'object',
    'call_expression': 'function',
    'binary_expression': 'left',
}

SINGLE_CHARACTER_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', 'b': '\b', 'f': '\f', 'v': '\v'}
LINE_TERMINATORS = frozenset({'\n', '\r', '\r\n', '\u2028', '\u2029'})
STRING_ESCAPE_PATTERN = re.compile(
    r'\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|[0-3][0-7]{0,2}|[4-7][0-7]?|\r\n|[\s\S])'
)


class EstreeConverter:
    """Builds an ESTree Program from a tree-sitter Tree."""

    def __init__(self, source_code: Union[str, bytes]):
        if isinstance(source_code, str):
            source_code = source_code.encode('utf-8')
        self.source_code = source_code
        self._handlers: Dict[str, Callable[[Node], SyntaxNode]] = {}

    def convert(self, tree: Tree) -> SyntaxNode:
        """Convert a whole tree and link parent pointers."""
        program = self.node(tree.root_node)
        return link_parents(program)

    # -- dispatch -----------------------------------------------------------

    def node(self, ts_node: Node) -> SyntaxNode:
        handler = self._handlers.get(ts_node.type)
        if handler is None:
            handler = getattr(self, '_convert_' + ts_node.type, self._convert_opaque)
            self._handlers[ts_node.type] = handler
        return handler(ts_node)

    def optional(self, ts_node: Optional[Node]) -> Optional[SyntaxNode]:
        if ts_node is None or not ts_node.is_named:
            return None
        return self.node(ts_node)

    def pattern(self, ts_node: Node) -> SyntaxNode:
        """Convert a node in a binding or assignment-target position."""
        if ts_node.type == 'parenthesized_expression':
            return self.pattern(self._named(ts_node)[0])
        return self.node(ts_node)

    # -- helpers ------------------------------------------------------------

    def _make(self, type: str, ts_node: Node, **fields) -> SyntaxNode:
        row, column = ts_node.start_point
        return SyntaxNode(type, start=ts_node.start_byte, end=ts_node.end_byte,
                          line=row + 1, column=column, **fields)

    def _text(self, ts_node: Node) -> str:
        return self.source_code[ts_node.start_byte:ts_node.end_byte].decode('utf-8')

    @staticmethod
    def _named(ts_node: Node) -> List[Node]:
        return [child for child in ts_node.named_children if child.type not in EXTRA_TYPES]

    @staticmethod
    def _has_token(ts_node: Node, *tokens: str) -> bool:
        return any(not child.is_named and child.type in tokens for child in ts_node.children)

    def _identifier(self, ts_node: Node, name: Optional[str] = None) -> SyntaxNode:
        return self._make('Identifier', ts_node, name=name if name is not None else self._text(ts_node))

    def _statements(self, nodes: List[Node]) -> List[SyntaxNode]:
        return [self.node(child) for child in nodes if child.is_named and child.type not in EXTRA_TYPES]

    def _elements(self, ts_node: Node, convert: Callable[[Node], SyntaxNode]) -> List[Optional[SyntaxNode]]:
        """Convert array-like children, keeping holes as ``None``."""
        elements: List[Optional[SyntaxNode]] = []
        expecting = True
        for child in ts_node.children:
            if child.type in EXTRA_TYPES or child.type in ('[', ']'):
                continue
            if child.type == ',':
                if expecting:
                    elements.append(None)
                expecting = True
            else:
                elements.append(convert(child))
                expecting = False
        return elements

    def _property_key(self, ts_node: Node) -> SyntaxNode:
        if ts_node.type == 'computed_property_name':
            return self.node(self._named(ts_node)[0])
        if ts_node.type == 'private_property_identifier':
            return self._make('PrivateIdentifier', ts_node, name=self._text(ts_node).lstrip('#'))
        if ts_node.type in ('string', 'number'):
            return self.node(ts_node)
        return self._identifier(ts_node)

    # -- program and statements ---------------------------------------------

    def _convert_program(self, ts_node: Node) -> SyntaxNode:
        return self._make('Program', ts_node, body=self._statements(ts_node.children),
                          sourceType='module')

    def _convert_expression_statement(self, ts_node: Node) -> SyntaxNode:
        return self._make('ExpressionStatement', ts_node, expression=self.node(self._named(ts_node)[0]))

    def _convert_empty_statement(self, ts_node: Node) -> SyntaxNode:
        return self._make('EmptyStatement', ts_node)

    def _convert_debugger_statement(self, ts_node: Node) -> SyntaxNode:
        return self._make('DebuggerStatement', ts_node)

    def _convert_statement_block(self, ts_node: Node) -> SyntaxNode:
        return self._make('BlockStatement', ts_node, body=self._statements(ts_node.children))

    def _convert_variable_declaration(self, ts_node: Node) -> SyntaxNode:
        return self._make('VariableDeclaration', ts_node, kind='var',
                          declarations=[self.node(d) for d in self._named(ts_node)])

    def _convert_lexical_declaration(self, ts_node: Node) -> SyntaxNode:
        kind = self._text(ts_node.child_by_field_name('kind'))
        declarators = [d for d in self._named(ts_node) if d.type == 'variable_declarator']
        return self._make('VariableDeclaration', ts_node, kind=kind,
                          declarations=[self.node(d) for d in declarators])

    def _convert_variable_declarator(self, ts_node: Node) -> SyntaxNode:
        return self._make('VariableDeclarator', ts_node,
                          id=self.pattern(ts_node.child_by_field_name('name')),
                          init=self.optional(ts_node.child_by_field_name('value')))

    def _convert_if_statement(self, ts_node: Node) -> SyntaxNode:
        alternative = ts_node.child_by_field_name('alternative')
        if alternative is not None:
            alternative = self.node(self._named(alternative)[0])
        return self._make('IfStatement', ts_node,
                          test=self.node(ts_node.child_by_field_name('condition')),
                          consequent=self.node(ts_node.child_by_field_name('consequence')),
                          alternate=alternative)

    def _convert_switch_statement(self, ts_node: Node) -> SyntaxNode:
        body = ts_node.child_by_field_name('body')
        return self._make('SwitchStatement', ts_node,
                          discriminant=self.node(ts_node.child_by_field_name('value')),
                          cases=[self.node(case) for case in self._named(body)])

    def _convert_switch_case(self, ts_node: Node) -> SyntaxNode:
        return self._make('SwitchCase', ts_node,
                          test=self.node(ts_node.child_by_field_name('value')),
                          consequent=self._statements(ts_node.children_by_field_name('body')))

    def _convert_switch_default(self, ts_node: Node) -> SyntaxNode:
        return self._make('SwitchCase', ts_node, test=None,
                          consequent=self._statements(ts_node.children_by_field_name('body')))

    def _convert_for_statement(self, ts_node: Node) -> SyntaxNode:
        return self._make('ForStatement', ts_node,
                          init=self._for_clause(ts_node.child_by_field_name('initializer')),
                          test=self._for_clause(ts_node.child_by_field_name('condition')),
                          update=self._for_clause(ts_node.child_by_field_name('increment')),
                          body=self.node(ts_node.child_by_field_name('body')))

    def _for_clause(self, ts_node: Optional[Node]) -> Optional[SyntaxNode]:
        if ts_node is None or not ts_node.is_named or ts_node.type == 'empty_statement':
            return None
        if ts_node.type == 'expression_statement':
            return self.node(self._named(ts_node)[0])
        return self.node(ts_node)

    def _convert_for_in_statement(self, ts_node: Node) -> SyntaxNode:
        kind = ts_node.child_by_field_name('kind')
        left = ts_node.child_by_field_name('left')
        operator = self._text(ts_node.child_by_field_name('operator'))
        if kind is not None:
            declarator = self._make('VariableDeclarator', left, id=self.pattern(left),
                                    init=self.optional(ts_node.child_by_field_name('value')))
            target = self._make('VariableDeclaration', left, kind=self._text(kind),
                                declarations=[declarator])
        else:
            target = self.pattern(left)
        fields = dict(left=target,
                      right=self.node(ts_node.child_by_field_name('right')),
                      body=self.node(ts_node.child_by_field_name('body')))
        if operator == 'of':
            return self._make('ForOfStatement', ts_node, await_=self._has_token(ts_node, 'await'), **fields)
        return self._make('ForInStatement', ts_node, **fields)

    def _convert_while_statement(self, ts_node: Node) -> SyntaxNode:
        return self._make('WhileStatement', ts_node,
                          test=self.node(ts_node.child_by_field_name('condition')),
                          body=self.node(ts_node.child_by_field_name('body')))

    def _convert_do_statement(self, ts_node: Node) -> SyntaxNode:
        return self._make('DoWhileStatement', ts_node,
                          body=self.node(ts_node.child_by_field_name('body')),
                          test=self.node(ts_node.child_by_field_name('condition')))

    def _convert_try_statement(self, ts_node: Node) -> SyntaxNode:
        finalizer = ts_node.child_by_field_name('finalizer')
        if finalizer is not None:
            finalizer = self.node(finalizer.child_by_field_name('body'))
        return self._make('TryStatement', ts_node,
                          block=self.node(ts_node.child_by_field_name('body')),
                          handler=self.optional(ts_node.child_by_field_name('handler')),
                          finalizer=finalizer)

    def _convert_catch_clause(self, ts_node: Node) -> SyntaxNode:
        parameter = ts_node.child_by_field_name('parameter')
        return self._make('CatchClause', ts_node,
                          param=self.pattern(parameter) if parameter is not None else None,
                          body=self.node(ts_node.child_by_field_name('body')))

    def _convert_return_statement(self, ts_node: Node) -> SyntaxNode:
        named = self._named(ts_node)
        return self._make('ReturnStatement', ts_node, argument=self.node(named[0]) if named else None)

    def _convert_throw_statement(self, ts_node: Node) -> SyntaxNode:
        return self._make('ThrowStatement', ts_node, argument=self.node(self._named(ts_node)[0]))

    def _convert_break_statement(self, ts_node: Node) -> SyntaxNode:
        return self._make('BreakStatement', ts_node, label=self._label(ts_node))

    def _convert_continue_statement(self, ts_node: Node) -> SyntaxNode:
        return self._make('ContinueStatement', ts_node, label=self._label(ts_node))

    def _label(self, ts_node: Node) -> Optional[SyntaxNode]:
        label = ts_node.child_by_field_name('label')
        return self._identifier(label) if label is not None else None

    def _convert_labeled_statement(self, ts_node: Node) -> SyntaxNode:
        return self._make('LabeledStatement', ts_node,
                          label=self._identifier(ts_node.child_by_field_name('label')),
                          body=self.node(ts_node.child_by_field_name('body')))

    def _convert_with_statement(self, ts_node: Node) -> SyntaxNode:
        return self._make('WithStatement', ts_node,
                          object=self.node(ts_node.child_by_field_name('object')),
                          body=self.node(ts_node.child_by_field_name('body')))

    # -- modules ------------------------------------------------------------

    def _convert_import_statement(self, ts_node: Node) -> SyntaxNode:
        specifiers: List[SyntaxNode] = []
        for child in self._named(ts_node):
            if child.type != 'import_clause':
                continue
            for part in self._named(child):
                if part.type == 'identifier':
                    specifiers.append(self._make('ImportDefaultSpecifier', part, local=self._identifier(part)))
                elif part.type == 'namespace_import':
                    local = self._named(part)[0]
                    specifiers.append(self._make('ImportNamespaceSpecifier', part, local=self._identifier(local)))
                elif part.type == 'named_imports':
                    specifiers.extend(self.node(spec) for spec in self._named(part)
                                      if spec.type == 'import_specifier')
        return self._make('ImportDeclaration', ts_node, specifiers=specifiers,
                          source=self.node(ts_node.child_by_field_name('source')))

    def _convert_import_specifier(self, ts_node: Node) -> SyntaxNode:
        name = ts_node.child_by_field_name('name')
        alias = ts_node.child_by_field_name('alias')
        return self._make('ImportSpecifier', ts_node,
                          imported=self._module_export_name(name),
                          local=self._identifier(alias if alias is not None else name))

    def _module_export_name(self, ts_node: Node) -> SyntaxNode:
        if ts_node.type == 'string':
            return self.node(ts_node)
        return self._identifier(ts_node)

    def _convert_export_statement(self, ts_node: Node) -> SyntaxNode:
        declaration = ts_node.child_by_field_name('declaration')
        value = ts_node.child_by_field_name('value')
        source = self.optional(ts_node.child_by_field_name('source'))

        if self._has_token(ts_node, 'default'):
            target = declaration if declaration is not None else value
            return self._make('ExportDefaultDeclaration', ts_node, declaration=self.node(target))
        if declaration is not None:
            return self._make('ExportNamedDeclaration', ts_node, declaration=self.node(declaration),
                              specifiers=[], source=None)

        for child in self._named(ts_node):
            if child.type == 'export_clause':
                specifiers = [self.node(spec) for spec in self._named(child)
                              if spec.type == 'export_specifier']
                return self._make('ExportNamedDeclaration', ts_node, declaration=None,
                                  specifiers=specifiers, source=source)
            if child.type == 'namespace_export':
                exported = [n for n in self._named(child)]
                return self._make('ExportAllDeclaration', ts_node,
                                  exported=self._module_export_name(exported[0]) if exported else None,
                                  source=source)
        return self._make('ExportAllDeclaration', ts_node, exported=None, source=source)

    def _convert_export_specifier(self, ts_node: Node) -> SyntaxNode:
        name = ts_node.child_by_field_name('name')
        alias = ts_node.child_by_field_name('alias')
        return self._make('ExportSpecifier', ts_node,
                          local=self._module_export_name(name),
                          exported=self._module_export_name(alias if alias is not None else name))

    # -- functions and classes ----------------------------------------------

    def _function(self, type: str, ts_node: Node) -> SyntaxNode:
        name = ts_node.child_by_field_name('name')
        return self._make(type, ts_node,
                          id=self._identifier(name) if name is not None else None,
                          params=self._parameters(ts_node.child_by_field_name('parameters')),
                          body=self.node(ts_node.child_by_field_name('body')),
                          generator=self._has_token(ts_node, '*'),
                          async_=self._has_token(ts_node, 'async'))

    def _parameters(self, ts_node: Optional[Node]) -> List[SyntaxNode]:
        if ts_node is None:
            return []
        return [self.pattern(param) for param in self._named(ts_node)]

    def _convert_function_declaration(self, ts_node: Node) -> SyntaxNode:
        return self._function('FunctionDeclaration', ts_node)

    _convert_generator_function_declaration = _convert_function_declaration

    def _convert_function_expression(self, ts_node: Node) -> SyntaxNode:
        return self._function('FunctionExpression', ts_node)

    # older grammars name function expressions 'function'
    _convert_function = _convert_function_expression
    _convert_generator_function = _convert_function_expression

    def _convert_arrow_function(self, ts_node: Node) -> SyntaxNode:
        parameter = ts_node.child_by_field_name('parameter')
        if parameter is not None:
            params = [self._identifier(parameter)]
        else:
            params = self._parameters(ts_node.child_by_field_name('parameters'))
        body = ts_node.child_by_field_name('body')
        return self._make('ArrowFunctionExpression', ts_node, id=None, params=params,
                          body=self.node(body), expression=body.type != 'statement_block',
                          generator=False, async_=self._has_token(ts_node, 'async'))

    def _class(self, type: str, ts_node: Node) -> SyntaxNode:
        name = ts_node.child_by_field_name('name')
        superclass = None
        decorators = []
        for child in self._named(ts_node):
            if child.type == 'class_heritage':
                superclass = self.node(self._named(child)[0])
            elif child.type == 'decorator':
                decorators.append(self.node(child))
        return self._make(type, ts_node,
                          decorators=decorators,
                          id=self._identifier(name) if name is not None else None,
                          superClass=superclass,
                          body=self.node(ts_node.child_by_field_name('body')))

    def _convert_class_declaration(self, ts_node: Node) -> SyntaxNode:
        return self._class('ClassDeclaration', ts_node)

    def _convert_class(self, ts_node: Node) -> SyntaxNode:
        return self._class('ClassExpression', ts_node)

    def _convert_class_body(self, ts_node: Node) -> SyntaxNode:
        return self._make('ClassBody', ts_node, body=self._statements(ts_node.children))

    def _convert_method_definition(self, ts_node: Node) -> SyntaxNode:
        name = ts_node.child_by_field_name('name')
        key = self._property_key(name)
        value = self._make('FunctionExpression', ts_node, id=None,
                           params=self._parameters(ts_node.child_by_field_name('parameters')),
                           body=self.node(ts_node.child_by_field_name('body')),
                           generator=self._has_token(ts_node, '*'),
                           async_=self._has_token(ts_node, 'async'))
        tokens = {child.type for child in ts_node.children if not child.is_named}
        if tokens & {'get', 'static get'}:
            kind = 'get'
        elif 'set' in tokens:
            kind = 'set'
        elif name.type == 'property_identifier' and self._text(name) == 'constructor':
            kind = 'constructor'
        else:
            kind = 'method'
        static = bool(tokens & {'static', 'static get'})
        decorators = [self.node(c) for c in self._named(ts_node) if c.type == 'decorator']
        if ts_node.parent is not None and ts_node.parent.type == 'object':
            return self._make('Property', ts_node, key=key, value=value, computed=name.type == 'computed_property_name',
                              kind='init' if kind in ('method', 'constructor') else kind,
                              method=kind in ('method', 'constructor'), shorthand=False)
        return self._make('MethodDefinition', ts_node, decorators=decorators, key=key,
                          computed=name.type == 'computed_property_name', value=value,
                          kind=kind, static=static)

    def _convert_field_definition(self, ts_node: Node) -> SyntaxNode:
        prop = ts_node.child_by_field_name('property')
        return self._make('PropertyDefinition', ts_node,
                          decorators=[self.node(c) for c in self._named(ts_node) if c.type == 'decorator'],
                          key=self._property_key(prop),
                          computed=prop.type == 'computed_property_name',
                          value=self.optional(ts_node.child_by_field_name('value')),
                          static=self._has_token(ts_node, 'static'))

    def _convert_class_static_block(self, ts_node: Node) -> SyntaxNode:
        body = ts_node.child_by_field_name('body')
        return self._make('StaticBlock', ts_node, body=self._statements(body.children))

    def _convert_decorator(self, ts_node: Node) -> SyntaxNode:
        return self._make('Decorator', ts_node, expression=self.node(self._named(ts_node)[0]))

    # -- patterns -----------------------------------------------------------

    def _convert_object_pattern(self, ts_node: Node) -> SyntaxNode:
        properties = []
        for child in self._named(ts_node):
            if child.type == 'shorthand_property_identifier_pattern':
                properties.append(self._shorthand(child))
            elif child.type == 'pair_pattern':
                key = child.child_by_field_name('key')
                properties.append(self._make('Property', child, key=self._property_key(key),
                                             computed=key.type == 'computed_property_name',
                                             value=self.pattern(child.child_by_field_name('value')),
                                             kind='init', method=False, shorthand=False))
            elif child.type == 'object_assignment_pattern':
                properties.append(self._object_assignment(child))
            else:
                properties.append(self.node(child))
        return self._make('ObjectPattern', ts_node, properties=properties)

    def _shorthand(self, ts_node: Node, value: Optional[SyntaxNode] = None) -> SyntaxNode:
        return self._make('Property', ts_node, key=self._identifier(ts_node),
                          value=value if value is not None else self._identifier(ts_node),
                          computed=False, kind='init', method=False, shorthand=True)

    def _object_assignment(self, ts_node: Node) -> SyntaxNode:
        """``{a = 1}`` becomes a shorthand Property whose value is an AssignmentPattern."""
        left = ts_node.child_by_field_name('left')
        default = self._make('AssignmentPattern', ts_node, left=self.pattern(left),
                             right=self.node(ts_node.child_by_field_name('right')))
        if left.type == 'shorthand_property_identifier_pattern':
            return self._shorthand(left, value=default)
        return default

    def _convert_shorthand_property_identifier_pattern(self, ts_node: Node) -> SyntaxNode:
        return self._identifier(ts_node)

    def _convert_array_pattern(self, ts_node: Node) -> SyntaxNode:
        return self._make('ArrayPattern', ts_node, elements=self._elements(ts_node, self.pattern))

    def _convert_assignment_pattern(self, ts_node: Node) -> SyntaxNode:
        return self._make('AssignmentPattern', ts_node,
                          left=self.pattern(ts_node.child_by_field_name('left')),
                          right=self.node(ts_node.child_by_field_name('right')))

    def _convert_rest_pattern(self, ts_node: Node) -> SyntaxNode:
        return self._make('RestElement', ts_node, argument=self.pattern(self._named(ts_node)[0]))

    # -- expressions --------------------------------------------------------

    def _convert_identifier(self, ts_node: Node) -> SyntaxNode:
        return self._identifier(ts_node)

    def _convert_undefined(self, ts_node: Node) -> SyntaxNode:
        return self._identifier(ts_node, 'undefined')

    def _convert_this(self, ts_node: Node) -> SyntaxNode:
        return self._make('ThisExpression', ts_node)

    def _convert_super(self, ts_node: Node) -> SyntaxNode:
        return self._make('Super', ts_node)

    def _convert_private_property_identifier(self, ts_node: Node) -> SyntaxNode:
        return self._make('PrivateIdentifier', ts_node, name=self._text(ts_node).lstrip('#'))

    def _convert_true(self, ts_node: Node) -> SyntaxNode:
        return self._make('Literal', ts_node, value=True, raw='true')

    def _convert_false(self, ts_node: Node) -> SyntaxNode:
        return self._make('Literal', ts_node, value=False, raw='false')

    def _convert_null(self, ts_node: Node) -> SyntaxNode:
        return self._make('Literal', ts_node, value=None, raw='null')

    def _convert_number(self, ts_node: Node) -> SyntaxNode:
        raw = self._text(ts_node)
        return self._make('Literal', ts_node, value=parse_number(raw), raw=raw)

    def _convert_string(self, ts_node: Node) -> SyntaxNode:
        raw = self._text(ts_node)
        return self._make('Literal', ts_node, value=parse_string(raw), raw=raw)

    def _convert_regex(self, ts_node: Node) -> SyntaxNode:
        pattern = ts_node.child_by_field_name('pattern')
        flags = ts_node.child_by_field_name('flags')
        return self._make('Literal', ts_node, value=None, raw=self._text(ts_node),
                          regex={'pattern': self._text(pattern) if pattern is not None else '',
                                 'flags': self._text(flags) if flags is not None else ''})

    def _convert_template_string(self, ts_node: Node) -> SyntaxNode:
        quasis = []
        expressions = []
        for child in self._named(ts_node):
            if child.type == 'template_substitution':
                expressions.append(self.node(self._named(child)[0]))
            else:
                quasis.append(self._make('TemplateElement', child, raw=self._text(child)))
        return self._make('TemplateLiteral', ts_node, quasis=quasis, expressions=expressions)

    def _convert_object(self, ts_node: Node) -> SyntaxNode:
        properties = []
        for child in self._named(ts_node):
            if child.type == 'pair':
                key = child.child_by_field_name('key')
                properties.append(self._make('Property', child, key=self._property_key(key),
                                             computed=key.type == 'computed_property_name',
                                             value=self.node(child.child_by_field_name('value')),
                                             kind='init', method=False, shorthand=False))
            elif child.type == 'shorthand_property_identifier':
                properties.append(self._shorthand(child))
            else:
                properties.append(self.node(child))
        return self._make('ObjectExpression', ts_node, properties=properties)

    def _convert_array(self, ts_node: Node) -> SyntaxNode:
        return self._make('ArrayExpression', ts_node, elements=self._elements(ts_node, self.node))

    def _convert_spread_element(self, ts_node: Node) -> SyntaxNode:
        return self._make('SpreadElement', ts_node, argument=self.node(self._named(ts_node)[0]))

    def _convert_parenthesized_expression(self, ts_node: Node) -> SyntaxNode:
        return self.node(self._named(ts_node)[0])

    def _convert_sequence_expression(self, ts_node: Node) -> SyntaxNode:
        expressions = []
        pending = [ts_node]
        while pending:
            current = pending.pop(0)
            for child in self._named(current):
                if child.type == 'sequence_expression':
                    pending.insert(0, child)
                else:
                    expressions.append(self.node(child))
        return self._make('SequenceExpression', ts_node, expressions=expressions)

    def _convert_new_expression(self, ts_node: Node) -> SyntaxNode:
        arguments = ts_node.child_by_field_name('arguments')
        return self._make('NewExpression', ts_node,
                          callee=self.node(ts_node.child_by_field_name('constructor')),
                          arguments=[self.node(arg) for arg in self._named(arguments)]
                          if arguments is not None else [])

    def _convert_assignment_expression(self, ts_node: Node) -> SyntaxNode:
        return self._make('AssignmentExpression', ts_node, operator='=',
                          left=self.pattern(ts_node.child_by_field_name('left')),
                          right=self.node(ts_node.child_by_field_name('right')))

    def _convert_augmented_assignment_expression(self, ts_node: Node) -> SyntaxNode:
        return self._make('AssignmentExpression', ts_node,
                          operator=self._text(ts_node.child_by_field_name('operator')),
                          left=self.pattern(ts_node.child_by_field_name('left')),
                          right=self.node(ts_node.child_by_field_name('right')))

    def _convert_unary_expression(self, ts_node: Node) -> SyntaxNode:
        return self._make('UnaryExpression', ts_node,
                          operator=self._text(ts_node.child_by_field_name('operator')), prefix=True,
                          argument=self.node(ts_node.child_by_field_name('argument')))

    def _convert_update_expression(self, ts_node: Node) -> SyntaxNode:
        operator = ts_node.child_by_field_name('operator')
        argument = ts_node.child_by_field_name('argument')
        return self._make('UpdateExpression', ts_node, operator=self._text(operator),
                          prefix=operator.start_byte < argument.start_byte,
                          argument=self.node(argument))

    def _convert_ternary_expression(self, ts_node: Node) -> SyntaxNode:
        return self._make('ConditionalExpression', ts_node,
                          test=self.node(ts_node.child_by_field_name('condition')),
                          consequent=self.node(ts_node.child_by_field_name('consequence')),
                          alternate=self.node(ts_node.child_by_field_name('alternative')))

    def _convert_await_expression(self, ts_node: Node) -> SyntaxNode:
        return self._make('AwaitExpression', ts_node, argument=self.node(self._named(ts_node)[0]))

    def _convert_yield_expression(self, ts_node: Node) -> SyntaxNode:
        named = self._named(ts_node)
        return self._make('YieldExpression', ts_node,
                          argument=self.node(named[0]) if named else None,
                          delegate=self._has_token(ts_node, '*'))

    def _convert_meta_property(self, ts_node: Node) -> SyntaxNode:
        meta, _, prop = self._text(ts_node).partition('.')
        return self._make('MetaProperty', ts_node,
                          meta=self._make('Identifier', ts_node, name=meta.strip()),
                          property=self._make('Identifier', ts_node, name=prop.strip()))

    # -- left-nested chains -------------------------------------------------
    # a.b.c(), f()() and 'a' + 'b' + ... nest once per link; the spine is
    # walked with a loop so chain length never bounds the stack depth.

    def _chain_operand(self, ts_node: Node) -> Optional[Node]:
        """The left-nested operand of a chain link, or None if the link has none."""
        if ts_node.type == 'call_expression':
            function = ts_node.child_by_field_name('function')
            return None if function.type == 'import' else function
        return ts_node.child_by_field_name(CHAIN_OPERAND_FIELDS[ts_node.type])

    def _convert_chain(self, ts_node: Node) -> SyntaxNode:
        spine = [ts_node]
        operand = self._chain_operand(ts_node)
        while operand is not None and operand.type in CHAIN_OPERAND_FIELDS:
            spine.append(operand)
            operand = self._chain_operand(operand)
        converted = self.node(operand) if operand is not None else None
        for link in reversed(spine):
            converted = self._chain_link(link, converted)
        return converted

    def _chain_link(self, ts_node: Node, operand: Optional[SyntaxNode]) -> SyntaxNode:
        kind = ts_node.type
        optional = ts_node.child_by_field_name('optional_chain') is not None
        if kind == 'member_expression':
            return self._make('MemberExpression', ts_node, object=operand,
                              property=self._property_key(ts_node.child_by_field_name('property')),
                              computed=False, optional=optional)
        if kind == 'subscript_expression':
            return self._make('MemberExpression', ts_node, object=operand,
                              property=self.node(ts_node.child_by_field_name('index')),
                              computed=True, optional=optional)
        if kind == 'binary_expression':
            operator = self._text(ts_node.child_by_field_name('operator'))
            type = 'LogicalExpression' if operator in LOGICAL_OPERATORS else 'BinaryExpression'
            return self._make(type, ts_node, operator=operator, left=operand,
                              right=self.node(ts_node.child_by_field_name('right')))

        arguments = ts_node.child_by_field_name('arguments')
        if operand is None:
            args = self._named(arguments)
            return self._make('ImportExpression', ts_node, source=self.node(args[0]) if args else None)
        if arguments.type == 'template_string':
            return self._make('TaggedTemplateExpression', ts_node, tag=operand, quasi=self.node(arguments))
        return self._make('CallExpression', ts_node, callee=operand,
                          arguments=[self.node(arg) for arg in self._named(arguments)],
                          optional=optional)

    _convert_member_expression = _convert_chain
    _convert_subscript_expression = _convert_chain
    _convert_call_expression = _convert_chain
    _convert_binary_expression = _convert_chain

    # -- everything else ----------------------------------------------------

    def _convert_opaque(self, ts_node: Node) -> SyntaxNode:
        skipped = ts_node.child_by_field_name('name') if ts_node.type in JSX_TAGGED_TYPES else None
        children = [self.node(child) for child in self._named(ts_node)
                    if skipped is None or child != skipped]
        return self._make(ts_node.type, ts_node, children=children)


def parse_number(raw: str) -> Union[int, float, None]:
    """Decode a JavaScript numeric literal (hex, octal, binary, bigint, separators)."""
    text = raw.replace('_', '').rstrip('n')
    if len(text) > 1 and text[0] == '0' and text.isdigit():
        # legacy octal such as 017; 08 and 09 stay decimal
        return int(text, 8) if set(text) <= set('01234567') else int(text, 10)
    try:
        return int(text, 0)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


def _decode_escape(match: re.Match) -> str:
    escape = match.group(1)
    if escape in SINGLE_CHARACTER_ESCAPES:
        return SINGLE_CHARACTER_ESCAPES[escape]
    if escape in LINE_TERMINATORS:
        # line continuation
        return ''
    if escape[0] == 'u' and len(escape) > 1:
        code = int(escape[1:].strip('{}'), 16)
        return chr(code) if code <= 0x10FFFF else match.group(0)
    if escape[0] == 'x' and len(escape) == 3:
        return chr(int(escape[1:], 16))
    if escape[0] in '01234567':
        return chr(int(escape, 8))
    return escape


def parse_string(raw: str) -> str:
    """Decode a quoted JavaScript string literal.

    Follows JavaScript's escape rules: ``\\u{...}`` code points, legacy octal
    escapes, line continuations, and any other escaped character standing
    for itself (``'\\a'`` is ``'a'``). Surrogate pairs written as two
    ``\\uXXXX`` escapes combine into one character.
    """
    value = STRING_ESCAPE_PATTERN.sub(_decode_escape, raw[1:-1])
    return value.encode('utf-16-le', 'surrogatepass').decode('utf-16-le', 'surrogatepass')


def parse_javascript(source_code: Union[str, bytes], path: Optional[str] = None,
                     parser: Optional[LanguageParser] = None) -> SyntaxNode:
    """Parse JavaScript source and return a parent-linked ESTree Program.

    Raises:
        ParseError: If the source does not parse cleanly
    """
    parser = parser or LanguageParser('javascript')
    tree = parser.parse_source(source_code, path)
    return EstreeConverter(source_code).convert(tree)
