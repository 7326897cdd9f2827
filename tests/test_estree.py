"""Tests for the tree-sitter to ESTree conversion and the parser front end."""

import pytest
from jsglobals.analyzer.estree import parse_javascript, parse_number, parse_string
from jsglobals.analyzer.parser import LanguageParser, ParseError
from jsglobals.analyzer.syntax import SyntaxNode, iter_child_nodes, walk


def expression(source):
    """Convert a single expression statement and return its expression."""
    program = parse_javascript(source)
    return program.body[0].expression


class TestNodeShapes:
    """ESTree node types and fields produced by the converter."""

    def test_program(self):
        program = parse_javascript("a; b;")

        assert program.type == 'Program'
        assert [statement.type for statement in program.body] == ['ExpressionStatement'] * 2

    def test_member_expressions(self):
        node = expression("a.b['c'][d];")

        assert node.type == 'MemberExpression'
        assert node.computed is True
        assert node.property.type == 'Identifier'
        assert node.object.property.type == 'Literal'
        assert node.object.property.value == 'c'
        assert node.object.object.computed is False
        assert node.object.object.property.name == 'b'

    def test_lexical_declaration(self):
        program = parse_javascript("const { a } = b, c = 1;")
        declaration = program.body[0]

        assert declaration.type == 'VariableDeclaration'
        assert declaration.kind == 'const'
        assert [d.id.type for d in declaration.declarations] == ['ObjectPattern', 'Identifier']

    def test_shorthand_pattern_has_distinct_key_and_value(self):
        program = parse_javascript("var { a } = b;")
        prop = program.body[0].declarations[0].id.properties[0]

        assert prop.shorthand is True
        assert prop.key is not prop.value
        assert prop.key.name == prop.value.name == 'a'

    def test_array_holes(self):
        program = parse_javascript("var [, a, , b] = c;")
        elements = program.body[0].declarations[0].id.elements

        assert elements[0] is None
        assert elements[1].name == 'a'
        assert elements[2] is None
        assert elements[3].name == 'b'

    def test_for_of_declaration(self):
        program = parse_javascript("for (const x of xs) {}")
        loop = program.body[0]

        assert loop.type == 'ForOfStatement'
        assert loop.left.type == 'VariableDeclaration'
        assert loop.left.kind == 'const'
        assert loop.left.declarations[0].id.name == 'x'
        assert loop.right.name == 'xs'

    def test_logical_and_binary(self):
        assert expression("a && b;").type == 'LogicalExpression'
        assert expression("a ?? b;").type == 'LogicalExpression'
        assert expression("a + b;").type == 'BinaryExpression'

    def test_parentheses_are_unwrapped(self):
        assert expression("(a);").type == 'Identifier'

    def test_sequence_is_flat(self):
        node = expression("a, b, c;")

        assert node.type == 'SequenceExpression'
        assert [e.name for e in node.expressions] == ['a', 'b', 'c']

    def test_update_prefix(self):
        assert expression("++a;").prefix is True
        assert expression("a++;").prefix is False

    def test_class_members(self):
        program = parse_javascript("class A extends B { static get x() {} y = 1; static {} }")
        declaration = program.body[0]
        members = declaration.body.body

        assert declaration.superClass.name == 'B'
        assert [member.type for member in members] == ['MethodDefinition', 'PropertyDefinition', 'StaticBlock']
        assert members[0].kind == 'get'
        assert members[0].static is True
        assert members[0].value.type == 'FunctionExpression'

    def test_object_method_is_property(self):
        node = expression("({ m() {} });")
        prop = node.properties[0]

        assert prop.type == 'Property'
        assert prop.method is True
        assert prop.value.type == 'FunctionExpression'

    def test_arrow_expression_body(self):
        program = parse_javascript("const f = (a) => a;")
        arrow = program.body[0].declarations[0].init

        assert arrow.type == 'ArrowFunctionExpression'
        assert arrow.expression is True
        assert [p.name for p in arrow.params] == ['a']

    def test_imports(self):
        program = parse_javascript("import d, * as ns from 'm'; import { a as b } from 'n';")
        first, second = program.body

        assert [s.type for s in first.specifiers] == ['ImportDefaultSpecifier', 'ImportNamespaceSpecifier']
        assert second.specifiers[0].imported.name == 'a'
        assert second.specifiers[0].local.name == 'b'
        assert first.source.value == 'm'

    def test_meta_property(self):
        program = parse_javascript("function F() { new.target; }")
        meta = next(node for node in walk(program) if node.type == 'MetaProperty')

        assert meta.meta.name == 'new'
        assert meta.property.name == 'target'

    def test_unknown_node_is_opaque(self):
        node = expression("<div>{value}</div>;")

        assert node.type == 'jsx_element'
        assert any(child.type == 'Identifier' and child.name == 'value' for child in walk(node))

    def test_positions(self):
        node = expression("\n  foo;")

        assert (node.line, node.column) == (2, 2)
        assert node.range == (3, 6)


class TestParentLinks:
    """Every node points at the node that holds it."""

    def test_parents(self):
        program = parse_javascript("function f(a) { return a.b + c; }")

        assert program.parent is None
        for node in walk(program):
            for _, child in iter_child_nodes(node):
                assert child.parent is node

    def test_ancestors(self):
        node = expression("a.b.c;")
        identifier = node.object.object

        assert [a.type for a in identifier.ancestors] == [
            'MemberExpression', 'MemberExpression', 'ExpressionStatement', 'Program',
        ]


class TestSyntaxNode:
    """The node container itself."""

    def test_fields_in_order(self):
        node = SyntaxNode('BinaryExpression', operator='+', left=None, right=None)

        assert node.fields == ('operator', 'left', 'right')

    def test_list_children_skip_none(self):
        a = SyntaxNode('Identifier', name='a')
        node = SyntaxNode('ArrayExpression', elements=[None, a, None])

        assert list(iter_child_nodes(node)) == [('elements', a)]

    def test_repr(self):
        assert repr(SyntaxNode('Identifier', name='x', line=3, column=4)) == "<Identifier 'x' at 3:4>"


class TestLiterals:
    """Literal decoding."""

    @pytest.mark.parametrize('raw, value', [
        ('42', 42),
        ('0x1F', 31),
        ('0o17', 15),
        ('0b101', 5),
        ('017', 15),
        ('019', 19),
        ('1_000', 1000),
        ('10n', 10),
        ('1.5', 1.5),
        ('1e3', 1000.0),
        ('.5', 0.5),
    ])
    def test_parse_number(self, raw, value):
        assert parse_number(raw) == value

    @pytest.mark.parametrize('raw, value', [
        ("'plain'", 'plain'),
        ('"double"', 'double'),
        ("'it\\'s'", "it's"),
        ("'tab\\t'", 'tab\t'),
        ("'\\a'", 'a'),
        ("'\\u{41}'", 'A'),
        ("'\\u0041\\x42'", 'AB'),
        ("'\\101'", 'A'),
        ("'\\0'", '\x00'),
        ("'\\uD83D\\uDE00'", '\U0001F600'),
        ("'line\\\ncontinued'", 'linecontinued'),
        ("'\\\\'", '\\'),
    ])
    def test_parse_string(self, raw, value):
        assert parse_string(raw) == value

    def test_literal_nodes(self):
        node = expression("[true, null, 'x', 0];")

        assert [e.value for e in node.elements] == [True, None, 'x', 0]


class TestParser:
    """Parser front end and syntax errors."""

    def test_syntax_error(self):
        with pytest.raises(ParseError) as excinfo:
            parse_javascript("var = ;")

        assert excinfo.value.line == 1

    def test_syntax_error_location(self):
        with pytest.raises(ParseError) as excinfo:
            parse_javascript("var ok = 1;\nfunction (\n", path='broken.js')

        assert excinfo.value.path == 'broken.js'
        assert str(excinfo.value).startswith('broken.js:')

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_javascript("}")

    def test_unsupported_language(self):
        with pytest.raises(ValueError):
            LanguageParser('python')

    def test_from_file_extension(self):
        assert LanguageParser.from_file_extension('app.mjs').language == 'javascript'
        assert LanguageParser.from_file_extension('app.py') is None

    def test_parse_file(self, tmp_path):
        source = tmp_path / 'ok.js'
        source.write_text("var a = 1;", encoding='utf-8')
        parser = LanguageParser()

        assert parser.parse_file(source).root_node.type == 'program'
        assert parser.parse_file(tmp_path / 'missing.js') is None

    def test_parse_file_rejects_non_utf8(self, tmp_path):
        source = tmp_path / 'latin1.js'
        source.write_bytes("var s = 'caf\xe9';".encode('latin-1'))

        assert LanguageParser().parse_file(source) is None

    def test_read_source(self, tmp_path):
        source = tmp_path / 'ok.js'
        source.write_bytes(b"var a = 1;")
        latin1 = tmp_path / 'latin1.js'
        latin1.write_bytes("'caf\xe9';".encode('latin-1'))
        parser = LanguageParser()

        assert parser.read_source(source) == b"var a = 1;"
        assert parser.read_source(tmp_path / 'missing.js') is None
        assert parser.read_source(latin1) is None


class TestLongChains:
    """Chains far deeper than the interpreter's recursion limit."""

    def test_member_chain(self):
        node = expression("a" + ".b" * 2000 + ";")

        depth = 0
        while node.type == 'MemberExpression':
            assert node.property.name == 'b'
            node = node.object
            depth += 1
        assert depth == 2000
        assert node.name == 'a'

    def test_call_chain_alternates(self):
        node = expression("p" + ".then(f)" * 1000 + ";")

        assert node.type == 'CallExpression'
        assert node.arguments[0].name == 'f'
        assert node.callee.type == 'MemberExpression'
        assert node.callee.property.name == 'then'
        assert node.callee.object.type == 'CallExpression'

    def test_binary_chain_is_left_nested(self):
        node = expression(" + ".join(["'x'"] * 1000) + " + tail;")

        assert node.type == 'BinaryExpression'
        assert node.right.name == 'tail'
        assert node.left.type == 'BinaryExpression'
        assert node.left.right.value == 'x'

    def test_parent_links_along_chain(self):
        node = expression("a" + ".b" * 1500 + ";")

        inner = node
        while inner.type == 'MemberExpression':
            assert inner.object.parent is inner
            inner = inner.object
        assert inner.name == 'a'
