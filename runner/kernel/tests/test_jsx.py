"""
Runner Kernel -- JSX Lowering Tests

Element lowering, text whitespace rules, type erasure, line preservation
and syntax errors.
"""

import pytest

from runner.kernel.errors import TransformSyntaxError
from runner.kernel.jsx import clean_jsx_text, lower


class TestElements:
    def test_host_element_with_string_prop(self):
        assert lower('const a = <div className="x" />;') == 'const a = React.createElement("div", {"className": "x"});'

    def test_text_and_expression_children(self):
        assert lower("const b = <p>Hi {name}!</p>;") == 'const b = React.createElement("p", null, "Hi ", name, "!");'

    def test_fragment(self):
        assert lower("const f = <><a /></>;") == (
            'const f = React.createElement(React.Fragment, null, React.createElement("a", null));'
        )

    def test_member_tag_and_boolean_prop(self):
        assert lower("const c = <Foo.Bar x={1} flag />;") == 'const c = React.createElement(Foo.Bar, {"x": 1, "flag": true});'

    def test_dashed_tag_is_a_host_element(self):
        assert lower("const d = <my-el />;") == 'const d = React.createElement("my-el", null);'

    def test_spread_props_stay_native(self):
        assert lower("const e = <C {...rest} />;") == "const e = React.createElement(C, {...rest});"

    def test_comment_only_child_is_dropped(self):
        assert lower("const g = <p>{/* note */}</p>;") == 'const g = React.createElement("p", null);'

    def test_element_as_prop_value(self):
        assert lower("const h = <A icon={<B />} />;") == (
            'const h = React.createElement(A, {"icon": React.createElement(B, null)});'
        )

    def test_entities_are_decoded(self):
        assert lower("const i = <p>a &amp; b</p>;") == 'const i = React.createElement("p", null, "a & b");'

    def test_modern_syntax_passes_through(self):
        code = "const j = { ...a, b: c?.d ?? 1 };"
        assert lower(code) == code


class TestText:
    def test_lines_are_trimmed_and_joined(self):
        assert clean_jsx_text("\n  Hello\n  world  \n") == "Hello world"

    def test_whitespace_only_is_dropped(self):
        assert clean_jsx_text("\n     \n") == ""

    def test_single_line_keeps_its_spaces(self):
        assert clean_jsx_text(" x ") == " x "


class TestTypes:
    def test_parameter_and_return_annotations(self):
        assert lower("function f(x: number, y?: string): void {}") == "function f(x, y) {}"

    def test_assertions(self):
        assert lower("const n = value as number;") == "const n = value;"
        assert lower("const el = ref.current!;") == "const el = ref.current;"

    def test_generic_call(self):
        assert lower("const [v, setV] = useState<string>('');") == "const [v, setV] = useState('');"

    def test_interface_keeps_its_lines(self):
        out = lower("interface P {\n  a: string;\n}\nconst x = 1;\n")
        assert out.splitlines()[3] == "const x = 1;"


def test_multiline_element_keeps_line_count():
    code = "const a = (\n  <div>\n    <span>x</span>\n  </div>\n);\nfoo();\n"
    out = lower(code)
    assert out.count("\n") == code.count("\n")
    assert out.splitlines()[4] == ");"
    assert out.splitlines()[5] == "foo();"


@pytest.mark.parametrize(
    "code",
    [
        "const a = <div>;",
        "function ( {",
    ],
)
def test_syntax_error(code):
    with pytest.raises(TransformSyntaxError, match="SyntaxError"):
        lower(code)


def test_empty_attribute_expression_is_rejected():
    with pytest.raises(TransformSyntaxError, match="non-empty expression"):
        lower("const a = <a href={} />;")
