# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the signature and source file parser."""

import pytest

from paramex.diagnostics import DiagnosticCollector, DiagnosticKind
from paramex.model.annotation import CaseArg, ValueList
from paramex.model.signature import ConstParam, LifetimeParam, Signature, SourceFile, TypeParam
from paramex.model.types import (
    ArrayType,
    ImplTraitType,
    InferType,
    MacroType,
    NeverType,
    PathType,
    ReferenceType,
    SliceType,
    TraitObjectType,
    TupleType,
    VerbatimType,
    render_type,
)
from paramex.parser.cursor import ParseError
from paramex.parser.source import parse_signature, parse_source

# ###############
# Test Helpers
# ###############


def _sig(text: str) -> Signature:
    return parse_signature(text)


def _param_type(type_text: str):
    """Parse a one-parameter signature and return the parameter's type."""
    return _sig(f"fn f(x: {type_text})").parameters[0].type


def _source(text: str) -> SourceFile:
    return parse_source(text)


# ###############
# Signatures
# ###############


class TestSignatures:
    def test_minimal_signature(self) -> None:
        sig = _sig("fn f()")
        assert sig.name == "f"
        assert sig.parameters == []
        assert sig.generics == []
        assert sig.return_type is None
        assert not sig.is_async

    def test_async_signature(self) -> None:
        assert _sig("async fn f() {}").is_async

    def test_qualifiers_and_visibility(self) -> None:
        sig = _sig('pub(crate) const unsafe extern "C" fn f();')
        assert sig.name == "f"

    def test_parameters_in_order(self) -> None:
        sig = _sig("fn add(a: u32, b: u64) -> u64 { a as u64 + b }")
        assert [p.name for p in sig.parameters] == ["a", "b"]
        assert render_type(sig.parameters[1].type) == "u64"
        assert render_type(sig.return_type) == "u64"

    def test_trailing_comma_in_parameters(self) -> None:
        assert [p.name for p in _sig("fn f(a: u32,)").parameters] == ["a"]

    def test_mutable_binding(self) -> None:
        param = _sig("fn f(mut a: Vec<u8>)").parameters[0]
        assert param.is_mutable
        assert param.name == "a"

    def test_parameter_spans(self) -> None:
        text = "fn f(a: u32, bb: &str)"
        param = _sig(text).parameters[1]
        assert param.span.text(text) == "bb: &str"
        assert param.type_span.text(text) == "&str"

    def test_where_clause_skipped(self) -> None:
        sig = _sig("fn f<T>(t: T) -> T where T: Clone + Default { t }")
        assert sig.type_param_names() == ["T"]

    def test_trailing_input_rejected(self) -> None:
        with pytest.raises(ParseError, match="Unexpected input"):
            _sig("fn f() {} fn g() {}")

    def test_missing_fn_keyword(self) -> None:
        with pytest.raises(ParseError):
            _sig("struct S;")


# ###############
# Receivers
# ###############


class TestReceivers:
    @pytest.mark.parametrize("receiver", ["self", "mut self", "&self", "&mut self", "&'a self", "self: Box<Self>"])
    def test_receiver_recognized(self, receiver: str) -> None:
        sig = _sig(f"fn f({receiver}, a: u32)")
        assert sig.parameters[0].is_receiver
        assert sig.parameters[0].name == "self"
        assert [p.name for p in sig.bindable_parameters()] == ["a"]

    def test_reference_receiver_type(self) -> None:
        receiver = _sig("fn f(&'a mut self)").parameters[0]
        assert isinstance(receiver.type, ReferenceType)
        assert render_type(receiver.type) == "&'a mut Self"

    def test_by_value_receiver_has_no_type(self) -> None:
        assert _sig("fn f(self)").parameters[0].type is None

    def test_mut_self_is_mutable_binding(self) -> None:
        assert _sig("fn f(mut self)").parameters[0].is_mutable


# ###############
# Generics
# ###############


class TestGenerics:
    def test_lifetime_type_and_const_params(self) -> None:
        sig = _sig("fn f<'a: 'b, 'b, T: Clone + 'a, U = u8, const N: usize>()")
        kinds = [type(g) for g in sig.generics]
        assert kinds == [LifetimeParam, LifetimeParam, TypeParam, TypeParam, ConstParam]
        assert sig.generics[0].bounds == ["'b"]
        assert sig.generics[2].bounds == "Clone + 'a"
        assert render_type(sig.generics[3].default) == "u8"
        assert sig.type_param_names() == ["T", "U"]

    def test_nested_generic_closing_angles(self) -> None:
        assert render_type(_param_type("Vec<Vec<u8>>")) == "Vec<Vec<u8>>"


# ###############
# Types
# ###############


class TestTypes:
    @pytest.mark.parametrize(
        ("text", "expected_class"),
        [
            ("u32", PathType),
            ("&str", ReferenceType),
            ("(u32, String)", TupleType),
            ("()", TupleType),
            ("[u8; 4]", ArrayType),
            ("[u8]", SliceType),
            ("impl Iterator<Item = u32>", ImplTraitType),
            ("dyn Fn(u32) -> bool + Send", TraitObjectType),
            ("_", InferType),
            ("!", NeverType),
            ("my_type!(u32)", MacroType),
            ("*const u8", VerbatimType),
            ("fn(u32) -> u32", VerbatimType),
        ],
    )
    def test_type_kind(self, text: str, expected_class: type) -> None:
        assert isinstance(_param_type(text), expected_class)

    @pytest.mark.parametrize(
        "text",
        [
            "std::collections::HashMap<String, Vec<u8>>",
            "&'a mut [u8]",
            "(u32,)",
            "[u8; 4]",
            "impl Iterator<Item = u32>",
            "impl Fn(u32) -> bool + Send + 'static",
            "dyn ?Sized",
            "Foo<'a, 3>",
            "::std::string::String",
            "*const u8",
        ],
    )
    def test_type_renders_canonically(self, text: str) -> None:
        assert render_type(_param_type(text)) == text

    def test_parenthesized_type_is_inner_type(self) -> None:
        assert isinstance(_param_type("(u32)"), PathType)

    def test_invalid_type_raises(self) -> None:
        with pytest.raises(ParseError, match="Expected type"):
            _sig("fn f(x: 42)")


# ###############
# Source Files
# ###############


class TestSourceFiles:
    def test_function_kinds(self) -> None:
        result = _source(
            """
            #[fixture]
            fn db() -> Db { Db::new() }

            #[rstest]
            fn uses_db(db: Db) {}

            fn helper() {}
            """
        )
        assert [f.signature.name for f in result.functions] == ["db", "uses_db", "helper"]
        assert [f.kind for f in result.functions] == ["fixture", "test", "plain"]
        assert [f.signature.name for f in result.tests] == ["uses_db"]
        assert [f.signature.name for f in result.fixtures] == ["db"]

    def test_non_function_items_skipped(self) -> None:
        result = _source(
            """
            #![allow(dead_code)]
            use std::collections::HashMap;
            struct Point { x: i32, y: i32 }
            struct Unit;
            impl Point { fn new() -> Self { Point { x: 0, y: 0 } } }
            const LIMIT: usize = 3;
            fn only() {}
            """
        )
        assert [f.signature.name for f in result.functions] == ["only"]

    def test_functions_inside_modules(self) -> None:
        result = _source("mod tests { use super::*; #[rstest] fn t() {} }")
        assert [f.signature.name for f in result.tests] == ["t"]

    def test_test_annotation_parsed(self) -> None:
        result = _source("#[rstest(a, case(1), b => [10, 20])] fn t(a: u32, b: u32) {}")
        annotation = result.tests[0].annotation
        assert isinstance(annotation.items[0], CaseArg)
        assert isinstance(annotation.items[1], ValueList)
        assert len(annotation.cases) == 1

    def test_fixture_annotation_parsed(self) -> None:
        result = _source("#[fixture(v = 42 :: trace)] fn f(v: u32) -> u32 { v }")
        annotation = result.fixtures[0].annotation
        assert annotation.values()[0].expr.text == "42"
        assert annotation.modifiers.has("trace")

    def test_function_level_case_attributes(self) -> None:
        text = "#[rstest]\n#[case(1)]\n#[case::two(2)]\nfn t(#[case] a: u32) {}"
        test = _source(text).tests[0]
        assert [c.description for c in test.annotation.cases] == [None, "two"]
        assert test.annotation.cases[1].args_span.text(text) == "(2)"

    def test_function_level_typed_modifiers(self) -> None:
        result = _source("#[fixture]\n#[default(u32)]\n#[partial_1(u64)]\nfn f<A, B>(a: A, b: B) -> (A, B) {}")
        typed = result.fixtures[0].annotation.modifiers.typed()
        assert [m.name for m in typed] == ["default", "partial_1"]

    def test_qualified_attribute_names(self) -> None:
        result = _source("#[rstest::fixture] fn f() {}")
        assert result.functions[0].kind == "fixture"

    def test_other_attributes_kept(self) -> None:
        result = _source('#[rstest]\n#[should_panic(expected = "boom")]\n#[tokio::test]\nfn t() {}')
        assert result.tests[0].attributes == ["should_panic", "tokio::test"]

    def test_parameter_attributes(self) -> None:
        text = "fn t(#[values(1, 2)] a: u32, #[with(3)] #[future] b: &u32, #[case] c: u8)"
        result = _source(text)
        params = result.functions[0].signature.parameters
        assert [a.name for a in params[0].attributes] == ["values"]
        assert [e.text for e in params[0].attributes[0].args] == ["1", "2"]
        assert [a.name for a in params[1].attributes] == ["with", "future"]
        assert params[1].attributes[1].args is None
        assert params[2].attributes[0].name == "case"

    def test_empty_source(self) -> None:
        assert _source("").functions == []

    def test_unterminated_function_raises(self) -> None:
        with pytest.raises(ParseError):
            _source("fn f( {")


# ###############
# Attribute Error Recovery
# ###############


class TestAttributeErrorRecovery:
    def test_bad_annotation_collected_when_collector_given(self) -> None:
        diagnostics = DiagnosticCollector()
        result = parse_source("#[rstest(a,,)] fn t(a: u32) {}\n#[rstest(1)] fn u() {}", diagnostics)
        assert len(result.tests) == 2
        assert [d.kind for d in diagnostics] == [DiagnosticKind.SYNTAX_ERROR, DiagnosticKind.SYNTAX_ERROR]
        assert diagnostics.get_all()[1].span.line == 2

    def test_bad_annotation_raises_without_collector(self) -> None:
        with pytest.raises(ParseError):
            parse_source("#[rstest(a,,)] fn t(a: u32) {}")

    def test_bad_parameter_attribute_dropped(self) -> None:
        diagnostics = DiagnosticCollector()
        result = parse_source("fn t(#[values(1,,2)] a: u32) {}", diagnostics)
        assert result.functions[0].signature.parameters[0].attributes == []
        assert len(diagnostics) == 1

    def test_case_attribute_without_arguments(self) -> None:
        diagnostics = DiagnosticCollector()
        parse_source("#[rstest]\n#[case]\nfn t() {}", diagnostics)
        assert diagnostics.get_all()[0].kind == DiagnosticKind.SYNTAX_ERROR
        assert "in attribute #[case]" in diagnostics.get_all()[0].notes
