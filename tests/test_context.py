"""Translation context: scopes, functions, diagnostics and flags."""

import logging

import pytest

from crosslang.context import TranslateOptions, TranslationContext


def test_variable_declared_once_keeps_first_type() -> None:
    ctx = TranslationContext("python", "java")
    assert ctx.add_variable("x", "int")
    assert not ctx.add_variable("x", "str")
    assert ctx.get_variable_type("x") == "int"


def test_function_scope_shadows_and_pops() -> None:
    ctx = TranslationContext("java", "c")
    ctx.add_variable("n", "int")
    ctx.push_scope("helper")
    assert ctx.scope_name == "helper"
    assert ctx.has_variable("n")
    ctx.add_variable("local", "double")
    assert ctx.get_variable_type("local") == "double"
    ctx.pop_scope()
    assert ctx.scope_name == "<entry>"
    assert not ctx.has_variable("local")
    assert ctx.get_variable_type("local") is None


def test_function_local_shadows_outer_binding() -> None:
    ctx = TranslationContext("python", "java")
    ctx.add_variable("n", "String")
    ctx.push_scope("helper")
    assert not ctx.has_local("n")
    assert ctx.add_variable("n", "int")
    assert ctx.has_local("n")
    assert ctx.get_variable_type("n") == "int"
    assert not ctx.add_variable("n", "double")
    ctx.pop_scope()
    assert ctx.get_variable_type("n") == "String"


def test_entry_scope_cannot_be_popped() -> None:
    ctx = TranslationContext("c", "java")
    with pytest.raises(RuntimeError):
        ctx.pop_scope()


def test_functions_fill_in_unresolved_return_type() -> None:
    ctx = TranslationContext("python", "c")
    ctx.add_function("f", "")
    assert ctx.has_function("f")
    ctx.add_function("f", "int")
    ctx.add_function("f", "str")
    assert ctx.get_function("f") == "int"
    assert ctx.get_function("g") is None


def test_warnings_are_logged_and_collected(caplog) -> None:
    ctx = TranslationContext("c", "python")
    with caplog.at_level(logging.WARNING, logger="crosslang.context"):
        ctx.warn("line 3: unsupported switch_statement")
    assert ctx.warnings == ["line 3: unsupported switch_statement"]
    assert "switch_statement" in caplog.text


def test_strategy_records() -> None:
    ctx = TranslationContext("c", "python")
    ctx.record_strategy(4, "print", "structural")
    ctx.record_strategy(5, "recovery", "regex")
    assert [(r.line, r.parser, r.strategy) for r in ctx.strategies] == [
        (4, "print", "structural"),
        (5, "recovery", "regex"),
    ]


def test_flags_are_one_shot() -> None:
    ctx = TranslationContext("python", "c")
    assert not ctx.requires("math.h")
    ctx.require("math.h")
    ctx.require("math.h")
    assert ctx.requires("math.h")
    assert ctx.flags == {"math.h"}


def test_pair_and_options() -> None:
    ctx = TranslationContext("java", "python", TranslateOptions(exact_types=True))
    assert ctx.pair == "java->python"
    assert ctx.options.exact_types
    assert ctx.options.class_name == "Main"
