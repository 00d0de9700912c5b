"""Parsing of ``.tfspec`` assertion files."""

from .model import Assertion, AssertionTree, MockedDataSource
from .parser import parse_spec, read_spec
from .syntax import SpecSyntaxError

__all__ = ["Assertion", "AssertionTree", "MockedDataSource", "parse_spec", "read_spec", "SpecSyntaxError"]
