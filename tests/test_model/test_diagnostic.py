"""Tests for the package surface and the diagnostic model."""

import importlib

from stylemotion.errors import MissingLayoutWarning, UndefinedVariableError
from stylemotion.model.diagnostic import Diagnostic, Severity


class TestPackage:
    def test_package_imports(self):
        module = importlib.import_module("stylemotion")
        assert module.StyleEngine is not None
        assert module.__version__


class TestDiagnostic:
    def test_from_error_keeps_property(self):
        diagnostic = Diagnostic.from_error(UndefinedVariableError("--gap", property="padding"), "box")
        assert diagnostic.kind == "undefined_variable"
        assert diagnostic.severity is Severity.ERROR
        assert diagnostic.prop == "padding"
        assert diagnostic.is_error
        assert str(diagnostic) == "ERROR [node=box property=padding]: Undefined variable --gap"

    def test_warning_severity(self):
        diagnostic = Diagnostic.from_error(MissingLayoutWarning("no layout", property="transform"), "box")
        assert diagnostic.severity is Severity.WARNING
        assert not diagnostic.is_error

    def test_location_without_property(self):
        diagnostic = Diagnostic(kind="x", severity=Severity.INFO, message="hello", node_id="n")
        assert str(diagnostic) == "INFO [node=n]: hello"
        assert str(Diagnostic(kind="x", severity=Severity.INFO, message="bare")) == "INFO: bare"
