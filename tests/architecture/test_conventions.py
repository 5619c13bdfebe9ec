"""
Convention Enforcement Tests.

Permanent tests that catch anti-patterns which import-based layer rules
cannot detect: frozen dataclasses, immutable collections, silent exception
swallowing and port contracts.
"""

import ast
import inspect
from pathlib import Path

from modloop.domain import interfaces

SRC_ROOT = Path(__file__).parent.parent.parent / "src" / "modloop"


def dataclass_info(filepath: Path) -> list[tuple[ast.ClassDef, bool]]:
    """(class node, is_frozen) for each @dataclass in a file."""
    tree = ast.parse(filepath.read_text())
    results = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.ClassDef):
            continue
        for decorator in node.decorator_list:
            if isinstance(decorator, ast.Name) and decorator.id == "dataclass":
                results.append((node, False))
            elif (
                isinstance(decorator, ast.Call)
                and isinstance(decorator.func, ast.Name)
                and decorator.func.id == "dataclass"
            ):
                frozen = any(
                    kw.arg == "frozen"
                    and isinstance(kw.value, ast.Constant)
                    and kw.value.value is True
                    for kw in decorator.keywords
                )
                results.append((node, frozen))
    return results


class TestFrozenDataclassConvention:
    def test_domain_models_are_frozen(self) -> None:
        violations = [
            node.name
            for path in (SRC_ROOT / "domain").glob("*.py")
            for node, frozen in dataclass_info(path)
            if not frozen
        ]

        assert not violations, f"Domain dataclasses must be frozen. Violations: {violations}"

    def test_config_options_are_frozen(self) -> None:
        violations = [
            node.name for node, frozen in dataclass_info(SRC_ROOT / "config.py") if not frozen
        ]

        assert not violations, f"Configuration dataclasses must be frozen: {violations}"


class TestImmutableCollections:
    def test_domain_models_use_tuples_not_lists(self) -> None:
        """Frozen domain model fields use tuple[], never list[] or dict[]."""
        source = (SRC_ROOT / "domain" / "models.py").read_text()
        violations = []

        for node, _ in dataclass_info(SRC_ROOT / "domain" / "models.py"):
            for item in node.body:
                if not isinstance(item, ast.AnnAssign):
                    continue
                annotation = ast.get_source_segment(source, item.annotation) or ""
                if "list[" in annotation.lower() or "dict[" in annotation.lower():
                    violations.append(f"{node.name}.{getattr(item.target, 'id', '?')}")

        assert not violations, "Mutable collection fields found:\n" + "\n".join(
            f"  - {v}" for v in violations
        )


class TestNoSilentExceptionSwallowing:
    def test_no_except_pass(self) -> None:
        """No 'except ...: pass' anywhere in src/modloop/."""
        violations = []

        for py_file in SRC_ROOT.rglob("*.py"):
            source = py_file.read_text()
            for node in ast.walk(ast.parse(source)):
                if not isinstance(node, ast.ExceptHandler) or len(node.body) != 1:
                    continue
                stmt = node.body[0]
                is_ellipsis = (
                    isinstance(stmt, ast.Expr)
                    and isinstance(stmt.value, ast.Constant)
                    and stmt.value.value is ...
                )
                if isinstance(stmt, ast.Pass) or is_ellipsis:
                    violations.append(f"{py_file.relative_to(SRC_ROOT)}:{node.lineno}")

        assert not violations, "Silent exception swallowing found:\n" + "\n".join(
            f"  - {v}" for v in violations
        )

    def test_no_bare_except(self) -> None:
        violations = [
            f"{py_file.relative_to(SRC_ROOT)}:{node.lineno}"
            for py_file in SRC_ROOT.rglob("*.py")
            for node in ast.walk(ast.parse(py_file.read_text()))
            if isinstance(node, ast.ExceptHandler) and node.type is None
        ]

        assert not violations, f"Bare except found: {violations}"


class TestNoAssertInPackageCode:
    def test_no_assert_statements(self) -> None:
        """Invariants raise explicitly; asserts vanish under python -O."""
        violations = [
            f"{py_file.relative_to(SRC_ROOT)}:{node.lineno}"
            for py_file in SRC_ROOT.rglob("*.py")
            for node in ast.walk(ast.parse(py_file.read_text()))
            if isinstance(node, ast.Assert)
        ]

        assert not violations, f"assert in package code: {violations}"


class TestInterfaceConventions:
    def test_all_ports_end_with_interface(self) -> None:
        abstract_classes = [
            name
            for name, obj in inspect.getmembers(interfaces, inspect.isclass)
            if inspect.isabstract(obj) and not name.startswith("_")
        ]

        violations = [name for name in abstract_classes if not name.endswith("Interface")]

        assert abstract_classes
        assert not violations, f"Abstract classes should end with 'Interface': {violations}"

    def test_all_interface_methods_are_abstract(self) -> None:
        """Every public method on a port must be abstract."""
        violations = []

        for name, cls in inspect.getmembers(interfaces, inspect.isclass):
            if not inspect.isabstract(cls) or not name.endswith("Interface"):
                continue
            for method_name, method in inspect.getmembers(cls, predicate=inspect.isfunction):
                if method_name.startswith("_"):
                    continue
                if not getattr(method, "__isabstractmethod__", False):
                    violations.append(f"{name}.{method_name}")

        assert not violations, f"Public interface methods must be abstract: {violations}"

    def test_implementations_satisfy_interfaces(self) -> None:
        """Every adapter exported by infrastructure can be instantiated as a port."""
        import modloop.infrastructure as infrastructure

        ports = [
            cls
            for name, cls in inspect.getmembers(interfaces, inspect.isclass)
            if name.endswith("Interface")
        ]
        for name in infrastructure.__all__:
            adapter = getattr(infrastructure, name)
            if not any(issubclass(adapter, port) for port in ports):
                continue
            assert not inspect.isabstract(adapter), f"{name} leaves abstract methods"
