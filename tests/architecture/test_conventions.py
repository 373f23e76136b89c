"""
Convention Enforcement Tests.

Permanent tests that catch anti-patterns which import-based layer rules
cannot detect: frozen value objects, immutable collections, silent
exception swallowing, port contracts, record layout and terminal output.
"""

import ast
import inspect
from pathlib import Path


SRC_ROOT = Path(__file__).parent.parent.parent / "src" / "cycleguard"

# Documented exceptions to the frozen dataclass rule
MUTABLE_DATACLASS_ALLOWLIST: set[str] = set()


class TestFrozenDataclassConvention:
    """All domain dataclasses must be frozen (except allowlisted ones)."""

    def _get_dataclass_info(self, filepath: Path) -> list[tuple[str, bool]]:
        """Parse a file and return (class_name, is_frozen) for each @dataclass."""
        source = filepath.read_text()
        tree = ast.parse(source)
        results = []

        for node in ast.walk(tree):
            if not isinstance(node, ast.ClassDef):
                continue
            for decorator in node.decorator_list:
                is_dataclass = False
                is_frozen = False

                if isinstance(decorator, ast.Name) and decorator.id == "dataclass":
                    is_dataclass = True
                elif isinstance(decorator, ast.Call):
                    func = decorator.func
                    if isinstance(func, ast.Name) and func.id == "dataclass":
                        is_dataclass = True
                        for kw in decorator.keywords:
                            if kw.arg == "frozen" and isinstance(
                                kw.value, ast.Constant
                            ):
                                is_frozen = kw.value.value

                if is_dataclass:
                    results.append((node.name, is_frozen))
        return results

    def test_domain_models_are_frozen(self):
        """All domain dataclasses must be frozen."""
        models_file = SRC_ROOT / "domain" / "models.py"
        violations = []

        for class_name, is_frozen in self._get_dataclass_info(models_file):
            if class_name in MUTABLE_DATACLASS_ALLOWLIST:
                continue
            if not is_frozen:
                violations.append(class_name)

        assert not violations, (
            f"Domain dataclasses must be frozen. Violations: {violations}. "
            f"If mutable is intentional, add to MUTABLE_DATACLASS_ALLOWLIST."
        )

    def test_application_value_objects_are_frozen(self):
        """Dataclasses in the application layer are value objects too."""
        violations = []
        for py_file in sorted((SRC_ROOT / "application").glob("*.py")):
            for class_name, is_frozen in self._get_dataclass_info(py_file):
                if not is_frozen:
                    violations.append(f"{py_file.name}:{class_name}")

        assert not violations, (
            f"Application dataclasses must be frozen. Violations: {violations}"
        )

class TestImmutableCollections:
    """Frozen domain model fields should use tuple, not list."""

    def test_domain_models_use_tuples_not_lists(self):
        """Frozen domain model fields should use tuple not list, MappingProxyType not dict."""
        models_file = SRC_ROOT / "domain" / "models.py"
        source = models_file.read_text()
        tree = ast.parse(source)

        violations = []

        for node in ast.walk(tree):
            if not isinstance(node, ast.ClassDef):
                continue
            # Check if this is a frozen dataclass
            is_frozen_dc = False
            for decorator in node.decorator_list:
                if isinstance(decorator, ast.Call):
                    func = decorator.func
                    if isinstance(func, ast.Name) and func.id == "dataclass":
                        for kw in decorator.keywords:
                            if kw.arg == "frozen" and isinstance(
                                kw.value, ast.Constant
                            ):
                                is_frozen_dc = kw.value.value

            if not is_frozen_dc:
                continue

            # Check field annotations for list[] usage
            for item in node.body:
                if isinstance(item, ast.AnnAssign) and item.target:
                    target_name = getattr(item.target, "id", "?")
                    annotation_source = ast.get_source_segment(source, item.annotation)
                    if annotation_source and "list[" in annotation_source.lower():
                        violations.append(
                            f"{node.name}.{target_name}: uses list[] - use tuple[] instead"
                        )

        assert not violations, (
            "Frozen dataclass fields should use tuple, not list:\n"
            + "\n".join(f"  - {v}" for v in violations)
        )


class TestNoSilentExceptionSwallowing:
    """No bare 'except: pass' or 'except Exception: pass' in src/."""

    def test_no_bare_except_pass(self):
        """No silent exception swallowing in src/cycleguard/."""
        violations = []

        for py_file in SRC_ROOT.rglob("*.py"):
            try:
                source = py_file.read_text()
                tree = ast.parse(source)
            except SyntaxError:
                continue

            for node in ast.walk(tree):
                if not isinstance(node, ast.ExceptHandler):
                    continue
                # Check if body is just 'pass' or '...'
                if len(node.body) == 1:
                    stmt = node.body[0]
                    is_pass = isinstance(stmt, ast.Pass)
                    is_ellipsis = (
                        isinstance(stmt, ast.Expr)
                        and isinstance(stmt.value, ast.Constant)
                        and stmt.value.value is ...
                    )
                    if is_pass or is_ellipsis:
                        rel_path = py_file.relative_to(SRC_ROOT.parent.parent)
                        handler_type = ""
                        if node.type:
                            handler_type = (
                                ast.get_source_segment(source, node.type) or ""
                            )
                        violations.append(
                            f"{rel_path}:{node.lineno}: except {handler_type}: pass"
                        )

        assert not violations, "Silent exception swallowing found:\n" + "\n".join(
            f"  - {v}" for v in violations
        )


class TestInterfaceConventions:
    """Interface naming and contract conventions."""

    def test_all_ports_end_with_interface(self):
        """All ABCs in domain/interfaces.py must end with 'Interface'."""
        from cycleguard.domain import interfaces

        abstract_classes = [
            name
            for name, obj in inspect.getmembers(interfaces, inspect.isclass)
            if inspect.isabstract(obj) and not name.startswith("_")
        ]

        violations = [
            name for name in abstract_classes if not name.endswith("Interface")
        ]

        assert not violations, (
            f"Abstract classes should end with 'Interface': {violations}"
        )

    def test_all_interface_methods_are_abstract(self):
        """Every public method on a port must be abstract."""
        from cycleguard.domain import interfaces

        violations = []

        for name, cls in inspect.getmembers(interfaces, inspect.isclass):
            if not inspect.isabstract(cls) or not name.endswith("Interface"):
                continue

            for method_name, method in inspect.getmembers(
                cls, predicate=inspect.isfunction
            ):
                if method_name.startswith("_"):
                    continue
                if not getattr(method, "__isabstractmethod__", False):
                    violations.append(f"{name}.{method_name}")

        assert not violations, (
            f"Public interface methods must be abstract: {violations}"
        )

    def test_implementations_satisfy_interfaces(self):
        """All infrastructure implementations must implement all abstract methods."""
        from cycleguard.domain.interfaces import (
            CommandRunnerInterface,
            RecordStoreInterface,
            WorkerInterface,
        )
        from cycleguard.infrastructure.persistence.filesystem import (
            FilesystemRecordStore,
        )
        from cycleguard.infrastructure.persistence.memory import InMemoryRecordStore
        from cycleguard.infrastructure.runners.mock import MockCommandRunner, MockWorker
        from cycleguard.infrastructure.runners.subprocess_runner import (
            SubprocessCommandRunner,
            SubprocessWorker,
        )

        pairs = [
            (RecordStoreInterface, [FilesystemRecordStore, InMemoryRecordStore]),
            (CommandRunnerInterface, [SubprocessCommandRunner, MockCommandRunner]),
            (WorkerInterface, [SubprocessWorker, MockWorker]),
        ]

        for port, implementations in pairs:
            abstract_methods = {
                name
                for name, method in inspect.getmembers(
                    port, predicate=inspect.isfunction
                )
                if getattr(method, "__isabstractmethod__", False)
            }

            for impl_cls in implementations:
                assert issubclass(impl_cls, port)
                assert not inspect.isabstract(impl_cls), impl_cls.__name__
                impl_methods = {
                    name
                    for name, _ in inspect.getmembers(
                        impl_cls, predicate=inspect.isfunction
                    )
                }
                missing = abstract_methods - impl_methods
                assert not missing, f"{impl_cls.__name__} is missing methods: {missing}"


class TestRecordConventions:
    """Every record the controller names has a home on shared storage."""

    def test_every_record_kind_has_a_layout(self):
        from cycleguard.domain.models import RecordKind
        from cycleguard.infrastructure.persistence import RECORD_LAYOUT

        missing = [kind.value for kind in RecordKind if kind not in RECORD_LAYOUT]

        assert not missing, f"RecordKind without a filesystem layout: {missing}"

    def test_layout_paths_are_distinct(self):
        from cycleguard.infrastructure.persistence import RECORD_LAYOUT

        layouts = list(RECORD_LAYOUT.values())

        assert len(layouts) == len(set(layouts))

    def test_checkpoint_reasons_are_distinct(self):
        """Operators tell restarts apart by the status reason alone."""
        from cycleguard.domain.models import Checkpoint

        reasons = [checkpoint.reason for checkpoint in Checkpoint]

        assert len(reasons) == len(set(reasons))
        assert all(reason.startswith("dependency_updated") for reason in reasons)


class TestConsoleOutput:
    """Only the command line writes to the terminal; everything else logs."""

    def test_no_print_outside_cli(self):
        violations = []
        for py_file in sorted(SRC_ROOT.rglob("*.py")):
            if "cli" in py_file.relative_to(SRC_ROOT).parts:
                continue
            tree = ast.parse(py_file.read_text())
            for node in ast.walk(tree):
                if (
                    isinstance(node, ast.Call)
                    and isinstance(node.func, ast.Name)
                    and node.func.id == "print"
                ):
                    violations.append(
                        f"{py_file.relative_to(SRC_ROOT)}:{node.lineno}"
                    )

        assert not violations, f"print() outside cycleguard.cli: {violations}"
