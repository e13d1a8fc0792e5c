"""Static checks that keep request-serving code inside the tenant scope.

Two rules, applied to every module of the ``mercato`` package:

- ``legacy-import``: importing ``mercato_maintenance`` (which holds the
  unscoped legacy entry points).
- ``raw-search-path``: a ``text()`` statement that mentions
  ``search_path`` or ``set_config``. Only the identifier module may build
  those.
"""

import ast
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path


MAINTENANCE_PACKAGE = "mercato_maintenance"
SEARCH_PATH_OWNER = Path("core") / "tenancy" / "identifiers.py"
_FORBIDDEN_SQL = ("search_path", "set_config")


@dataclass(frozen=True)
class Violation:
    path: Path
    line: int
    rule: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}:{self.line}: [{self.rule}] {self.message}"


def _string_parts(node: ast.expr) -> Iterator[str]:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        yield node.value
    elif isinstance(node, ast.JoinedStr):
        for value in node.values:
            yield from _string_parts(value)
    elif isinstance(node, ast.BinOp):
        yield from _string_parts(node.left)
        yield from _string_parts(node.right)


def _is_text_call(node: ast.Call) -> bool:
    func = node.func
    if isinstance(func, ast.Name):
        return func.id == "text"
    return isinstance(func, ast.Attribute) and func.attr == "text"


def check_source(source: str, path: Path, relative: Path) -> list[Violation]:
    """Check one module's source. ``relative`` is its path inside the package."""
    violations: list[Violation] = []
    tree = ast.parse(source, filename=str(path))

    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names = [alias.name for alias in node.names]
        elif isinstance(node, ast.ImportFrom):
            names = [node.module or ""]
        else:
            names = []
        for name in names:
            if name.split(".")[0] == MAINTENANCE_PACKAGE:
                violations.append(
                    Violation(
                        path,
                        node.lineno,
                        "legacy-import",
                        f"request-serving code imports {name}",
                    )
                )

        if (
            isinstance(node, ast.Call)
            and _is_text_call(node)
            and node.args
            and relative != SEARCH_PATH_OWNER
        ):
            sql = "".join(_string_parts(node.args[0])).lower()
            if any(word in sql for word in _FORBIDDEN_SQL):
                violations.append(
                    Violation(
                        path,
                        node.lineno,
                        "raw-search-path",
                        "search_path must be set through build_search_path_statement()",
                    )
                )

    return violations


def find_violations(package_root: Path) -> list[Violation]:
    """Check every module under ``package_root`` (the ``mercato`` package)."""
    violations: list[Violation] = []
    for path in sorted(package_root.rglob("*.py")):
        relative = path.relative_to(package_root)
        violations.extend(
            check_source(path.read_text(encoding="utf-8"), path, relative)
        )
    return violations
