import ast
from pathlib import Path


def test_engine_source_does_not_import_config_layer():
    repo_root = Path(__file__).resolve().parents[1]
    engine_dir = repo_root / "resolverkit" / "engine"

    forbidden_prefixes = ("yaml", "resolverkit.config", "resolverkit.config_io")
    offenders: list[str] = []

    for path in sorted(engine_dir.rglob("*.py")):
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if alias.name.startswith(forbidden_prefixes):
                        offenders.append(f"{path}: import {alias.name}")
            elif isinstance(node, ast.ImportFrom):
                if node.module is None:
                    continue
                if node.module.startswith(forbidden_prefixes) and not _is_type_checking_only(tree, node):
                    offenders.append(f"{path}: from {node.module} import ...")

    assert offenders == []


def _is_type_checking_only(tree: ast.AST, target: ast.ImportFrom) -> bool:
    for node in ast.walk(tree):
        if isinstance(node, ast.If) and isinstance(node.test, ast.Name) and node.test.id == "TYPE_CHECKING":
            if any(child is target for child in ast.walk(node)):
                return True
    return False


def test_importing_engine_does_not_pull_in_yaml():
    import subprocess
    import sys
    import textwrap

    code = textwrap.dedent(
        """\
        import sys

        import resolverkit.engine

        loaded = sorted(
            name for name in sys.modules
            if name == "yaml" or name.startswith(("resolverkit.config",))
        )
        if loaded:
            raise SystemExit(f"Importing resolverkit.engine loaded forbidden modules: {loaded}")
        """
    )

    proc = subprocess.run(
        [sys.executable, "-c", code],
        capture_output=True,
        text=True,
        cwd=str(Path(__file__).resolve().parents[1]),
    )
    assert proc.returncode == 0, proc.stderr or proc.stdout
