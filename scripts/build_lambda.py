#!/usr/bin/env python3
"""
Build the deployment ZIP for the collection aggregation lambda.

The archive root holds:
- the runtime dependencies declared in pyproject.toml, installed for the
  Lambda platform
- every module from src/, flattened to the root with relative imports
  rewritten to absolute ones, so src/lambda_function.py becomes the
  ``lambda_function.lambda_handler`` entrypoint

Usage:
    python scripts/build_lambda.py [--output-dir dist/] [--skip-dependencies]
"""

import argparse
import ast
import re
import subprocess
import sys
import tempfile
import tomllib
import zipfile
from pathlib import Path

HANDLER_MODULE = "lambda_function.py"
HANDLER_FUNCTION = "lambda_handler"
LAMBDA_PLATFORM = "manylinux2014_x86_64"

RELATIVE_FROM_IMPORT = re.compile(
    r"^(?P<indent>[ \t]*)from \.(?P<module>[A-Za-z_][A-Za-z0-9_]*) import ",
    flags=re.MULTILINE,
)
RELATIVE_BARE_IMPORT = re.compile(
    r"^(?P<indent>[ \t]*)from \. import ", flags=re.MULTILINE
)


class BuildError(Exception):
    """The deployment package could not be built."""


def read_runtime_dependencies(pyproject_file: Path) -> list[str]:
    """Return the [project] dependencies declared in pyproject.toml."""
    try:
        with pyproject_file.open("rb") as f:
            pyproject = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise BuildError(f"Cannot read {pyproject_file}: {e}") from e

    return list(pyproject.get("project", {}).get("dependencies", []))


def install_dependencies(
    dependencies: list[str], target_dir: Path, python_version: str
) -> None:
    """Install wheels for the Lambda platform into target_dir."""
    if not dependencies:
        print("No runtime dependencies declared")
        return

    print(f"Installing {len(dependencies)} runtime dependencies...")
    cmd = [
        sys.executable,
        "-m",
        "pip",
        "install",
        "--quiet",
        "--target",
        str(target_dir),
        "--platform",
        LAMBDA_PLATFORM,
        "--implementation",
        "cp",
        "--python-version",
        python_version,
        "--only-binary=:all:",
        *dependencies,
    ]
    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        raise BuildError(f"pip install failed:\n{result.stderr}")


def rewrite_imports(source: str) -> str:
    """
    Turn package-relative imports into top-level ones.

    Both module level and function level imports are rewritten, e.g.
    ``    from .error_handler import ConfigurationError`` inside a function
    becomes ``    from error_handler import ConfigurationError``.
    """
    source = RELATIVE_FROM_IMPORT.sub(r"\g<indent>from \g<module> import ", source)
    return RELATIVE_BARE_IMPORT.sub(r"\g<indent>import ", source)


def stage_sources(src_dir: Path, staging_dir: Path) -> list[Path]:
    """Copy src/*.py into staging_dir with imports rewritten."""
    if not src_dir.is_dir():
        raise BuildError(f"Source directory not found: {src_dir}")

    staged = []
    for module in sorted(src_dir.glob("*.py")):
        destination = staging_dir / module.name
        destination.write_text(rewrite_imports(module.read_text()))
        staged.append(destination)

    print(f"Staged {len(staged)} source modules")
    return staged


def verify_handler(staging_dir: Path) -> None:
    """Check the staged handler module defines the Lambda entrypoint."""
    handler_file = staging_dir / HANDLER_MODULE
    if not handler_file.exists():
        raise BuildError(f"{HANDLER_MODULE} is missing from the package root")

    tree = ast.parse(handler_file.read_text(), filename=str(handler_file))
    if not any(
        isinstance(node, ast.FunctionDef) and node.name == HANDLER_FUNCTION
        for node in tree.body
    ):
        raise BuildError(f"{HANDLER_MODULE} does not define {HANDLER_FUNCTION}()")


def write_zip(source_dirs: list[Path], output_file: Path) -> int:
    """Zip the contents of source_dirs at the archive root; return the file count."""
    count = 0
    with zipfile.ZipFile(output_file, "w", zipfile.ZIP_DEFLATED) as zf:
        for source_dir in source_dirs:
            if not source_dir.exists():
                continue
            for path in sorted(source_dir.rglob("*")):
                if path.is_dir() or "__pycache__" in path.parts:
                    continue
                if path.suffix == ".pyc":
                    continue
                zf.write(path, path.relative_to(source_dir))
                count += 1
    return count


def format_size(size: float) -> str:
    """Get human-readable file size."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} TB"


def build(
    project_root: Path,
    output_file: Path,
    python_version: str = "3.12",
    skip_dependencies: bool = False,
) -> int:
    """Build the deployment ZIP and return the number of archived files."""
    with tempfile.TemporaryDirectory() as temp_dir_str:
        temp_dir = Path(temp_dir_str)
        packages_dir = temp_dir / "packages"
        staging_dir = temp_dir / "app"
        packages_dir.mkdir()
        staging_dir.mkdir()

        if skip_dependencies:
            print("Skipping dependency installation")
        else:
            dependencies = read_runtime_dependencies(project_root / "pyproject.toml")
            install_dependencies(dependencies, packages_dir, python_version)

        stage_sources(project_root / "src", staging_dir)
        verify_handler(staging_dir)

        output_file.parent.mkdir(parents=True, exist_ok=True)
        return write_zip([packages_dir, staging_dir], output_file)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Build Lambda deployment package")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("dist"),
        help="Output directory for deployment package (default: dist/)",
    )
    parser.add_argument(
        "--filename",
        default="collection-aggregation-lambda.zip",
        help="Output filename (default: collection-aggregation-lambda.zip)",
    )
    parser.add_argument(
        "--python-version",
        default="3.12",
        help="Lambda runtime Python version used to select wheels (default: 3.12)",
    )
    parser.add_argument(
        "--skip-dependencies",
        action="store_true",
        help="Package only the application modules",
    )
    args = parser.parse_args(argv)

    project_root = Path(__file__).resolve().parent.parent
    output_file = project_root / args.output_dir / args.filename

    print(f"Building {output_file}")
    try:
        file_count = build(
            project_root,
            output_file,
            python_version=args.python_version,
            skip_dependencies=args.skip_dependencies,
        )
    except BuildError as e:
        print(f"Build failed: {e}", file=sys.stderr)
        return 1

    print(f"Files in package: {file_count}")
    print(f"Package size: {format_size(output_file.stat().st_size)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
