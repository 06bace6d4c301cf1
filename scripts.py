#!/usr/bin/env python3
"""
Development scripts for pywire project.

These scripts integrate with uv to run various checks and tests.
"""

import subprocess
import sys
from pathlib import Path

SAMPLES_DIR = Path("tests/samples")


def run_command(cmd: list[str], description: str) -> bool:
    """Run a command and return True if successful."""
    print(f"\n🔄 {description}...")
    print(f"Running: {' '.join(cmd)}")

    try:
        subprocess.run(cmd, check=True, capture_output=False)
        print(f"✅ {description} passed")
        return True
    except subprocess.CalledProcessError as e:
        print(f"❌ {description} failed with exit code {e.returncode}")
        return False
    except FileNotFoundError:
        print(f"❌ Command not found: {cmd[0]}")
        return False


def run_tests() -> int:
    """Run the test suite."""
    print("🧪 Running test suite")
    success = run_command(["uv", "run", "pytest", "-v"], "Tests")
    return 0 if success else 1


def run_lint() -> int:
    """Run linting checks."""
    print("🔍 Running linting checks")

    checks = [
        (["uv", "run", "ruff", "check", "."], "Ruff linting"),
        (["uv", "run", "ruff", "format", "--check", "."], "Ruff formatting"),
    ]

    all_passed = True
    for cmd, desc in checks:
        if not run_command(cmd, desc):
            all_passed = False

    if not all_passed:
        print("\n💡 To auto-fix formatting issues, run: uv run ruff format .")
        print("💡 To auto-fix some linting issues, run: uv run ruff check --fix .")

    return 0 if all_passed else 1


def run_typecheck() -> int:
    """Run type checking with both mypy and pyright."""
    print("🔬 Running type checking")

    checks = [
        (["uv", "run", "mypy", "src/pywire/"], "MyPy type checking"),
        (["uv", "run", "pyright", "src/pywire/"], "Pyright type checking"),
    ]

    all_passed = True
    for cmd, desc in checks:
        if not run_command(cmd, desc):
            all_passed = False

    return 0 if all_passed else 1


def _sample_sources() -> list[str]:
    return [
        str(path)
        for path in sorted(SAMPLES_DIR.glob("*.py"))
        if not path.stem.endswith("_gen") and path.name != "__init__.py"
    ]


def run_samples_check() -> int:
    """Check that the generated sample modules are up to date."""
    print("🧬 Checking generated samples")

    if not SAMPLES_DIR.exists():
        print("❌ Samples directory not found")
        return 1

    sources = _sample_sources()
    if not sources:
        print("⚠️  No sample sources found")
        return 0

    success = run_command(["uv", "run", "pywire", "--check", *sources], "Generated samples")
    if not success:
        print("\n💡 To regenerate them, run: python scripts.py regen")
    return 0 if success else 1


def run_samples_regen() -> int:
    """Regenerate the sample modules' `_gen.py` counterparts."""
    print("🧬 Regenerating samples")
    success = run_command(["uv", "run", "pywire", *_sample_sources()], "Sample generation")
    return 0 if success else 1


def run_readme_validation() -> int:
    """Validate that code examples in README.md are working."""
    print("📖 Validating README code examples")

    readme_path = Path("README.md")
    if not readme_path.exists():
        print("❌ README.md not found")
        return 1

    # Generate test file from README using phmdoctest
    test_file_path = Path("test_readme.py")

    # Clean up any existing test file
    if test_file_path.exists():
        test_file_path.unlink()

    # Generate test file
    gen_cmd = ["uv", "run", "phmdoctest", str(readme_path), "--outfile", str(test_file_path)]
    if not run_command(gen_cmd, "Generating README tests"):
        return 1

    # Run the generated tests
    test_cmd = ["uv", "run", "pytest", str(test_file_path), "-v"]
    success = run_command(test_cmd, "README code examples")

    # Clean up test file
    if test_file_path.exists():
        test_file_path.unlink()

    return 0 if success else 1


def check_all() -> int:
    """Run all checks: tests, linting, type checking, samples, and README validation."""
    print("🚀 Running all checks for pywire")
    print("=" * 50)

    checks = [
        ("Tests", run_tests),
        ("Linting", run_lint),
        ("Type Checking", run_typecheck),
        ("Samples", run_samples_check),
        ("README", run_readme_validation),
    ]

    results = {}
    for name, func in checks:
        print(f"\n{'=' * 20} {name} {'=' * 20}")
        results[name] = func() == 0

    # Summary
    print(f"\n{'=' * 20} SUMMARY {'=' * 20}")
    all_passed = True
    for name, passed in results.items():
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"{name:<15} {status}")
        if not passed:
            all_passed = False

    if all_passed:
        print("\n🎉 All checks passed!")
        return 0
    else:
        print("\n💥 Some checks failed. Please fix the issues above.")
        return 1


COMMANDS = {
    "test": run_tests,
    "lint": run_lint,
    "typecheck": run_typecheck,
    "samples": run_samples_check,
    "regen": run_samples_regen,
    "readme": run_readme_validation,
    "check": check_all,
}


if __name__ == "__main__":
    # Allow running directly for development
    if len(sys.argv) > 1:
        command = sys.argv[1]
        if command in COMMANDS:
            sys.exit(COMMANDS[command]())
        else:
            print(f"Unknown command: {command}")
            print(f"Available commands: {', '.join(COMMANDS)}")
            sys.exit(1)
    else:
        print(f"Available commands: {', '.join(COMMANDS)}")
        print("Usage: python scripts.py <command>")
