import nox

PYTHON_VERSION = "3.11"


@nox.session(python=PYTHON_VERSION)
def tests(session):
    session.install("-e", "..[test]")
    session.run("pytest", "tests/unit")


@nox.session(python=PYTHON_VERSION)
def integration(session):
    session.install("-e", "..[test]")
    session.run("pytest", "tests/integration")


@nox.session(python=PYTHON_VERSION)
def lint(session):
    session.install("-e", "..[dev]")
    session.run("ruff", "check", ".")


@nox.session(python=PYTHON_VERSION)
def format(session):
    session.install("-e", "..[dev]")
    session.run("black", "--check", "common", "packages", "workers")
    session.run("ruff", "check", ".")
