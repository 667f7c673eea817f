import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]


def _install(session: nox.Session) -> None:
    """Install the project with the test extra into the nox virtualenv."""
    session.run("poetry", "install", "--all-extras", external=True)


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest")


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (no HTTP, no gateways)."""
    _install(session)
    session.run("pytest", "tests/checkout/domain/", "tests/notifications/domain/")


@nox.session(python=PYTHON_VERSIONS)
def tests_reconciliation(session: nox.Session) -> None:
    """Run the reconciliation scenarios (application + bdd)."""
    _install(session)
    session.run("pytest", "tests/checkout/application/", "tests/checkout/bdd/")
