"""The application module must import cleanly in a fresh interpreter.

The in-process suite imports the checkout packages before the domain is
initialized, which hides import cycles that only show up when ``app.py`` is
the first thing loaded (``uvicorn app:app``).
"""

import os
import subprocess
import sys
from pathlib import Path

SRC = Path(__file__).resolve().parents[3] / "src"


def _run(code):
    env = {**os.environ, "PYTHONPATH": str(SRC)}
    return subprocess.run(
        [sys.executable, "-c", code],
        cwd=SRC.parent,
        env=env,
        capture_output=True,
        text=True,
        timeout=120,
    )


def test_app_imports_in_fresh_interpreter():
    result = _run("import app; print(app.app.title)")
    assert result.returncode == 0, result.stderr
    assert "Storefront Checkout API" in result.stdout


def test_routes_are_mounted():
    result = _run(
        "import app; paths = {route.path for route in app.app.routes}; "
        "print('/payments/{provider}/webhook' in paths, '/carts' in paths, '/admin/orders/{order_id}/fulfillment' in paths)"
    )
    assert result.returncode == 0, result.stderr
    assert result.stdout.strip() == "True True True"


def test_providers_resolve_after_startup():
    result = _run(
        "import app; from checkout.gateway import get_provider; "
        "print(get_provider('paystack').name, get_provider('flutterwave').name)"
    )
    assert result.returncode == 0, result.stderr
    assert result.stdout.strip() == "paystack flutterwave"
