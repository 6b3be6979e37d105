"""Tests for the uvicorn and Lambda entry points."""


def test_main_app_exists():
    """Test that main module exports app."""
    from hostsecrets.main import app

    assert app is not None
    assert any(route.path == "/health" for route in app.routes)


def test_lambda_handler_is_callable():
    """Test that lambda_handler is a callable."""
    from hostsecrets.lambda_main import app, lambda_handler

    # Mangum is a callable wrapper
    assert callable(lambda_handler)
    assert any(route.path == "/admin/host/keys" for route in app.routes)
