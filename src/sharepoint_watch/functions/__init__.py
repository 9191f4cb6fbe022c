"""Azure Functions blueprints."""
