"""ASGI entrypoint for the moment composer API."""

from moment_composer.api.app import create_app
from moment_composer.containers import build_container

app = create_app(build_container())
