"""ASGI entrypoint for the recipe book API."""

from coconut_nutrition.api.app import create_app
from coconut_nutrition.containers import build_container

app = create_app(build_container())
