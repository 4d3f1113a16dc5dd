"""ASGI entrypoint for the attendance API."""

from smart_attendance.api.app import create_app
from smart_attendance.containers import build_container

app = create_app(build_container())
