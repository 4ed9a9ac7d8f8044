"""QML-facing application facade, state objects and the editing surface.

This package implements the QML↔Python boundary:
- Single command entry: backend.dispatch(cmd, payload)
- UI binding via state QObjects (backend.editor / backend.crop)
- Python→QML notifications via backend.event / backend.taskEvent

`editor`, `viewport` and `export_size` are Qt-free and usable headless.
"""
