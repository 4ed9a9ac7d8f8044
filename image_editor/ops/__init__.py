"""Use-case / operations layer.

Server-side boundaries the editor talks to (AI edit, JPEG size reduction).

This package is intentionally small. Interactive editing lives under
`image_editor.app`; pixel work lives under `image_editor.image_engine`.
"""
