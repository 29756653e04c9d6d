"""Allow ``python -m openapi_class_generator``."""

from __future__ import annotations

from .cli import main

raise SystemExit(main())
