# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Demo components.

Usage:
    rendercache render rendercache.demo:FormalGreeter -p name=Macron
    rendercache render rendercache.demo:greeting_page -p name=Merkel -p title=Chancellor
    rendercache serve rendercache.demo:FormalGreeter rendercache.demo:greeting_page
"""

from html import escape
from typing import Any

from rendercache.application.component import Component, component, nest
from rendercache.domain.value_objects import InputBundle
from rendercache.ports.inbound import NestedContentProducer


class FormalGreeter(Component):
    """Greets a head of state; ``title`` defaults to President."""

    defaults = {"title": "President"}

    def build(self) -> str:
        return f"<h1>Hi, {self.title()} {self.name()}.</h1>"

    def title(self) -> str:
        return escape(str(self.param("title")))

    def name(self) -> str:
        return escape(str(self.param("name")))


class Layout(Component):
    """Wraps nested content in a minimal HTML page."""

    defaults = {"page_title": "rendercache"}

    def build(self) -> str:
        return (
            f"<html><head><title>{escape(str(self.param('page_title')))}</title></head>"
            f"<body>{self.nested()}</body></html>"
        )


@component
def greeting_page(bundle: InputBundle, content: NestedContentProducer) -> Any:
    """Layout around a FormalGreeter, composed lazily."""
    greeter_inputs = {key: bundle[key] for key in ("name", "title") if key in bundle}
    return Layout.render(
        {"page_title": f"Greeting {bundle.get('name', '')}".strip()},
        nest(FormalGreeter, greeter_inputs),
    )
