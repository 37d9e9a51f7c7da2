"""Targets, swap modes and the small HTML helpers used by the srui runtime.

A :class:`Target` names a patchable region of rendered HTML. Handlers create
one per logical UI region, render it as the ``id`` attribute of an element
and later address that element from request builders (``ctx.Call(...)``) or
from the patch stream.
"""

from __future__ import annotations

import html
import re
import secrets
import string
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, MutableMapping, Optional, Union

from srui_config import ConfigurationError

Swap = str
Attr = Dict[str, Any]

INLINE: Swap = "inline"
OUTLINE: Swap = "outline"
APPEND: Swap = "append"
PREPEND: Swap = "prepend"
NONE: Swap = "none"

SWAPS = frozenset({INLINE, OUTLINE, APPEND, PREPEND, NONE})


_RE_INLINE_GAP = re.compile(r"\s{4,}")
_RE_GAP = re.compile(r"[\t\n]+")
_RE_QUOTE = re.compile(r'"')
_RE_COMMENT_HTML = re.compile(r"<!--[\s\S]*?-->")
_RE_COMMENT_BLOCK = re.compile(r"/\*[\s\S]*?\*/")
_RE_COMMENT_LINE = re.compile(r"^[\t ]*//.*$", re.MULTILINE)


def Trim(value: str) -> str:
    """Collapse whitespace and strip comments from an HTML/JS snippet."""

    if not value:
        return ""
    result = str(value)
    result = _RE_COMMENT_HTML.sub(" ", result)
    result = _RE_COMMENT_BLOCK.sub(" ", result)
    result = _RE_COMMENT_LINE.sub(" ", result)
    result = _RE_GAP.sub(" ", result)
    result = _RE_INLINE_GAP.sub(" ", result)
    return result.strip()


def Normalize(value: str) -> str:
    """Like :func:`Trim`, but also escapes double quotes for attribute embedding."""

    if not value:
        return ""
    result = str(value)
    result = _RE_COMMENT_HTML.sub(" ", result)
    result = _RE_COMMENT_BLOCK.sub(" ", result)
    result = _RE_COMMENT_LINE.sub(" ", result)
    result = _RE_QUOTE.sub("&quot;", result)
    result = _RE_GAP.sub("", result)
    result = _RE_INLINE_GAP.sub(" ", result)
    return result.strip()


def Classes(*values: Union[str, None, bool]) -> str:
    parts = [str(v) for v in values if v]
    return Trim(" ".join(parts))


def RandomString(length: int = 20) -> str:
    if length <= 0:
        return ""
    raw = secrets.token_urlsafe(length)
    safe = re.sub(r"[^A-Za-z0-9]", "", raw)
    choices = string.ascii_letters + string.digits
    while len(safe) < length:
        safe += secrets.choice(choices)
    return safe[:length]


def makeId() -> str:
    return "i" + RandomString(15)


def attributes(*items: Optional[Attr]) -> str:
    result: List[str] = []
    for item in items:
        if not item:
            continue
        if not isinstance(item, MutableMapping) and hasattr(item, "id"):
            item = {"id": getattr(item, "id")}
        for key, value in item.items():
            if value is None or value is False or key == "swap":
                continue
            if key in {"disabled", "required", "readonly"}:
                if value:
                    result.append(f"{key}=\"{key}\"")
                continue
            # event handlers are produced by Normalize() and already escaped
            if key.startswith("on"):
                result.append(f"{key}=\"{value}\"")
            else:
                result.append(f"{key}=\"{html.escape(str(value), quote=True)}\"")
    return " ".join(result)


def open_tag(tag: str) -> Callable[..., Callable[..., str]]:
    def with_css(css: str = "", *extra: Any) -> Callable[..., str]:
        def renderer(*elements: Any) -> str:
            content = " ".join(str(el) for el in elements if el)
            attr_str = attributes(*extra, {"class": Classes(css)} if css else None)
            if attr_str:
                return f"<{tag} {attr_str}>{content}</{tag}>"
            return f"<{tag}>{content}</{tag}>"

        return renderer

    return with_css


div = open_tag("div")
span = open_tag("span")
form = open_tag("form")
button = open_tag("button")
a = open_tag("a")


def Script(body: str) -> str:
    return f"<script>{body}</script>"


@dataclass
class Target:
    """Addressable region of the page: a stable element id plus a default swap."""

    id: str = field(default_factory=makeId)
    swap: Swap = INLINE

    def __post_init__(self) -> None:
        if self.swap not in SWAPS:
            raise ConfigurationError(f"Unknown swap mode: {self.swap!r}")

    def Skeleton(self, skeleton_type: Optional[str] = None) -> str:
        if skeleton_type == "list":
            return Skeleton.List(self, 5)
        if skeleton_type == "component":
            return Skeleton.Component(self)
        if skeleton_type == "page":
            return Skeleton.Page(self)
        if skeleton_type == "form":
            return Skeleton.Form(self)
        return Skeleton.Default(self)

    @property
    def Render(self) -> Attr:
        return {"id": self.id, "swap": INLINE}

    @property
    def Replace(self) -> Attr:
        return {"id": self.id, "swap": OUTLINE}

    @property
    def Append(self) -> Attr:
        return {"id": self.id, "swap": APPEND}

    @property
    def Prepend(self) -> Attr:
        return {"id": self.id, "swap": PREPEND}


def NewTarget(swap: Swap = INLINE) -> Target:
    return Target(swap=swap)


def target_id(target: Any) -> str:
    """Extract the element id from a Target, a descriptor dict or ``None``."""

    if target is None:
        return ""
    if isinstance(target, MutableMapping):
        return str(target.get("id", "") or "")
    return str(getattr(target, "id", "") or "")


def target_swap(target: Any, default: Swap = INLINE) -> Swap:
    if isinstance(target, MutableMapping):
        swap = str(target.get("swap", "") or default)
    else:
        swap = str(getattr(target, "swap", "") or default)
    return swap if swap in SWAPS else default


class Skeleton:
    """Placeholder markup shown at a target until its deferred patch arrives."""

    @staticmethod
    def Default(target: Target) -> str:
        return div("animate-pulse", {"id": target.id})(
            div("bg-gray-200 h-5 rounded w-5/6 mb-2")(),
            div("bg-gray-200 h-5 rounded w-2/3 mb-2")(),
            div("bg-gray-200 h-5 rounded w-4/6")(),
        )

    @staticmethod
    def List(target: Target, count: int = 5) -> str:
        count = max(1, count)
        row = div("flex items-center gap-3 mb-3")(
            div("bg-gray-200 rounded-full h-10 w-10")(),
            div("flex-1")(
                div("bg-gray-200 h-4 rounded w-5/6 mb-2")(),
                div("bg-gray-200 h-4 rounded w-3/6")(),
            ),
        )
        return div("animate-pulse", {"id": target.id})("".join([row] * count))

    @staticmethod
    def Component(target: Target) -> str:
        return div("animate-pulse", {"id": target.id})(
            div("bg-gray-200 h-6 rounded w-2/5 mb-4")(),
            div("bg-gray-200 h-4 rounded w-full mb-2")(),
            div("bg-gray-200 h-4 rounded w-5/6 mb-2")(),
            div("bg-gray-200 h-4 rounded w-4/6")(),
        )

    @staticmethod
    def Page(target: Target) -> str:
        def card() -> str:
            return div("bg-white rounded-lg p-4 shadow mb-4")(
                div("bg-gray-200 h-5 rounded w-2/5 mb-3")(),
                div("bg-gray-200 h-4 rounded w-full mb-2")(),
                div("bg-gray-200 h-4 rounded w-5/6 mb-2")(),
            )

        return div("animate-pulse", {"id": target.id})(
            div("bg-gray-200 h-8 rounded w-1/3 mb-6")(),
            card(),
            card(),
        )

    @staticmethod
    def Form(target: Target) -> str:
        def field_short() -> str:
            return div("")(
                div("bg-gray-200 h-4 rounded w-3/6 mb-2")(),
                div("bg-gray-200 h-10 rounded w-full")(),
            )

        return div("animate-pulse", {"id": target.id})(
            div("bg-white rounded-lg p-4 shadow")(
                div("bg-gray-200 h-6 rounded w-2/5 mb-5")(),
                div("grid grid-cols-1 md:grid-cols-2 gap-4")(field_short(), field_short(), field_short()),
                div("flex gap-2 mt-4")(
                    div("bg-gray-200 h-10 rounded w-24")(),
                    div("bg-gray-200 h-10 rounded w-32")(),
                ),
            ),
        )


__all__ = [
    "Swap",
    "Attr",
    "INLINE",
    "OUTLINE",
    "APPEND",
    "PREPEND",
    "NONE",
    "SWAPS",
    "Trim",
    "Normalize",
    "Classes",
    "RandomString",
    "makeId",
    "attributes",
    "div",
    "span",
    "form",
    "button",
    "a",
    "Script",
    "Target",
    "NewTarget",
    "target_id",
    "target_swap",
    "Skeleton",
]
