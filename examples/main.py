from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, List, Tuple

# Ensure we can import sibling modules in examples/pages when run as a script
_EXAMPLES_DIR = Path(__file__).resolve().parent
_PROJECT_DIR = _EXAMPLES_DIR.parent
if str(_EXAMPLES_DIR) not in sys.path:
    sys.path.insert(0, str(_EXAMPLES_DIR))
if str(_PROJECT_DIR) not in sys.path:
    sys.path.insert(1, str(_PROJECT_DIR))

import srui as ui
from srui_server import Context, MakeApp
from pages.append import AppendContent
from pages.counter import CounterContent
from pages.deferred import DeferredContent
from pages.login import LoginContent

Route = Tuple[str, str, Callable[[Context], str]]


routes: List[Route] = [
    ("/", "Counter", CounterContent),
    ("/append", "Append", AppendContent),
    ("/deferred", "Deferred", DeferredContent),
    ("/login", "Login", LoginContent),
]

app = MakeApp("en")
app.HTMLHead.append(
    '<link rel="icon" type="image/svg+xml" href="data:image/svg+xml,'
    + ui.Normalize(
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 128 128">'
        '<rect width="128" height="128" rx="24" ry="24" fill="#2563eb" stroke="#1e40af" stroke-width="6"/>'
        '<text x="50%" y="56%" dominant-baseline="middle" text-anchor="middle" font-size="80" font-weight="700" font-family="Arial, Helvetica, sans-serif" fill="#ffffff">UI</text>'
        "</svg>"
    )
    + '" />'
)


def _layout(title: str, body_fn: Callable[[Context], str]) -> Callable[[Context], str]:
    def render(ctx: Context) -> str:
        current_path = ctx.req.path or "/"
        links = []
        for path, label, _ in routes:
            base_cls = "px-2 py-1 rounded text-sm whitespace-nowrap transition-colors"
            if path == current_path:
                cls = base_cls + " bg-blue-700 text-white hover:bg-blue-600"
            else:
                cls = base_cls + " text-gray-700 hover:bg-gray-200"
            links.append(ui.a(cls, {"href": path}, ctx.Load(path))(label))

        nav = ui.div("bg-white shadow mb-6 fixed top-0 left-0 right-0 z-10")(
            ui.div("max-w-5xl mx-auto px-4 py-2 flex items-center gap-2")(
                ui.div("flex flex-wrap gap-1 overflow-auto")(" ".join(links)),
            )
        )

        content = body_fn(ctx)
        return app.HTML(
            title,
            "bg-gray-200 min-h-screen",
            nav + ui.div("pt-24 max-w-5xl mx-auto px-2 py-8")(content),
        )

    return render


for path, title, handler in routes:
    app.Page(path, _layout(title, handler))

app.Debug(True)
app.AutoReload(True, str(_PROJECT_DIR))


def run(port: int = 1422) -> None:
    app.Listen(port)


if __name__ == "__main__":
    run()
