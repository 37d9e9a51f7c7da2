from __future__ import annotations

from datetime import datetime

import srui as ui
from srui_server import Context


def render_entry(text: str) -> str:
    return ui.div("p-2 rounded border border-gray-200 bg-white")(
        ui.span("text-sm text-gray-600")(text),
    )


def add_end(_ctx: Context) -> str:
    return render_entry("Appended at " + datetime.now().strftime("%H:%M:%S"))


def add_start(_ctx: Context) -> str:
    return render_entry("Prepended at " + datetime.now().strftime("%H:%M:%S"))


def clear_log(ctx: Context) -> str:
    ctx.Info("Log cleared")
    return ""


def AppendContent(ctx: Context) -> str:
    target = ui.Target()
    controls = ui.div("flex gap-2")(
        ui.button("rounded px-3 py-2 bg-blue-700 text-white", {"onclick": ctx.Call(add_end).Append(target)})("Add at end"),
        ui.button("rounded px-3 py-2 bg-green-700 text-white", {"onclick": ctx.Call(add_start).Prepend(target)})("Add at start"),
        ui.button("rounded px-3 py-2 bg-gray-700 text-white", {"onclick": ctx.Call(clear_log).Render(target)})("Clear"),
    )
    container = ui.div("space-y-2", target)(
        render_entry("Initial item"),
    )
    return ui.div("max-w-5xl mx-auto flex flex-col gap-4")(
        ui.div("text-2xl font-bold")("Append / Prepend Demo"),
        ui.div("text-gray-600")("Click buttons to insert items at the beginning or end of the list."),
        controls,
        container,
    )
