from __future__ import annotations

import asyncio
from typing import Dict, Optional

import srui as ui
from srui_server import Context


async def LazyLoadData(ctx: Context) -> str:
    await asyncio.sleep(2.0)

    return ui.div("space-y-4")(
        ui.div("bg-gray-50 p-4 rounded shadow border border-gray-200")(
            ui.div("text-lg font-semibold")("Deferred content loaded"),
            ui.div("text-gray-600 text-sm")("This block replaced the skeleton via an SSE patch."),
        ),
    )


async def LazyNotice(message: str) -> str:
    await asyncio.sleep(1.0)

    return ui.div("text-sm text-blue-700")(message)


def Deferred(ctx: Context) -> str:
    form: Dict[str, Optional[str]] = {"as": None}

    # scans the body into form object
    ctx.Body(form)

    target = ui.Target()
    notices = ui.Target()

    # append to the notice list once the coroutine resolves
    ctx.Patch(notices.Append, LazyNotice("Skeleton type: " + (form["as"] or "default")))

    def choose(kind: str) -> str:
        return ui.button(
            "px-3 py-1 rounded text-sm bg-blue-700 text-white",
            {"onclick": ctx.Call(Deferred, {"as": kind}).Replace(holder)},
        )(kind.capitalize() + " skeleton")

    holder = ui.Target()
    return ui.div("flex flex-col gap-4", holder)(
        ui.div("flex gap-2")(choose("default"), choose("component"), choose("list"), choose("page"), choose("form")),
        ctx.Defer(LazyLoadData).Skeleton(form["as"]).Render(target),
        ui.div("flex flex-col gap-1", notices)(),
    )


def DeferredContent(ctx: Context) -> str:
    return ui.div("max-w-full sm:max-w-6xl mx-auto flex flex-col gap-6 w-full")(
        ui.div("text-3xl font-bold")("Deferred"),
        ui.div("text-gray-600")("Deferred component with server-side rendering. When the server is busy, the client will show a skeleton."),
        ui.div("bg-white p-6 rounded-lg shadow border border-gray-200 w-full")(Deferred(ctx)),
    )
