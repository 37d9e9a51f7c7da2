from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import srui as ui
from srui_server import Context

_form_target = ui.Target()


@dataclass
class Credentials:
    Name: str = ""
    Password: str = ""
    Remember: bool = False


def _input(name: str, input_type: str, value: str) -> str:
    attrs = ui.attributes({
        "type": input_type,
        "name": name,
        "value": value,
        "required": True,
        "class": "border rounded p-2",
    })
    return f"<input {attrs}/>"


def Login(ctx: Context) -> str:
    return _render(ctx, Credentials(), None)


def _action_login(ctx: Context) -> str:
    data = Credentials()
    ctx.Body(data)
    if data.Name != "user" or data.Password != "password":
        ctx.Error("Invalid credentials")
        return _render(ctx, data, "Invalid credentials")
    ctx.Success("Welcome back, " + data.Name)
    return ui.div(
        "text-green-600 max-w-md p-8 text-center font-bold rounded-lg bg-white shadow-xl border border-gray-200",
    )("Success")


def _render(ctx: Context, data: Credentials, error: Optional[str]) -> str:
    error_html = ""
    if error:
        error_html = ui.div(
            "text-red-600 p-4 rounded text-center border-4 border-red-600 bg-white",
        )(error)

    checked = {"checked": "checked"} if data.Remember else None

    return ui.form(
        "border border-gray-200 flex flex-col gap-4 max-w-md bg-white p-8 rounded-lg shadow-xl",
        _form_target,
        ctx.Submit(_action_login).Replace(_form_target),
    )(
        error_html,
        _input("Name", "text", data.Name),
        _input("Password", "password", ""),
        f"<label class=\"flex gap-2\"><input {ui.attributes({'type': 'checkbox', 'name': 'Remember'}, checked)}/>Remember me</label>",
        ui.button("rounded bg-blue-700 text-white p-2", {"type": "submit"})("Login"),
    )


def LoginContent(ctx: Context) -> str:
    return ui.div("max-w-full sm:max-w-6xl mx-auto flex flex-col gap-6 w-full")(
        ui.div("text-3xl font-bold")("Login"),
        ui.div("text-gray-600")("Form submission through ctx.Submit; try user / password."),
        Login(ctx),
    )
