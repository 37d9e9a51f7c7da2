"""Tests for srui_server.Context: request builders, Defer and Patch."""

import asyncio
import html
import json

import pytest

import srui as ui
from srui_body import BodyItem, decode, parse_body
from srui_config import ConfigurationError
from srui_server import FORM, GET, POST, App, Context, Request


def increment(ctx):
    data = {"Count": 0}
    ctx.Body(data)
    return str(data["Count"] + 1)


def save(ctx):
    return "saved"


def unquote(script: str) -> str:
    return script.replace("&quot;", '"')


@pytest.fixture
def ctx(app: App) -> Context:
    return Context(app, Request(GET, "/", session_id="sess-test"))


class TestContext:
    def test_attributes(self, app: App, ctx: Context) -> None:
        assert ctx.app is app
        assert ctx.req.path == "/"
        assert ctx.sessionID == "sess-test"
        assert ctx.res.status == 200
        assert ctx.append == []

    def test_body_decodes_request(self, app: App) -> None:
        ctx = Context(app, Request(POST, "/x", body=[BodyItem("Count", "int", "4")]))
        data = {"Count": 0}
        ctx.Body(data)

        assert data == {"Count": 4}

    def test_body_without_payload_keeps_defaults(self, ctx: Context) -> None:
        data = {"Count": 2}
        ctx.Body(data)

        assert data == {"Count": 2}


class TestCall:
    def test_render(self, ctx: Context) -> None:
        target = ui.Target("T1")
        script = ctx.Call(increment).Render(target)

        assert unquote(script) == '__post(event, "inline", "T1", "/increment", [])'

    def test_swaps(self, ctx: Context) -> None:
        target = ui.Target("T1")

        assert '"outline"' in unquote(ctx.Call(increment).Replace(target))
        assert '"append"' in unquote(ctx.Call(increment).Append(target))
        assert '"prepend"' in unquote(ctx.Call(increment).Prepend(target))

    def test_stop_has_no_target(self, ctx: Context) -> None:
        assert unquote(ctx.Call(increment).Stop()) == '__post(event, "none", "", "/increment", [])'

    def test_values_are_embedded(self, ctx: Context) -> None:
        script = unquote(ctx.Call(increment, {"Count": 3}).Replace(ui.Target("T1")))
        payload = json.loads(script[script.index("["):script.rindex(")")])

        assert payload == [{"name": "Count", "type": "int", "value": "3"}]

    def test_registers_handler(self, app: App, ctx: Context) -> None:
        ctx.Call(increment).Render(ui.Target())
        assert app.path_of(increment) == "/increment"

    def test_quotes_are_escaped_for_attributes(self, ctx: Context) -> None:
        script = ctx.Call(increment, {"Name": 'a"b'}).Render(ui.Target("T1"))
        assert '"' not in script

    def test_accepts_descriptor_dict(self, ctx: Context) -> None:
        target = ui.Target("T1")
        assert '"T1"' in unquote(ctx.Call(increment).Render(target.Replace))


class TestSendAndSubmit:
    def test_send_uses_submit(self, ctx: Context) -> None:
        script = unquote(ctx.Send(save).Render(ui.Target("F1")))
        assert script == '__submit(event, "inline", "F1", "/save", [])'

    def test_submit_returns_onsubmit(self, ctx: Context) -> None:
        attrs = ctx.Submit(save, {"Step": 2}).Replace(ui.Target("F1"))

        assert list(attrs) == ["onsubmit"]
        script = unquote(attrs["onsubmit"])
        assert script.startswith('__submit(event, "outline", "F1", "/save", ')
        assert '"Step"' in script

    def test_submit_stop(self, ctx: Context) -> None:
        assert '"none", ""' in unquote(ctx.Submit(save).Stop()["onsubmit"])

    def test_submit_attrs_not_double_escaped(self, ctx: Context) -> None:
        target = ui.Target("F1")
        html = ui.form("", target, ctx.Submit(save).Render(target))("")
        assert 'onsubmit="__submit(event, &quot;inline&quot;' in html


class TestPost:
    def test_page_only_handler_gets_action_route(self, app: App, ctx: Context) -> None:
        app.Page("/save-page", save)
        script = unquote(ctx.Call(save).Render(ui.Target("T1")))

        assert '"/save"' in script
        assert (POST, "/save") in app.routes()

    def test_unregistered_handler_rejected(self, ctx: Context) -> None:
        with pytest.raises(ConfigurationError):
            ctx.Post(POST, ui.INLINE, save, ui.Target())

    def test_form_type(self, app: App, ctx: Context) -> None:
        app.Callable(save)
        assert ctx.Post(FORM, ui.INLINE, save, ui.Target("T1")).startswith("__submit(")


class TestExtras:
    def test_load(self, ctx: Context) -> None:
        assert unquote(ctx.Load("/about")["onclick"]) == 'return __load(event, "/about")'

    def test_reload_and_redirect(self, ctx: Context) -> None:
        assert "window.location.reload()" in ctx.Reload()
        assert "window.location.href = '/home'" in ctx.Redirect("/home")

    @pytest.mark.parametrize(("verb", "color"), [("Success", "green"), ("Error", "red"), ("Info", "blue")])
    def test_toasts_append_script(self, ctx: Context, verb: str, color: str) -> None:
        getattr(ctx, verb)("Saved <ok>")

        assert len(ctx.append) == 1
        assert ctx.append[0].startswith("<script>")
        assert f"bg-{color}-700" in ctx.append[0]
        assert '"Saved <ok>"' in ctx.append[0]


class TestDefer:
    async def test_returns_skeleton_and_publishes_once(self, app: App, ctx: Context) -> None:
        target = ui.Target("D1")
        sub = app.patches.subscribe()

        async def slow(c):
            await asyncio.sleep(0)
            return "<div id='D1'>ready</div>"

        html = ctx.Defer(slow).Replace(target)
        assert 'id="D1"' in html
        assert sub.queue.empty()

        await app.executor.drain()

        event = sub.queue.get_nowait()
        assert event.event == "patch"
        assert json.loads(event.data) == {"id": "D1", "swap": "outline", "html": "<div id='D1'>ready</div>"}
        assert sub.queue.empty()

    async def test_skeleton_kind(self, app: App, ctx: Context) -> None:
        html = ctx.Defer(save).Skeleton("list").Render(ui.Target("D2"))
        await app.executor.drain()

        assert "rounded-full" in html

    async def test_values_and_session_reach_handler(self, app: App, ctx: Context) -> None:
        seen = {}

        def report(c):
            data = {"Page": 0}
            c.Body(data)
            seen.update(data, session=c.sessionID)
            return "ok"

        ctx.Defer(report, {"Page": 3}).Render(ui.Target())
        await app.executor.drain()

        assert seen == {"Page": 3, "session": "sess-test"}

    async def test_failing_handler_publishes_nothing(self, app: App, ctx: Context) -> None:
        sub = app.patches.subscribe()

        def broken(c):
            raise RuntimeError("boom")

        ctx.Defer(broken).Replace(ui.Target("D3"))
        await app.executor.drain()

        assert sub.queue.empty()

    async def test_stop_runs_without_publishing(self, app: App, ctx: Context) -> None:
        sub = app.patches.subscribe()
        calls = []

        def job(c):
            calls.append(1)
            return "ignored"

        assert ctx.Defer(job).Stop() == ""
        await app.executor.drain()

        assert calls == [1]
        assert sub.queue.empty()

    async def test_appended_scripts_are_published(self, app: App, ctx: Context) -> None:
        sub = app.patches.subscribe()

        def notify(c):
            c.Info("done")
            return "<p>done</p>"

        ctx.Defer(notify).Append(ui.Target("D4"))
        await app.executor.drain()

        data = json.loads(sub.queue.get_nowait().data)
        assert data["swap"] == "append"
        assert data["html"].startswith("<p>done</p><script>")


class TestPatch:
    def test_string(self, app: App, ctx: Context) -> None:
        sub = app.patches.subscribe()
        ctx.Patch(ui.Target("P1").Replace, "<b>x</b>")

        assert json.loads(sub.queue.get_nowait().data) == {"id": "P1", "swap": "outline", "html": "<b>x</b>"}

    def test_target_default_swap(self, app: App, ctx: Context) -> None:
        sub = app.patches.subscribe()
        ctx.Patch(ui.Target("P1", ui.PREPEND), lambda: "<i>y</i>")

        assert json.loads(sub.queue.get_nowait().data)["swap"] == "prepend"

    def test_without_streams_is_dropped(self, ctx: Context) -> None:
        ctx.Patch(ui.Target("P1"), "<b>x</b>")

    async def test_awaitable(self, app: App, ctx: Context) -> None:
        sub = app.patches.subscribe()

        async def later():
            return "<b>late</b>"

        ctx.Patch(ui.Target("P2").Render, later())
        assert sub.queue.empty()
        await app.executor.drain()

        assert json.loads(sub.queue.get_nowait().data)["html"] == "<b>late</b>"


class TestValuesSurviveAttributeEmbedding:
    @pytest.mark.parametrize(
        "note",
        ["a    b /*x*/ c", "x &amp; y <!-- z -->", "tab\there\nline", "quote \" and ' apostrophe", "// not a comment"],
    )
    def test_round_trip(self, ctx: Context, note: str) -> None:
        script = ctx.Call(increment, {"Note": note, "Count": 2}).Render(ui.Target("T1"))
        assert '"' not in script

        # what the browser hands to the handler after parsing the attribute
        source = html.unescape(script)
        items = parse_body(source[source.index("["):source.rindex(")")].encode("utf-8"))
        decoded = {}
        decode(items, decoded)

        assert decoded == {"Note": note, "Count": 2}
