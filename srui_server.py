"""Action dispatch and the HTTP side of srui.

``App`` owns the action table, the patch and live-reload channels and the
deferred executor; ``Context`` is what handlers see for one request. The
server runs on a single asyncio event loop: handlers may be plain functions
or coroutines, and nothing here is shared across threads.
"""

from __future__ import annotations

import asyncio
import contextlib
import html
import http.client
import inspect
import io
import json
import logging
import re
import secrets
import time
from dataclasses import dataclass, field
from http import HTTPStatus
from http.cookies import CookieError, SimpleCookie
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import urlsplit

import srui_client
from srui import APPEND, INLINE, NONE, OUTLINE, PREPEND, Classes, Normalize, Script, Swap, Target, Trim, target_id, target_swap
from srui_body import BodyItem, decode, dumps, encode_values, parse_body
from srui_config import ConfigurationError, ServerConfig
from srui_patch import RELOAD, Channel, DeferredExecutor, resolve_later

logger = logging.getLogger("srui.server")

ActionType = str
GET = "GET"
POST = "POST"
FORM = "FORM"

Handler = Callable[["Context"], Union[str, Awaitable[str]]]


_GLOBAL_STYLE = Trim(
    """
    <style>
      html { scroll-behavior: smooth; }
      .invalid,
      select:invalid,
      textarea:invalid,
      input:invalid {
        border-bottom-width: 2px;
        border-bottom-color: #dc2626;
        border-bottom-style: dotted;
      }
    </style>
    """
)

_ERROR_PAGE = """
    <!DOCTYPE html>
    <html lang="en">
      <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>Something went wrong…</title>
        <style>
          html,body{height:100%;}
          body{margin:0;display:flex;align-items:center;justify-content:center;background:#f3f4f6;font-family:system-ui,-apple-system,'Segoe UI',Roboto,Helvetica,Arial,sans-serif;color:#111827;}
          .card{background:#fff;box-shadow:0 10px 25px rgba(0,0,0,.08);border-radius:14px;padding:28px 32px;border:1px solid rgba(0,0,0,.06);text-align:center;max-width:360px;}
          .title{font-size:20px;font-weight:600;margin-bottom:6px;}
          .sub{font-size:14px;color:#6b7280;}
        </style>
      </head>
      <body>
        <div class="card">
          <div class="title">Something went wrong…</div>
          <div class="sub">Trying to recover. This page will refresh automatically.</div>
        </div>
        <script>__recover__</script>
      </body>
    </html>
    """


def error_page(live_path: str) -> str:
    return Trim(_ERROR_PAGE).replace("__recover__", srui_client.recovery_script(live_path))


def _ensure_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", "ignore")
    return str(value)


async def _invoke(handler: Handler, ctx: "Context") -> str:
    result = handler(ctx)
    if inspect.isawaitable(result):
        result = await result
    return _ensure_text(result)


def normalize_method(method: str) -> ActionType:
    if method and method.strip().upper() == POST:
        return POST
    return GET


def normalize_path(path: str) -> str:
    value = (path or "").strip()
    if not value:
        value = "/"
    if not value.startswith("/"):
        value = "/" + value
    return value.lower()


_RE_DROP = re.compile(r"<locals>|[.*()\[\]<>]")
_RE_DASH = re.compile(r"[^0-9A-Za-z_]+")


def derive_path(handler: Callable[..., Any]) -> str:
    """URL path for a handler, from its qualified name."""

    name = getattr(handler, "__qualname__", None) or getattr(handler, "__name__", None) or "anonymous"
    parts = [p for p in _RE_DROP.split(str(name)) if p]
    slug = _RE_DASH.sub("-", "-".join(parts)).strip("-") or "anonymous"
    return normalize_path(slug)


@dataclass
class Request:
    method: ActionType
    path: str
    query: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[List[BodyItem]] = None
    session_id: str = ""


@dataclass
class Response:
    status: int = HTTPStatus.OK
    body: str = ""
    content_type: str = "text/html; charset=utf-8"
    headers: List[Tuple[str, str]] = field(default_factory=list)
    close: bool = False

    def set_header(self, name: str, value: str) -> None:
        self.headers = [(k, v) for k, v in self.headers if k.lower() != name.lower()]
        self.headers.append((name, value))

    def encode(self) -> bytes:
        body = self.body.encode("utf-8")
        status = HTTPStatus(self.status)
        lines = [
            f"HTTP/1.1 {status.value} {status.phrase}",
            f"Content-Type: {self.content_type}",
            f"Content-Length: {len(body)}",
        ]
        lines.extend(f"{name}: {value}" for name, value in self.headers)
        if self.close:
            lines.append("Connection: close")
        return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1") + body


def _display_message(ctx: "Context", message: str, color: str) -> None:
    script = Trim(
        """
        <script>(function(){
            var box=document.getElementById('__messages__');
            if(!box){
                box=document.createElement('div');
                box.id='__messages__';
                box.style.position='fixed';
                box.style.top='0';
                box.style.right='0';
                box.style.padding='8px';
                box.style.zIndex='9999';
                box.style.pointerEvents='none';
                document.body.appendChild(box);
            }
            var item=document.createElement('div');
            item.style.display='flex';
            item.style.alignItems='center';
            item.style.gap='10px';
            item.style.padding='12px 16px';
            item.style.margin='8px';
            item.style.borderRadius='12px';
            item.style.minWidth='320px';
            item.style.boxShadow='0 6px 18px rgba(0,0,0,0.08)';
            var text=document.createElement('span');
            text.textContent=%(message)s;
            var accent='%(color)s'.indexOf('green')>=0 ? '#16a34a' : ('%(color)s'.indexOf('red')>=0 ? '#dc2626' : '#4f46e5');
            if('%(color)s'.indexOf('green')>=0){
                item.style.background='#dcfce7';
                item.style.color='#166534';
            } else if('%(color)s'.indexOf('red')>=0){
                item.style.background='#fee2e2';
                item.style.color='#991b1b';
            } else {
                item.style.background='#eef2ff';
                item.style.color='#3730a3';
            }
            item.style.borderLeft='4px solid ' + accent;
            item.appendChild(text);
            box.appendChild(item);
            setTimeout(function(){ try { box.removeChild(item); } catch(_){} }, 5000);
        })();
        </script>
        """ % {"message": json.dumps(message), "color": color}
    )
    ctx.append.append(script)


class Context:
    """Per-request façade handed to every page and action handler."""

    def __init__(self, app: "App", request: Request, session_id: str = "") -> None:
        self.app = app
        self.req = request
        self.res = Response()
        self.sessionID = session_id or request.session_id
        self.append: List[str] = []

    def Body(self, output: Any) -> None:
        decode(self.req.body, output)

    def Callable(self, method: Handler) -> Handler:
        return self.app.Callable(method)

    def Action(self, uid: str, action: Handler) -> Handler:
        return self.app.Action(uid, action)

    def Post(
        self,
        as_type: ActionType,
        swap: Swap,
        method: Handler,
        target: Any = None,
        values: Sequence[Mapping[str, Any]] = (),
    ) -> str:
        path = self.app.action_path(method)
        if not path:
            raise ConfigurationError("Function not registered")
        # values travel verbatim: only the fixed part goes through Normalize
        payload = html.escape(dumps(encode_values(values)), quote=True)
        element = "" if swap == NONE else html.escape(target_id(target), quote=True)
        call = "__submit" if as_type == FORM else "__post"
        head = Normalize(f"{call}(event, \"{swap}\", \"{element}\", \"{path}\",")
        return f"{head} {payload})"

    def Call(self, method: Handler, *values: Mapping[str, Any]) -> _CallBuilder:
        return _CallBuilder(self, POST, self.Callable(method), values)

    def Send(self, method: Handler, *values: Mapping[str, Any]) -> _CallBuilder:
        return _CallBuilder(self, FORM, self.Callable(method), values)

    def Submit(self, method: Handler, *values: Mapping[str, Any]) -> _SubmitBuilder:
        return _SubmitBuilder(self, self.Callable(method), values)

    def Defer(self, method: Handler, *values: Mapping[str, Any]) -> _DeferBuilder:
        return _DeferBuilder(self, self.Callable(method), values)

    def Patch(self, target: Any, html: Any, swap: Optional[Swap] = None) -> None:
        """Push ``html`` to every open page holding ``target``.

        ``html`` may be a string, a zero-argument callable or an awaitable;
        awaitables are resolved on the deferred executor.
        """

        element = target_id(target)
        swap = swap or target_swap(target)
        resolved = html() if callable(html) else html
        if inspect.isawaitable(resolved):
            self.app.executor.schedule(resolve_later(resolved), element, swap)
            return
        if element:
            self.app.patches.publish_patch(element, swap, _ensure_text(resolved))

    def Load(self, href: str) -> Dict[str, str]:
        return {"onclick": Normalize(f"return __load(event, \"{href}\")")}

    def Reload(self) -> str:
        return Normalize("<script>window.location.reload();</script>")

    def Redirect(self, href: str) -> str:
        return Normalize(f"<script>window.location.href = '{href}';</script>")

    def Success(self, message: str) -> None:
        _display_message(self, message, "bg-green-700 text-white")

    def Error(self, message: str) -> None:
        _display_message(self, message, "bg-red-700 text-white")

    def Info(self, message: str) -> None:
        _display_message(self, message, "bg-blue-700 text-white")


class _CallBuilder:
    def __init__(self, ctx: Context, as_type: ActionType, method: Handler, values: Sequence[Mapping[str, Any]]) -> None:
        self._ctx = ctx
        self._as = as_type
        self._method = method
        self._values = values

    def _post(self, swap: Swap, target: Any) -> str:
        return self._ctx.Post(self._as, swap, self._method, target, self._values)

    def Render(self, target: Any) -> str:
        return self._post(INLINE, target)

    def Replace(self, target: Any) -> str:
        return self._post(OUTLINE, target)

    def Append(self, target: Any) -> str:
        return self._post(APPEND, target)

    def Prepend(self, target: Any) -> str:
        return self._post(PREPEND, target)

    def Stop(self) -> str:
        return self._post(NONE, None)


class _SubmitBuilder:
    def __init__(self, ctx: Context, method: Handler, values: Sequence[Mapping[str, Any]]) -> None:
        self._ctx = ctx
        self._method = method
        self._values = values

    def _attr(self, swap: Swap, target: Any) -> Dict[str, str]:
        return {"onsubmit": self._ctx.Post(FORM, swap, self._method, target, self._values)}

    def Render(self, target: Any) -> Dict[str, str]:
        return self._attr(INLINE, target)

    def Replace(self, target: Any) -> Dict[str, str]:
        return self._attr(OUTLINE, target)

    def Append(self, target: Any) -> Dict[str, str]:
        return self._attr(APPEND, target)

    def Prepend(self, target: Any) -> Dict[str, str]:
        return self._attr(PREPEND, target)

    def Stop(self) -> Dict[str, str]:
        return self._attr(NONE, None)


class _DeferBuilder:
    """Returns a skeleton now; the handler's HTML arrives later as a patch."""

    def __init__(self, ctx: Context, method: Handler, values: Sequence[Mapping[str, Any]]) -> None:
        self._ctx = ctx
        self._method = method
        self._values = values
        self._skeleton: Optional[str] = None

    def Skeleton(self, skeleton_type: Optional[str]) -> "_DeferBuilder":
        self._skeleton = skeleton_type
        return self

    def _schedule(self, swap: Swap, target: Any) -> str:
        self._ctx.app.defer(self._method, target_id(target), swap, self._values, self._ctx.sessionID)
        if isinstance(target, Target):
            return target.Skeleton(self._skeleton)
        return Target(target_id(target)).Skeleton(self._skeleton)

    def Render(self, target: Any) -> str:
        return self._schedule(INLINE, target)

    def Replace(self, target: Any) -> str:
        return self._schedule(OUTLINE, target)

    def Append(self, target: Any) -> str:
        return self._schedule(APPEND, target)

    def Prepend(self, target: Any) -> str:
        return self._schedule(PREPEND, target)

    def Stop(self) -> str:
        self._ctx.app.defer(self._method, "", NONE, self._values, self._ctx.sessionID)
        return ""


@dataclass
class _Entry:
    method: ActionType
    path: str
    handler: Handler


_AUTORELOAD_EXTENSIONS = {".py", ".html", ".htm", ".js", ".ts", ".css", ".json"}
_AUTORELOAD_IGNORED_PARTS = {".git", "__pycache__", "node_modules", ".venv", "venv", ".mypy_cache", ".pytest_cache"}


class App:
    def __init__(self, default_language: str, config: Optional[ServerConfig] = None) -> None:
        self.config = config or ServerConfig()
        self.contentId = Target()
        self.Language = default_language
        self.HTMLHead: List[str] = [
            '<meta charset="UTF-8">',
            '<meta name="viewport" content="width=device-width, initial-scale=1.0">',
            '<link rel="stylesheet" href="https://cdnjs.cloudflare.com/ajax/libs/tailwindcss/2.2.19/tailwind.min.css" integrity="sha512-wnea99uKIC3TJF7v4eKk4Y+lMz2Mklv18+r4na2Gn1abDRPPOeef95xTzdwGD9e6zXJBteMIhZ1+68QC5byJZw==" crossorigin="anonymous" referrerpolicy="no-referrer" />',
            _GLOBAL_STYLE,
            srui_client.scripts(self.config.patch_path),
        ]
        self._routes: Dict[Tuple[ActionType, str], _Entry] = {}
        self._paths: Dict[Handler, str] = {}
        self._actions: Dict[Handler, str] = {}
        self._counter = 0
        self.patches = Channel("patch", self.config.stream_queue_size)
        self.live = Channel("live", self.config.stream_queue_size)
        self.executor = DeferredExecutor(self.patches)
        self._error_page = error_page(self.config.live_path)
        self._server: Optional[asyncio.AbstractServer] = None
        self._watcher: Optional["asyncio.Task[None]"] = None
        self._autoreload_watch: List[Path] = []
        self._autoreload_last_signal = 0.0
        if self.config.debug:
            self.Debug(True)
        if self.config.autoreload:
            self.AutoReload(True)

    def HTMLBody(self, css: str) -> str:
        css = Classes(css) or "bg-gray-200"
        return " ".join([
            "<!DOCTYPE html>",
            f'<html lang="{self.Language}" class="{css}">',
            "  <head>__head__</head>",
            f'  <body id="{self.contentId.id}" class="relative">__body__</body>',
            "</html>",
        ])

    def HTML(self, title: str, body_class: str, body: str) -> str:
        head = f"<title>{title}</title>" + "".join(self.HTMLHead)
        html = self.HTMLBody(body_class)
        html = html.replace("__head__", head)
        html = html.replace("__body__", body)
        return Trim(html)

    def Debug(self, enable: bool) -> None:
        self.config = self.config.replace(debug=bool(enable))
        root = logging.getLogger("srui")
        if not enable:
            root.setLevel(logging.WARNING)
            return
        root.setLevel(logging.DEBUG)
        if not root.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("[srui] %(message)s"))
            root.addHandler(handler)

    def AutoReload(self, enable: bool, watch: Union[str, Iterable[str], None] = None) -> None:
        enable = bool(enable)
        if isinstance(watch, str):
            watch = [watch]
        dirs = tuple(watch) if watch is not None else self.config.reload_dirs
        self.config = self.config.replace(autoreload=enable, reload_dirs=dirs)
        self._autoreload_watch = [Path(p) for p in dirs] or [Path.cwd()]
        live = srui_client.live_client(self.config.live_path)
        script = Script(live)
        if enable and script not in self.HTMLHead:
            self.HTMLHead.append(script)
        elif not enable and script in self.HTMLHead:
            self.HTMLHead.remove(script)
        if enable and self._server is not None and (self._watcher is None or self._watcher.done()):
            self._watcher = self._server.get_loop().create_task(self._watch())
        logger.debug("AutoReload %s", "enabled" if enable else "disabled")

    # Action table

    def register(self, method: ActionType, path: str, handler: Handler) -> Handler:
        if not path or not path.strip():
            raise ConfigurationError("Path cannot be empty")
        if handler is None:
            raise ConfigurationError("Handler cannot be None")
        key = (normalize_method(method), normalize_path(path))
        if key in self._routes:
            raise ConfigurationError(f"Path already registered: {key[0]} {key[1]}")
        logger.debug("Registering path: %s %s", key[0], key[1])
        self._routes[key] = _Entry(key[0], key[1], handler)
        self._paths.setdefault(handler, key[1])
        if key[0] == POST:
            self._actions.setdefault(handler, key[1])
        return handler

    def Page(self, path: str, component: Handler) -> Handler:
        return self.register(GET, path, component)

    def Action(self, uid: str, action: Handler) -> Handler:
        if not uid or not uid.strip():
            raise ConfigurationError("Path cannot be empty")
        found = self._routes.get((POST, normalize_path(uid)))
        if found is not None:
            return found.handler
        return self.register(POST, uid, action)

    def Callable(self, callable_fn: Handler) -> Handler:
        if callable_fn is None:
            raise ConfigurationError("Callable cannot be None")
        if callable_fn in self._actions:
            return callable_fn
        base = path = derive_path(callable_fn)
        while (POST, path) in self._routes:
            self._counter += 1
            path = f"{base}-{self._counter}"
        if path != base:
            logger.warning("Action path %s taken, registering %s instead", base, path)
        return self.Action(path, callable_fn)

    def path_of(self, callable_fn: Optional[Handler]) -> Optional[str]:
        if callable_fn is None:
            return None
        return self._actions.get(callable_fn) or self._paths.get(callable_fn)

    def action_path(self, callable_fn: Optional[Handler]) -> Optional[str]:
        """POST path bound to ``callable_fn``; page registrations do not count."""

        if callable_fn is None:
            return None
        return self._actions.get(callable_fn)

    def routes(self) -> List[Tuple[ActionType, str]]:
        return list(self._routes)

    # Dispatch

    async def handle(self, request: Request) -> Response:
        method = (request.method or "").strip().upper()
        if method not in (GET, POST):
            logger.debug("405 %s %s", request.method, request.path)
            return Response(HTTPStatus.METHOD_NOT_ALLOWED, "Method not allowed", headers=[("Allow", "GET, POST")])
        entry = self._routes.get((method, normalize_path(request.path)))
        if entry is None:
            logger.debug("404 %s %s", request.method, request.path)
            return Response(HTTPStatus.NOT_FOUND, "Not found")

        ctx = Context(self, request)
        try:
            text = await _invoke(entry.handler, ctx)
        except Exception:
            logger.exception("500 %s %s", request.method, request.path)
            return Response(HTTPStatus.INTERNAL_SERVER_ERROR, self._error_page)
        if ctx.append:
            text += "".join(ctx.append)
        ctx.res.body = text
        return ctx.res

    def defer(
        self,
        handler: Handler,
        element: str,
        swap: Swap,
        values: Sequence[Mapping[str, Any]] = (),
        session_id: str = "",
    ) -> "asyncio.Task[None]":
        """Run ``handler`` on a fresh context once the current response is out."""

        body = encode_values(values)
        path = self.path_of(handler) or ""

        async def job() -> str:
            ctx = Context(self, Request(POST, path, body=list(body), session_id=session_id))
            text = await _invoke(handler, ctx)
            return text + "".join(ctx.append)

        return self.executor.schedule(job, element, swap)

    def publish(self, target: Any, html: str, swap: Optional[Swap] = None) -> int:
        return self.patches.publish_patch(target_id(target), swap or target_swap(target), html)

    def trigger_reload(self) -> None:
        now = time.monotonic()
        if now - self._autoreload_last_signal < 0.5:
            return
        self._autoreload_last_signal = now
        logger.debug("Reloading %d connected clients", len(self.live))
        self.live.publish(RELOAD)

    # HTTP

    async def _read_body(self, reader: asyncio.StreamReader, length: int) -> Tuple[bytes, bool]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.body_timeout
        data = bytearray()
        while len(data) < length:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            try:
                chunk = await asyncio.wait_for(reader.read(length - len(data)), remaining)
            except asyncio.TimeoutError:
                break
            if not chunk:
                break
            data.extend(chunk)
        return bytes(data), len(data) == length

    async def _read_request(self, reader: asyncio.StreamReader, timeout: float) -> Optional[Tuple[Request, bool, str]]:
        try:
            head = await asyncio.wait_for(reader.readuntil(b"\r\n\r\n"), timeout)
        except (asyncio.IncompleteReadError, asyncio.LimitOverrunError, asyncio.TimeoutError, ConnectionError):
            return None
        request_line, _, rest = head.partition(b"\r\n")
        parts = request_line.decode("latin-1").split()
        if len(parts) != 3:
            return None
        method, target, version = parts
        headers = http.client.parse_headers(io.BytesIO(rest))
        close = version == "HTTP/1.0" or (headers.get("Connection", "") or "").lower() == "close"

        payload = b""
        try:
            length = int(headers.get("Content-Length", "0") or 0)
        except ValueError:
            length = 0
        if length > self.config.max_body_size:
            logger.debug("body of %d bytes exceeds limit, ignoring it", length)
            close = True
        elif length > 0:
            payload, complete = await self._read_body(reader, length)
            if not complete:
                logger.debug("body read cut short (%d/%d bytes)", len(payload), length)
                close = True

        new_sid = ""
        cookies = SimpleCookie()
        try:
            cookies.load(headers.get("Cookie", "") or "")
        except CookieError:
            pass
        morsel = cookies.get(self.config.session_cookie)
        if morsel is not None and morsel.value:
            session_id = morsel.value
        else:
            session_id = new_sid = "sess-" + secrets.token_hex(8)

        url = urlsplit(target)
        request = Request(
            method=method.upper(),
            path=normalize_path(url.path),
            query=url.query,
            headers=headers,
            body=parse_body(payload),
            session_id=session_id,
        )
        return request, close, new_sid

    def _session_header(self, session_id: str) -> Tuple[str, str]:
        return ("Set-Cookie", f"{self.config.session_cookie}={session_id}; Path=/; HttpOnly; SameSite=Lax")

    async def _connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        cfg = self.config
        timeout = cfg.header_timeout
        try:
            while True:
                parsed = await self._read_request(reader, timeout)
                if parsed is None:
                    break
                request, close, new_sid = parsed
                extra = (self._session_header(new_sid),) if new_sid else ()
                if request.method == GET and request.path == normalize_path(cfg.live_path):
                    await self.live.stream(reader, writer, cfg.heartbeat_interval, extra)
                    return
                if request.method == GET and request.path == normalize_path(cfg.patch_path):
                    await self.patches.stream(reader, writer, cfg.heartbeat_interval, extra)
                    return

                response = await self.handle(request)
                if new_sid:
                    response.headers.append(extra[0])
                response.close = response.close or close
                writer.write(response.encode())
                await writer.drain()
                if response.close:
                    break
                timeout = cfg.keep_alive_timeout
        except (ConnectionError, OSError) as exc:
            logger.debug("connection dropped: %s", exc)
        finally:
            with contextlib.suppress(ConnectionError, OSError, RuntimeError):
                writer.close()

    def _snapshot_files(self) -> Dict[str, float]:
        snapshot: Dict[str, float] = {}
        for base in self._autoreload_watch or [Path.cwd()]:
            if not base.exists():
                continue
            for path in base.rglob("*"):
                if any(part in _AUTORELOAD_IGNORED_PARTS for part in path.parts):
                    continue
                suffix = path.suffix.lower()
                if suffix not in _AUTORELOAD_EXTENSIONS:
                    continue
                try:
                    if path.is_dir():
                        continue
                    snapshot[str(path)] = path.stat().st_mtime
                except OSError:
                    continue
        return snapshot

    @staticmethod
    def _files_changed(previous: Mapping[str, float], current: Mapping[str, float]) -> bool:
        if len(previous) != len(current):
            return True
        for key, value in current.items():
            if previous.get(key) != value:
                return True
        return False

    async def _watch(self) -> None:
        previous = await asyncio.to_thread(self._snapshot_files)
        while self.config.autoreload:
            await asyncio.sleep(self.config.reload_interval)
            current = await asyncio.to_thread(self._snapshot_files)
            if self._files_changed(previous, current):
                previous = current
                self.trigger_reload()

    async def start(self, host: Optional[str] = None, port: Optional[int] = None) -> asyncio.AbstractServer:
        host = self.config.host if host is None else host
        port = self.config.port if port is None else port
        self._server = await asyncio.start_server(self._connection, host, port)
        if self.config.autoreload:
            self._watcher = asyncio.get_running_loop().create_task(self._watch())
        logger.debug("Listening on http://%s:%s", host, port)
        return self._server

    async def close(self) -> None:
        if self._watcher is not None:
            self._watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._watcher
            self._watcher = None
        if self._server is not None:
            self._server.close()
            self._server = None

    async def serve(self, host: Optional[str] = None, port: Optional[int] = None) -> None:
        server = await self.start(host, port)
        try:
            async with server:
                await server.serve_forever()
        finally:
            await self.close()

    def Listen(self, port: Optional[int] = None) -> None:
        try:
            asyncio.run(self.serve(port=port))
        except KeyboardInterrupt:
            pass


def MakeApp(default_language: str, config: Optional[ServerConfig] = None) -> App:
    return App(default_language, config)
