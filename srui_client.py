"""Browser-side dispatcher injected into every page ``<head>``.

The request builders in :mod:`srui_server` compile to calls of ``__post``,
``__submit`` and ``__load``; ``__patch`` keeps an EventSource open on the
patch stream and ``__live`` (development only) reloads the page after a
server restart.
"""

from __future__ import annotations

import json
from typing import Iterable

from srui import Script, Trim

LOADER = Trim(
    """
    (function(){
        if (window.__loader) return;
        window.__loader = (function(){
            var S = { count: 0, t: 0, el: null };
            function build() {
                var overlay = document.createElement('div');
                overlay.className = 'fixed inset-0 z-50 flex items-center justify-center transition-opacity opacity-0';
                try { overlay.style.backdropFilter = 'blur(3px)'; } catch(_){ }
                try { overlay.style.background = 'rgba(255,255,255,0.28)'; } catch(_){ }
                var badge = document.createElement('div');
                badge.className = 'absolute top-3 left-3 flex items-center gap-2 rounded-full px-3 py-1 text-white shadow-lg';
                badge.style.background = 'linear-gradient(135deg, #6366f1, #22d3ee)';
                var label = document.createElement('span');
                label.className = 'font-semibold tracking-wide';
                label.textContent = 'Loading…';
                badge.appendChild(label);
                overlay.appendChild(badge);
                document.body.appendChild(overlay);
                try { requestAnimationFrame(function(){ overlay.style.opacity = '1'; }); } catch(_){ }
                return overlay;
            }
            function stop() {
                if (S.count > 0) { S.count = S.count - 1; }
                if (S.count !== 0) { return; }
                if (S.t) { try { clearTimeout(S.t); } catch(_){ } S.t = 0; }
                if (S.el) {
                    var el = S.el; S.el = null;
                    try { el.style.opacity = '0'; } catch(_){ }
                    setTimeout(function(){ try { if (el.parentNode) { el.parentNode.removeChild(el); } } catch(_){ } }, 160);
                }
            }
            function start() {
                S.count = S.count + 1;
                if (S.el == null && !S.t) {
                    S.t = setTimeout(function(){ S.t = 0; if (S.el == null) { S.el = build(); } }, 120);
                }
                return { stop: stop };
            }
            return { start: start };
        })();
    })();
    """
)

OFFLINE = Trim(
    """
    (function(){
        if (window.__offline) return;
        window.__offline = (function(){
            function show(){
                if (document.getElementById('__offline__')) { return; }
                var overlay = document.createElement('div');
                overlay.id = '__offline__';
                overlay.style.position = 'fixed';
                overlay.style.inset = '0';
                overlay.style.zIndex = '60';
                overlay.style.pointerEvents = 'none';
                try { overlay.style.background = 'rgba(255,255,255,0.18)'; } catch(_){ }
                var badge = document.createElement('div');
                badge.className = 'absolute top-3 left-3 flex items-center gap-2 rounded-full px-3 py-1 text-white shadow-lg';
                badge.style.background = 'linear-gradient(135deg, #ef4444, #ec4899)';
                badge.textContent = 'Offline - trying to reconnect…';
                overlay.appendChild(badge);
                document.body.appendChild(overlay);
            }
            function hide(){
                var o = document.getElementById('__offline__');
                if (o && o.parentNode) { o.parentNode.removeChild(o); }
            }
            return { show: show, hide: hide };
        })();
        try { window.addEventListener('online', function(){ window.__offline.hide(); }); } catch(_){ }
        try { window.addEventListener('offline', function(){ window.__offline.show(); }); } catch(_){ }
    })();
    """
)

ERROR = Trim(
    """
    (function(){
        if (window.__error) return;
        window.__error = function(message){
            try {
                var box = document.getElementById('__messages__');
                if (box == null) {
                    box = document.createElement('div');
                    box.id = '__messages__';
                    box.style.position = 'fixed';
                    box.style.top = '0';
                    box.style.right = '0';
                    box.style.padding = '8px';
                    box.style.zIndex = '9999';
                    box.style.pointerEvents = 'none';
                    document.body.appendChild(box);
                }
                var n = document.getElementById('__error_toast__');
                if (!n) {
                    n = document.createElement('div');
                    n.id = '__error_toast__';
                    n.style.display = 'flex';
                    n.style.alignItems = 'center';
                    n.style.gap = '10px';
                    n.style.padding = '12px 16px';
                    n.style.margin = '8px';
                    n.style.borderRadius = '12px';
                    n.style.minWidth = '340px';
                    n.style.background = '#fee2e2';
                    n.style.color = '#991b1b';
                    n.style.borderLeft = '4px solid #dc2626';
                    n.style.pointerEvents = 'auto';
                    var span = document.createElement('span');
                    span.id = '__error_text__';
                    n.appendChild(span);
                    var btn = document.createElement('button');
                    btn.textContent = 'Reload';
                    btn.style.background = '#991b1b';
                    btn.style.color = '#fff';
                    btn.style.padding = '6px 10px';
                    btn.style.borderRadius = '8px';
                    btn.onclick = function(){ try { window.location.reload(); } catch(_){} };
                    n.appendChild(btn);
                    box.appendChild(n);
                }
                var text = document.getElementById('__error_text__');
                if (text) { text.textContent = message || 'Something went wrong ...'; }
            } catch (_) { try { alert(message || 'Something went wrong ...'); } catch(__){} }
        };
    })();
    """
)

EXEC = Trim(
    """
    function __exec(html) {
        var doc = new DOMParser().parseFromString(html, 'text/html');
        var scripts = [].slice.call(doc.head.querySelectorAll('script')).concat([].slice.call(doc.body.querySelectorAll('script')));
        for (var i = 0; i < scripts.length; i++) {
            var s = document.createElement('script');
            s.textContent = scripts[i].textContent;
            document.body.appendChild(s);
        }
        return doc;
    }
    """
)

SWAP = Trim(
    """
    function __swap(swap, target_id, html) {
        if (swap === 'none' || !target_id) { return true; }
        var el = document.getElementById(target_id);
        if (el == null) { return false; }
        if (swap === 'inline') { el.innerHTML = html; }
        else if (swap === 'outline') { el.outerHTML = html; }
        else if (swap === 'append') { el.insertAdjacentHTML('beforeend', html); }
        else if (swap === 'prepend') { el.insertAdjacentHTML('afterbegin', html); }
        return true;
    }
    """
)

POST = Trim(
    """
    function __post(event, swap, target_id, path, body) {
        try { if (event && event.preventDefault) { event.preventDefault(); } } catch(_){ }
        var L = __loader.start();
        fetch(path, { method: 'POST', headers: { 'Content-Type': 'application/json' }, body: JSON.stringify(body || []) })
            .then(function(resp){ if (!resp.ok) { throw new Error('HTTP ' + resp.status); } return resp.text(); })
            .then(function(html){
                __swap(swap, target_id, html);
                __exec(html);
                try { __offline.hide(); } catch(_){ }
            })
            .catch(function(){
                try { if (navigator.onLine === false) { __offline.show(); } } catch(_){ }
                try { __error('Something went wrong ...'); } catch(_){ }
            })
            .finally(function(){ L.stop(); });
        return false;
    }
    """
)

SUBMIT = Trim(
    """
    function __submit(event, swap, target_id, path, values) {
        try { if (event && event.preventDefault) { event.preventDefault(); } } catch(_){ }
        var el = event ? (event.currentTarget || event.target) : null;
        var form = null;
        if (el && el.tagName && el.tagName.toLowerCase() === 'form') { form = el; }
        else if (el) { form = el.form || (el.closest ? el.closest('form') : null); }
        var body = (values || []).slice();
        var found = [];
        if (form) {
            found = [].slice.call(form.elements || []);
            var id = form.getAttribute('id');
            if (id) {
                var extra = [].slice.call(document.querySelectorAll('[form="' + id + '"][name]'));
                for (var k = 0; k < extra.length; k++) { if (found.indexOf(extra[k]) < 0) { found.push(extra[k]); } }
            }
        }
        for (var i = 0; i < found.length; i++) {
            var item = found[i];
            var name = item.getAttribute ? item.getAttribute('name') : null;
            if (!name) { continue; }
            var type = (item.getAttribute('type') || '').toLowerCase();
            if (type === 'radio' && !item.checked) { continue; }
            if (type === 'submit' || type === 'button') { continue; }
            var value = item.value;
            if (type === 'checkbox') { value = String(item.checked); }
            body = body.filter(function(b){ return b.name !== name; });
            body.push({ name: name, type: type || 'string', value: value == null ? '' : String(value) });
        }
        return __post(event, swap, target_id, path, body);
    }
    """
)

LOAD = Trim(
    """
    function __load(event, href) {
        try { if (event && event.preventDefault) { event.preventDefault(); } } catch(_){ }
        var L = __loader.start();
        fetch(href, { method: 'GET' })
            .then(function(resp){ if (!resp.ok) { throw new Error('HTTP ' + resp.status); } return resp.text(); })
            .then(function(html){
                var doc = new DOMParser().parseFromString(html, 'text/html');
                document.title = doc.title;
                document.body.innerHTML = doc.body.innerHTML;
                __exec(html);
                try { window.history.pushState({}, doc.title, href); } catch(_){ }
                try { window.scrollTo(0, 0); } catch(_){ }
            })
            .catch(function(){ try { __error('Something went wrong ...'); } catch(_){ } })
            .finally(function(){ L.stop(); });
        return false;
    }
    """
)

_PATCH = Trim(
    """
    (function(){
        if (window.__patch) return;
        window.__patch = (function(){
            var source = null;
            function apply(patch){
                if (!patch || !patch.id) { return; }
                var html = String(patch.html || '');
                if (__swap(String(patch.swap || 'inline'), String(patch.id), html)) { __exec(html); }
            }
            function connect(){
                try { if (source) { source.close(); } } catch(_){ }
                source = new EventSource(%(path)s);
                source.addEventListener('patch', function(e){
                    try { apply(JSON.parse(e.data)); } catch(_){ }
                });
                source.onerror = function(){
                    try { source.close(); } catch(_){ }
                    setTimeout(connect, 1000);
                };
            }
            if (document.readyState === 'loading') { document.addEventListener('DOMContentLoaded', connect); } else { connect(); }
            window.addEventListener('beforeunload', function(){ try { source.close(); } catch(_){ } });
            return { apply: apply };
        })();
    })();
    """
)

_LIVE = Trim(
    """
    (function(){
        if (window.__live) return;
        window.__live = true;
        var first = true;
        var offline = 0;
        function connect(){
            clearTimeout(offline);
            offline = setTimeout(function(){ try { __offline.show(); } catch(_){ } }, 300);
            var es = new EventSource(%(path)s);
            es.onopen = function(){
                clearTimeout(offline);
                try { __offline.hide(); } catch(_){ }
                if (!first) { try { location.reload(); } catch(_){ } }
                first = false;
            };
            es.addEventListener('reload', function(){ try { location.reload(); } catch(_){ } });
            es.onerror = function(){
                try { es.close(); } catch(_){ }
                setTimeout(connect, 1000);
            };
        }
        if (document.readyState === 'loading') { document.addEventListener('DOMContentLoaded', connect); } else { connect(); }
    })();
    """
)


def patch_client(path: str) -> str:
    return _PATCH % {"path": json.dumps(path)}


def live_client(path: str) -> str:
    return _LIVE % {"path": json.dumps(path)}


def recovery_script(live_path: str) -> str:
    """Reload once the server answers on the live stream again."""

    return Trim(
        """
        (function(){
            function connect(){
                var es = new EventSource(%(path)s);
                es.onopen = function(){ try { location.reload(); } catch(_){ } };
                es.onerror = function(){ try { es.close(); } catch(_){ } setTimeout(connect, 1000); };
            }
            try { connect(); } catch(_){ setTimeout(function(){ location.reload(); }, 2000); }
        })();
        """
        % {"path": json.dumps(live_path)}
    )


def scripts(patch_path: str, live_path: str = "", autoreload: bool = False) -> str:
    sources: Iterable[str] = [LOADER, OFFLINE, ERROR, EXEC, SWAP, POST, SUBMIT, LOAD, patch_client(patch_path)]
    if autoreload:
        sources = [*sources, live_client(live_path)]
    return Script("".join(sources))
