"""Operator page: sign in, pick a template, preview and send a push notification."""
from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter(prefix="/admin", tags=["admin"])


_ADMIN_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>Komsai Cup Operator</title>
  <style>
    body { font-family: system-ui, sans-serif; margin: 0; padding: 1rem; background: #0d0520; color: #ede9fe; }
    h1 { font-size: 1.4rem; }
    .box { max-width: 420px; margin: 2rem auto; padding: 1.5rem; background: #1e1236; border-radius: 12px; border: 1px solid #3b2a5c; }
    input, select, textarea { width: 100%; box-sizing: border-box; padding: 0.5rem; margin-bottom: 0.75rem; border: 1px solid #4c3a70; border-radius: 6px; background: #0d0520; color: #ede9fe; font-family: inherit; }
    button { width: 100%; padding: 0.6rem; background: #a78bfa; color: #0d0520; border: none; border-radius: 6px; cursor: pointer; font-weight: 600; }
    button:disabled { opacity: 0.5; cursor: default; }
    .tabs { display: flex; gap: 0.25rem; margin-bottom: 1rem; }
    .tabs button { background: #2e1f4d; color: #c4b5fd; }
    .tabs button.active { background: #a78bfa; color: #0d0520; }
    .preview { padding: 0.75rem; border: 1px solid #3b2a5c; border-radius: 8px; margin-bottom: 0.75rem; font-size: 0.9rem; }
    .preview strong { display: block; }
    .muted { color: #a5a0b8; font-size: 0.85rem; }
    .err { color: #f87171; }
    .form { display: none; }
  </style>
</head>
<body>
  <div id="login" class="box">
    <h1>Komsai Cup Operator</h1>
    <input type="email" id="email" placeholder="Email" />
    <input type="password" id="password" placeholder="Password" />
    <button type="button" onclick="signIn()">Sign in</button>
    <p id="login-err" class="err" style="display:none;"></p>
  </div>
  <div id="panel" class="box" style="display:none;">
    <h1>Send Notification</h1>
    <p class="muted"><span id="count">0</span> subscriber(s)</p>
    <div class="tabs">
      <button type="button" data-kind="event-result" class="active" onclick="setKind(this)">Event Result</button>
      <button type="button" data-kind="standings" onclick="setKind(this)">Standings</button>
      <button type="button" data-kind="custom" onclick="setKind(this)">Custom</button>
    </div>
    <div class="form" id="form-event-result" style="display:block;">
      <input id="er-event" placeholder="Event (e.g. Valorant)" oninput="preview()" />
      <select id="er-house" onchange="preview()"><option value="">Winning house</option></select>
      <select id="er-place" onchange="preview()">
        <option value="">Place</option><option>1st</option><option>2nd</option><option>3rd</option><option>4th</option>
      </select>
      <select id="er-day" onchange="preview()">
        <option value="">Day</option><option>1</option><option>2</option><option>3</option><option>4</option><option>5</option>
      </select>
    </div>
    <div class="form" id="form-standings">
      <input id="st-note" maxlength="80" placeholder="Custom note (optional)" oninput="preview()" />
    </div>
    <div class="form" id="form-custom">
      <input id="cu-title" maxlength="50" placeholder="Title" oninput="preview()" />
      <textarea id="cu-body" maxlength="200" rows="3" placeholder="Message" oninput="preview()"></textarea>
      <select id="cu-tag" onchange="preview()"><option value="reminders">Reminders</option><option value="results">Results</option></select>
    </div>
    <div class="preview" id="preview"><span class="muted">Fill in the fields above to see a preview.</span></div>
    <button type="button" id="send" disabled onclick="send()">Send</button>
    <p id="send-msg" class="muted"></p>
  </div>
  <script>
    var kind = 'event-result', sendable = false, subscribers = 0, busy = false;
    function token() { return sessionStorage.getItem('komsai_operator_token'); }
    function headers() { return { 'Content-Type': 'application/json', 'Authorization': 'Bearer ' + token() }; }
    function api(path, opts) {
      opts = opts || {}; opts.headers = headers();
      return fetch(path, opts).then(function(r) { if (!r.ok) throw new Error(r.status + ' ' + r.statusText); return r.json(); });
    }
    function signIn() {
      var body = JSON.stringify({ email: document.getElementById('email').value.trim(), password: document.getElementById('password').value });
      fetch('/auth/login', { method: 'POST', headers: { 'Content-Type': 'application/json' }, body: body })
        .then(function(r) { if (!r.ok) throw new Error('Sign-in failed (' + r.status + ')'); return r.json(); })
        .then(function(d) { sessionStorage.setItem('komsai_operator_token', d.access_token); showPanel(); })
        .catch(function(e) { var el = document.getElementById('login-err'); el.textContent = e.message; el.style.display = 'block'; });
    }
    function showPanel() {
      document.getElementById('login').style.display = 'none';
      document.getElementById('panel').style.display = 'block';
      api('/push/subscriptions/count').then(function(d) { subscribers = d.count; document.getElementById('count').textContent = d.count; refreshButton(); });
      fetch('/leaderboard').then(function(r) { return r.json(); }).then(function(houses) {
        var sel = document.getElementById('er-house');
        houses.forEach(function(h) { var o = document.createElement('option'); o.value = h.id; o.textContent = h.name; sel.appendChild(o); });
      });
      preview();
    }
    function setKind(btn) {
      kind = btn.getAttribute('data-kind');
      document.querySelectorAll('.tabs button').forEach(function(b) { b.classList.toggle('active', b === btn); });
      document.querySelectorAll('.form').forEach(function(f) { f.style.display = f.id === 'form-' + kind ? 'block' : 'none'; });
      preview();
    }
    function fields() {
      var day = document.getElementById('er-day').value, house = document.getElementById('er-house').value;
      return {
        kind: kind,
        title: document.getElementById('cu-title').value,
        body: document.getElementById('cu-body').value,
        tag: document.getElementById('cu-tag').value,
        note: document.getElementById('st-note').value,
        event: document.getElementById('er-event').value,
        house_id: house ? Number(house) : null,
        place: document.getElementById('er-place').value,
        day: day ? Number(day) : null
      };
    }
    function escape(s) { if (!s) return ''; var d = document.createElement('div'); d.textContent = s; return d.innerHTML; }
    function refreshButton() { document.getElementById('send').disabled = busy || !sendable || subscribers === 0; }
    function preview() {
      api('/push/compose', { method: 'POST', body: JSON.stringify(fields()) }).then(function(d) {
        sendable = d.sendable;
        document.getElementById('preview').innerHTML = '<strong>' + escape(d.payload.title) + '</strong>' + escape(d.payload.body);
        refreshButton();
      }).catch(function() { sendable = false; refreshButton(); });
    }
    function send() {
      busy = true; refreshButton();
      document.getElementById('send-msg').textContent = 'Sending to ' + subscribers + ' subscriber(s)...';
      api('/push/compose/send', { method: 'POST', body: JSON.stringify(fields()) })
        .then(function() { document.getElementById('send-msg').textContent = 'Sent.'; })
        .catch(function(e) { document.getElementById('send-msg').innerHTML = '<span class="err">' + escape(e.message) + '</span>'; })
        .finally(function() { busy = false; refreshButton(); });
    }
    if (token()) { showPanel(); }
  </script>
</body>
</html>"""


@router.get("", response_class=HTMLResponse)
@router.get("/", response_class=HTMLResponse)
def admin_page():
    """Static page; every API call it makes carries the operator's bearer token."""
    return _ADMIN_HTML
