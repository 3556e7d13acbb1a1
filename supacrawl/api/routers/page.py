"""The single page: URL input, Scrape/Crawl buttons, playback, copy, error banner, JSON dump.

All behaviour lives in the JSON API; the script only calls it and re-renders
from the returned session snapshot.  Ctrl/Cmd+Shift+C starts a crawl.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter()

PAGE_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Supacrawl</title>
  <style>
    body { margin: 0; min-height: 100vh; font-family: system-ui, sans-serif;
           background: linear-gradient(135deg, #0f172a, #1e293b, #0f172a); color: #e2e8f0; }
    main { max-width: 56rem; margin: 0 auto; padding: 4rem 1rem; }
    h1 { text-align: center; font-size: 3rem; margin: 0;
         background: linear-gradient(90deg, #60a5fa, #34d399);
         -webkit-background-clip: text; color: transparent; }
    .tagline { text-align: center; color: #94a3b8; margin-bottom: 3rem; }
    .card { background: rgba(255,255,255,.05); border: 1px solid rgba(255,255,255,.1);
            border-radius: 1rem; padding: 2rem; }
    input { width: 100%; box-sizing: border-box; padding: 1rem; border-radius: .75rem;
            border: 1px solid #334155; background: rgba(30,41,59,.5); color: #f1f5f9; }
    .actions { display: grid; grid-template-columns: 1fr 1fr; gap: 1rem; margin: 1.5rem 0; }
    button { padding: 1rem; border: 0; border-radius: .75rem; color: white;
             font-weight: 600; cursor: pointer; }
    button:disabled { opacity: .5; cursor: not-allowed; }
    #scrape { background: #3b82f6; } #crawl { background: #10b981; }
    .tool { background: transparent; color: #94a3b8; padding: .5rem; }
    .error { border-radius: .75rem; background: rgba(239,68,68,.1);
             border: 1px solid rgba(239,68,68,.2); padding: 1rem; color: #f87171; }
    .results-header { display: flex; justify-content: space-between; align-items: center; }
    pre { padding: 1rem; background: rgba(30,41,59,.9); border-radius: .75rem;
          overflow: auto; font-size: .85rem; color: #cbd5e1; }
    [hidden] { display: none !important; }
  </style>
</head>
<body>
<main>
  <h1>Supacrawl</h1>
  <p class="tagline">Extract clean, structured data from any website for LLMs</p>
  <div class="card">
    <input id="url" type="url" placeholder="Enter URL to scrape" aria-label="URL to scrape">
    <div class="actions">
      <button id="scrape" aria-label="Scrape single URL">Scrape URL</button>
      <button id="crawl" aria-label="Crawl entire website">Crawl Website</button>
    </div>
    <p id="progress" hidden></p>
    <div id="error" class="error" role="alert" hidden></div>
    <section id="results" hidden>
      <div class="results-header">
        <h2>Results</h2>
        <div>
          <button id="speak" class="tool" aria-label="Convert to speech">Listen</button>
          <button id="copy" class="tool" aria-label="Copy results">Copy</button>
        </div>
      </div>
      <pre id="resultsText"></pre>
    </section>
    <audio id="player" hidden></audio>
  </div>
</main>
<script>
  const $ = (id) => document.getElementById(id);
  let state = null;
  let pollTimer = null;

  async function api(method, path, body) {
    const response = await fetch(path, {
      method,
      headers: body ? {'Content-Type': 'application/json'} : {},
      body: body ? JSON.stringify(body) : undefined,
    });
    const data = await response.json();
    if (!response.ok) {
      const detail = typeof data.detail === 'string' ? data.detail : 'Request failed';
      render(Object.assign({}, state, {error: detail}));
      return null;
    }
    render(data);
    return data;
  }

  function render(next) {
    const previousAudio = state && state.audio_url;
    state = next;
    const url = $('url').value.trim();
    $('scrape').disabled = state.busy || !url;
    $('crawl').disabled = state.busy || !url;
    $('scrape').textContent = state.busy ? 'Processing...' : 'Scrape URL';
    $('crawl').textContent = state.busy ? 'Processing...' : 'Crawl Website';
    $('error').hidden = !state.error;
    $('error').textContent = state.error || '';
    $('progress').hidden = !state.progress;
    if (state.progress) {
      $('progress').textContent =
        `Crawling: ${state.progress.status} (${state.progress.completed}/${state.progress.total})`;
    }
    $('results').hidden = !state.result;
    $('resultsText').textContent = state.result ? JSON.stringify(state.result, null, 2) : '';
    $('speak').disabled = state.busy;
    $('speak').textContent = state.is_playing ? 'Stop' : 'Listen';

    const player = $('player');
    if (state.audio_url && state.audio_url !== previousAudio) {
      player.src = state.audio_url;
      player.play().catch(() => audioEvent('error'));
    } else if (!state.audio_url && !player.paused) {
      player.pause();
    }

    if (state.busy && !pollTimer) {
      pollTimer = setInterval(() => api('GET', '/api/session'), 1000);
    } else if (!state.busy && pollTimer) {
      clearInterval(pollTimer);
      pollTimer = null;
    }
  }

  function audioEvent(kind) {
    if (!state || !state.audio_url) return;
    const id = state.audio_url.split('/').pop();
    api('POST', `/api/audio/${id}/${kind}`);
  }

  function crawl() {
    const url = $('url').value.trim();
    if (url && !state.busy) api('POST', '/api/crawl', {url});
  }

  $('url').addEventListener('input', () => render(state));
  $('scrape').addEventListener('click', () => api('POST', '/api/scrape', {url: $('url').value.trim()}));
  $('crawl').addEventListener('click', crawl);
  $('speak').addEventListener('click', () => api('POST', state.is_playing ? '/api/stop' : '/api/speak'));
  $('copy').addEventListener('click', () => {
    const text = $('resultsText').textContent;
    if (text) navigator.clipboard.writeText(text).catch((err) => console.error('Failed to copy text:', err));
  });
  $('player').addEventListener('ended', () => audioEvent('ended'));
  $('player').addEventListener('error', () => { if ($('player').src) audioEvent('error'); });
  document.addEventListener('keydown', (event) => {
    if ((event.ctrlKey || event.metaKey) && event.shiftKey && event.key.toLowerCase() === 'c') {
      event.preventDefault();
      crawl();
    }
  });

  api('GET', '/api/session').then((data) => { if (data && data.url) $('url').value = data.url; render(state); });
</script>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index() -> HTMLResponse:
    return HTMLResponse(PAGE_HTML)
