"""Status and configuration page served at ``/`` and ``/configure``."""

from __future__ import annotations

import html
import json
from typing import cast

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from germandub.interfaces.app_state import AppState

router = APIRouter(tags=["landing"])

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>German Dub Addon</title>
  <style>
    body {{ font-family: sans-serif; max-width: 720px; margin: 40px auto;
           background: #1e1e2e; color: #eee; }}
    .card {{ background: rgba(255,255,255,0.08); padding: 16px 20px;
            border-radius: 10px; margin: 20px 0; }}
    .status {{ padding: 10px; border-radius: 5px; background: {status_bg}; }}
    code {{ display: block; padding: 10px; background: rgba(0,0,0,0.3);
           word-break: break-all; border-radius: 5px; }}
    input {{ width: 100%; padding: 8px; box-sizing: border-box; }}
    a {{ color: #4a9eff; }}
  </style>
</head>
<body>
  <h1>&#127465;&#127466; German Dub Addon</h1>
  <p>Stream German dubbed content from s.to via Real-Debrid.</p>

  <div class="card">
    <h3>Status</h3>
    <div class="status">Real-Debrid API key configured: {configured}</div>
  </div>

  <div class="card">
    <h3>Install in Stremio</h3>
    <p>Add this URL in Stremio:</p>
    <code>{manifest_url}</code>
    <p><a href="{install_url}">Install addon</a></p>
  </div>

  <div class="card">
    <h3>Use your own Real-Debrid key</h3>
    <p>Get a key from
      <a href="https://real-debrid.com/apitoken" target="_blank">
        real-debrid.com/apitoken</a>.
    </p>
    <input id="rdApiKey" type="password" placeholder="Real-Debrid API key">
    <p><button id="build">Build install URL</button></p>
    <code id="configured-url"></code>
    <p><a id="configured-install" href="#"></a></p>
  </div>

  <script>
    document.getElementById("build").addEventListener("click", function () {{
      var key = document.getElementById("rdApiKey").value.trim();
      if (!key) {{ return; }}
      var segment = btoa(JSON.stringify({{rdApiKey: key}}))
        .replace(/\\+/g, "-").replace(/\\//g, "_").replace(/=+$/, "");
      var url = {base_url_js} + "/" + segment + "/manifest.json";
      document.getElementById("configured-url").textContent = url;
      var link = document.getElementById("configured-install");
      link.href = url.replace(/^https?:/, "stremio:");
      link.textContent = "Install configured addon";
    }});
  </script>
</body>
</html>
"""


def render_landing_page(*, base_url: str, configured: bool) -> str:
    """Render the status page for the service reachable at *base_url*."""
    base_url = base_url.rstrip("/")
    manifest_url = f"{base_url}/manifest.json"
    install_url = "stremio:" + manifest_url.split(":", 1)[1]
    return _PAGE.format(
        status_bg="rgba(0,255,0,0.2)" if configured else "rgba(255,0,0,0.2)",
        configured="yes" if configured else "no",
        manifest_url=html.escape(manifest_url),
        install_url=html.escape(install_url),
        base_url_js=json.dumps(base_url).replace("</", "<\\/"),
    )


async def _landing(request: Request) -> HTMLResponse:
    state = cast(AppState, request.app.state)
    page = render_landing_page(
        base_url=str(request.base_url),
        configured=bool(state.config.debrid.rd_api_key),
    )
    return HTMLResponse(page)


@router.get("/", response_class=HTMLResponse)
async def landing(request: Request) -> HTMLResponse:
    """Status page with install instructions."""
    return await _landing(request)


@router.get("/configure", response_class=HTMLResponse)
async def configure(request: Request) -> HTMLResponse:
    """Configuration page Stremio opens for configurable addons."""
    return await _landing(request)
