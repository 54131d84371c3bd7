"""Browser forms: one minimal page per service, served at GET /.

Each page posts JSON to its own service with fetch() and renders the
JSON response verbatim.  Same-origin, so no CORS round trip is needed
when the form is used from the service itself.

Inline HTML keeps the services dependency-free (no Jinja, no static
files); the pages are a debugging aid, not a product UI.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

issuance_form_router = APIRouter(tags=["forms"])
verification_form_router = APIRouter(tags=["forms"])

_PAGE_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{title}</title>
  <style>
    * {{ margin: 0; padding: 0; box-sizing: border-box; }}
    body {{
      font-family: system-ui, -apple-system, sans-serif;
      display: flex; justify-content: center; align-items: center;
      min-height: 100vh; background: #f5f5f5;
    }}
    .card {{
      background: #fff; padding: 2rem; border-radius: 8px;
      box-shadow: 0 2px 8px rgba(0,0,0,.1); width: 420px;
    }}
    h1 {{ font-size: 1.25rem; margin-bottom: 1.5rem; text-align: center; }}
    label {{ display: block; font-size: .85rem; margin-bottom: .25rem; }}
    input, textarea {{
      width: 100%; padding: .5rem; margin-bottom: 1rem;
      border: 1px solid #ccc; border-radius: 4px; font-size: .95rem;
    }}
    textarea {{ font-family: ui-monospace, monospace; min-height: 5rem; }}
    button {{
      width: 100%; padding: .6rem; background: #111; color: #fff;
      border: none; border-radius: 4px; font-size: .95rem; cursor: pointer;
    }}
    button:disabled {{ background: #777; cursor: wait; }}
    pre {{
      margin-top: 1rem; padding: .75rem; background: #f0f0f0;
      border-radius: 4px; font-size: .8rem; white-space: pre-wrap;
    }}
    .error {{ color: #c00; }}
  </style>
</head>
<body>
  <div class="card">
    <h1>{title}</h1>
    <form id="credential-form">
{fields}
      <button type="submit">{button}</button>
    </form>
    <pre id="result" hidden></pre>
  </div>
  <script>
    const form = document.getElementById("credential-form");
    const out = document.getElementById("result");
    form.addEventListener("submit", async (event) => {{
      event.preventDefault();
      const button = form.querySelector("button");
      button.disabled = true;
      out.hidden = true;
      out.className = "";
      try {{
        const payload = buildPayload(new FormData(form));
        const resp = await fetch("{action}", {{
          method: "POST",
          headers: {{ "Content-Type": "application/json" }},
          body: JSON.stringify(payload),
        }});
        const data = await resp.json();
        out.textContent = resp.status + "\\n" + JSON.stringify(data, null, 2);
        if (!resp.ok) out.className = "error";
      }} catch (err) {{
        out.textContent = String(err);
        out.className = "error";
      }} finally {{
        out.hidden = false;
        button.disabled = false;
      }}
    }});
{build_payload}
  </script>
</body>
</html>
"""

_ISSUE_FIELDS = """\
      <label for="id">Credential ID</label>
      <input id="id" name="id" placeholder="cred-2025-06" required autofocus>
      <label for="holder">Holder</label>
      <input id="holder" name="holder" placeholder="Jane Doe">
      <label for="metadata">Metadata (JSON object)</label>
      <textarea id="metadata" name="metadata">{}</textarea>"""

_ISSUE_BUILD_PAYLOAD = """\
    function buildPayload(data) {
      const metadata = JSON.parse(data.get("metadata") || "{}");
      return {
        id: data.get("id"),
        holder: data.get("holder") || "Unknown Holder",
        metadata: metadata,
      };
    }"""

_VERIFY_FIELDS = """\
      <label for="id">Credential ID</label>
      <input id="id" name="id" placeholder="cred-2025-06" required autofocus>"""

_VERIFY_BUILD_PAYLOAD = """\
    function buildPayload(data) {
      return { id: data.get("id") };
    }"""

ISSUE_PAGE = _PAGE_HTML.format(
    title="Issue Credential",
    fields=_ISSUE_FIELDS,
    button="Issue",
    action="/issue",
    build_payload=_ISSUE_BUILD_PAYLOAD,
)

VERIFY_PAGE = _PAGE_HTML.format(
    title="Verify Credential",
    fields=_VERIFY_FIELDS,
    button="Verify",
    action="/verify",
    build_payload=_VERIFY_BUILD_PAYLOAD,
)


@issuance_form_router.get("/", include_in_schema=False)
def issuance_form() -> HTMLResponse:
    return HTMLResponse(ISSUE_PAGE)


@verification_form_router.get("/", include_in_schema=False)
def verification_form() -> HTMLResponse:
    return HTMLResponse(VERIFY_PAGE)
