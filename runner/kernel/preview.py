"""
Runner Kernel - Preview Page

Generates a standalone HTML page for a RenderOutcome.

  component  the static markup is shown first, then the same executable
             program is re-mounted over it against a browser-side `__host`
             built from the React, Recharts and lucide-react UMD bundles
  markup     the sanitized svg, inline
  diagram    the compiled svg, inline
  failure    category, message and hint

The page is a chevron (mustache) template; no build step is needed.
"""

from __future__ import annotations

import chevron

from runner.kernel.types import RenderableHandle, RenderOutcome, RenderState

REACT_VERSION = "18.3.1"
RECHARTS_VERSION = "2.12.7"
LUCIDE_VERSION = "0.263.1"
PROP_TYPES_VERSION = "15.8.1"

SCRIPT_URLS: tuple[str, ...] = (
    f"https://unpkg.com/react@{REACT_VERSION}/umd/react.production.min.js",
    f"https://unpkg.com/react-dom@{REACT_VERSION}/umd/react-dom.production.min.js",
    f"https://unpkg.com/prop-types@{PROP_TYPES_VERSION}/prop-types.min.js",
    f"https://unpkg.com/recharts@{RECHARTS_VERSION}/umd/Recharts.js",
    f"https://unpkg.com/lucide-react@{LUCIDE_VERSION}/dist/umd/lucide-react.js",
)

# Same contract as the in-process host: React, Icons, Charts, isComponentShaped, mount
BROWSER_HOST = """
var __host = (function () {
  function isComponentShaped(value, producesElements) {
    if (typeof value !== 'function') { return false; }
    return !!producesElements || !!(value.prototype && value.prototype.isReactComponent);
  }
  function mount(component) {
    if (!component) { return { ok: false, reason: 'no_component' }; }
    ReactDOM.createRoot(document.getElementById('root')).render(React.createElement(component));
    return { ok: true, component: component.displayName || component.name || 'Component' };
  }
  return {
    React: React,
    Icons: window.LucideReact || {},
    Charts: window.Recharts || {},
    isComponentShaped: isComponentShaped,
    mount: mount
  };
})();
"""

PREVIEW_CSS = """
*, *::before, *::after { box-sizing: border-box; }
body { margin: 0; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; background: #fff; color: #1f2937; }
.artifact-preview { padding: 16px; }
.artifact-svg #root svg, .artifact-mermaid #root svg { display: block; max-width: 100%; height: auto; margin: 0 auto; }
.artifact-error { border: 1px solid #fca5a5; background: #fef2f2; border-radius: 8px; padding: 12px 16px; }
.artifact-error h2 { margin: 0 0 8px; font-size: 15px; color: #b91c1c; }
.artifact-error .message { margin: 0 0 8px; font-family: ui-monospace, Menlo, monospace; font-size: 13px; white-space: pre-wrap; }
.artifact-error .hint { margin: 0; font-size: 13px; color: #6b7280; }
"""

PREVIEW_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{title}}</title>
{{#component}}
{{#scripts}}
<script crossorigin src="{{.}}"></script>
{{/scripts}}
{{/component}}
<style>
{{{css}}}
</style>
</head>
<body>
<main class="artifact-preview artifact-{{kind}}" data-state="{{state}}">
{{#failure}}
<section class="artifact-error" role="alert">
<h2>{{category}}</h2>
<p class="message">{{message}}</p>
<p class="hint">{{hint}}</p>
</section>
{{/failure}}
<div id="root">{{{markup}}}</div>
</main>
{{#component}}
<script>
{{{host}}}
try {
{{{program}}}
} catch (err) {
  console.error('Artifact failed to mount:', err);
}
</script>
{{/component}}
</body>
</html>"""


def _script_safe(source: str) -> str:
    """Keep inline script text from closing its own element."""
    return source.replace("</", "<\\/")


def render_preview_page(outcome: RenderOutcome, title: str | None = None) -> str:
    """
    Render a complete HTML page for a finished render pass.

    Args:
        outcome: terminal value of RenderDispatcher.render
        title: page title, defaults to "Artifact"

    Returns:
        Complete HTML string
    """
    component = None
    if outcome.state is RenderState.RENDERED and isinstance(outcome.output, RenderableHandle):
        component = {
            "scripts": list(SCRIPT_URLS),
            "host": BROWSER_HOST,
            "program": _script_safe(outcome.output.program),
        }

    context = {
        "title": title or "Artifact",
        "css": PREVIEW_CSS,
        "kind": outcome.kind.value if outcome.kind else "unknown",
        "state": outcome.state.value,
        "markup": (outcome.markup or "") if outcome.state is RenderState.RENDERED else "",
        "failure": outcome.failure.to_dict() if outcome.failure else None,
        "component": component,
    }
    return chevron.render(PREVIEW_TEMPLATE, context)
