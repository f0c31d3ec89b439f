"""
Runner Kernel -- Preview Page Tests
"""

import re

from runner.kernel.preview import SCRIPT_URLS, render_preview_page
from runner.kernel.types import (
    ArtifactKind,
    DetectionResult,
    FailureCategory,
    InferredKind,
    RenderableHandle,
    RenderFailure,
    RenderOutcome,
    RenderState,
)


def extract_main(html):
    match = re.search(r"<main[^>]*>(.*?)</main>", html, re.DOTALL)
    return match.group(1) if match else ""


def component_outcome(program="__host.mount(null);"):
    handle = RenderableHandle(component_name="App", markup="<p>static</p>", program=program)
    return RenderOutcome(
        state=RenderState.RENDERED,
        detection=DetectionResult(InferredKind.COMPONENT, ("default_export",)),
        kind=ArtifactKind.COMPONENT,
        output=handle,
    )


def test_component_page_loads_libraries_and_program():
    html = render_preview_page(component_outcome(), title="Counter")
    assert "<title>Counter</title>" in html
    for url in SCRIPT_URLS:
        assert f'<script crossorigin src="{url}"></script>' in html
    assert "var __host = " in html
    assert "__host.mount(null);" in html
    assert '<div id="root"><p>static</p></div>' in extract_main(html)


def test_program_cannot_close_its_script_element():
    html = render_preview_page(component_outcome(program="var s = '</script><b>';"))
    assert "</script><b>" not in html
    assert "<\\/script><b>" in html


def test_markup_page_is_inline_svg_only():
    outcome = RenderOutcome(
        state=RenderState.RENDERED,
        detection=DetectionResult(InferredKind.MARKUP, ("svg_root_pair",)),
        kind=ArtifactKind.MARKUP,
        output='<svg><circle r="1"/></svg>',
    )
    html = render_preview_page(outcome)
    assert '<div id="root"><svg><circle r="1"/></svg></div>' in html
    assert "unpkg.com" not in html
    assert 'class="artifact-preview artifact-svg"' in html


def test_failure_page_shows_category_message_and_hint():
    outcome = RenderOutcome(
        state=RenderState.FAILED,
        detection=DetectionResult(InferredKind.UNKNOWN),
        failure=RenderFailure(FailureCategory.MARKUP_VALIDATION, "Invalid SVG: Missing <svg> tags", "Wrap it."),
    )
    main = extract_main(render_preview_page(outcome))
    assert "<h2>MarkupValidationError</h2>" in main
    assert "Invalid SVG: Missing &lt;svg&gt; tags" in main
    assert "Wrap it." in main
    assert '<div id="root"></div>' in main


def test_title_is_escaped_and_defaulted():
    assert "<title>Artifact</title>" in render_preview_page(component_outcome())
    html = render_preview_page(component_outcome(), title="<b>x</b>")
    assert "<title>&lt;b&gt;x&lt;/b&gt;</title>" in html
