"""Viewer page — the HTML shell browsers load from ``/``.

The page holds an empty ``.markdown-body`` container and a small script that
subscribes to the push channel with native ``EventSource``:

1. ``title`` sets the document title
2. ``content`` replaces the whole rendered body
3. ``kill`` shows a shutdown notice and closes the tab
"""

from __future__ import annotations

import html

EVENTS_ENDPOINT = "/__livedown/events"
STATS_ENDPOINT = "/__livedown/stats"

_VIEWER_SCRIPT = """\
<script data-livedown>
(function() {
  var body = document.querySelector('.markdown-body');
  var src = new EventSource('%(events)s');
  src.addEventListener('title', function(e) {
    document.title = e.data;
  });
  src.addEventListener('content', function(e) {
    body.innerHTML = e.data;
  });
  src.addEventListener('kill', function() {
    src.close();
    body.innerHTML = '<p class="livedown-notice">livedown server stopped.</p>';
    window.open('', '_self');
    window.close();
  });
})();
</script>
""" % {"events": EVENTS_ENDPOINT}

_VIEWER_PAGE = """\
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>%(title)s</title>
<style>
  body { box-sizing: border-box; max-width: 980px; margin: 0 auto; padding: 45px; }
  .markdown-body { font-family: -apple-system, "Segoe UI", Helvetica, Arial, sans-serif; line-height: 1.5; }
  .markdown-body .task-list-item { list-style-type: none; }
  .livedown-notice { color: #9e9e9e; font-style: italic; }
</style>
</head>
<body>
<article class="markdown-body"></article>
%(script)s</body>
</html>
"""


def viewer_page(title: str = "livedown") -> str:
    """Return the viewer page HTML with an initial (escaped) title."""
    return _VIEWER_PAGE % {"title": html.escape(title), "script": _VIEWER_SCRIPT}
