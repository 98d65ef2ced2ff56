"""HTML pages rendered by the dev server itself."""

from html import escape

_ERROR_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{status_code} | {message}</title>
  <style>
    body {{ font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
           margin: 0; height: 100vh; display: flex; align-items: center;
           justify-content: center; color: #333; }}
    h1 {{ font-weight: 400; margin: 0 0 0.5em; }}
    p {{ color: #888; margin: 0; }}
  </style>
</head>
<body>
  <div>
    <h1>{status_code}</h1>
    <p>{message}</p>
  </div>
</body>
</html>
"""


def error_page(status_code: int, message: str) -> str:
    return _ERROR_PAGE.format(status_code=status_code, message=escape(message))
