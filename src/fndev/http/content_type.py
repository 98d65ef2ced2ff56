"""Content-Type header parsing and formatting."""

_TSPECIALS = ' ;,"=()<>@:\\/[]?{}\t'


def parse_content_type(value: str) -> tuple[str, dict[str, str]]:
    """Split a content-type header into (media type, parameters)."""
    media_type, _, rest = value.partition(";")
    params: dict[str, str] = {}
    for part in rest.split(";"):
        key, sep, val = part.partition("=")
        if not sep:
            continue
        val = val.strip()
        if len(val) >= 2 and val[0] == val[-1] == '"':
            val = val[1:-1]
        params[key.strip().lower()] = val
    return media_type.strip().lower(), params


def format_content_type(media_type: str, params: dict[str, str]) -> str:
    parts = [media_type]
    for key, val in params.items():
        if not val or any(c in _TSPECIALS for c in val):
            val = '"' + val.replace("\\", "\\\\").replace('"', '\\"') + '"'
        parts.append(f"{key}={val}")
    return "; ".join(parts)
